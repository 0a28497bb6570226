"""Application layer: call stack, persistence, collectors, reporters."""
