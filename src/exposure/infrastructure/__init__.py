"""Infrastructure layer: Merge Store file I/O and logging setup."""

from exposure.infrastructure.merge_store import MergeStore

__all__ = ["MergeStore"]
