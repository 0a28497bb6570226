"""Application services: stack discipline, persistence, tracing orchestration."""

from exposure.application.services.call_stack import CallStack, StackStats
from exposure.application.services.persistence import (
    MergeOutcome,
    PersistenceWriter,
    write_frame,
)
from exposure.application.services.tracer import TraceHandle, TracerService

__all__ = [
    "CallStack",
    "MergeOutcome",
    "PersistenceWriter",
    "StackStats",
    "TraceHandle",
    "TracerService",
    "write_frame",
]
