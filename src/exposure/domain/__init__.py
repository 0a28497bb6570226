"""Domain layer: events, frames, canonical names, exceptions.

Pure Python, no I/O.
"""

from exposure.domain.canonical import canonicalize, singleton_name
from exposure.domain.events import (
    BlockEntry,
    ClassDefinition,
    Event,
    EventKind,
    MethodCall,
    format_event,
)
from exposure.domain.frame import Frame

__all__ = [
    # Canonical names
    "canonicalize",
    "singleton_name",
    # Events
    "BlockEntry",
    "ClassDefinition",
    "Event",
    "EventKind",
    "MethodCall",
    "format_event",
    # Frames
    "Frame",
]
