"""Domain layer: immutable value objects for trace events.

Entry events open a Frame; exit kinds only exist as boundary codes.
Raw names are stored verbatim and canonicalized when formatted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from exposure.domain.canonical import canonicalize, singleton_owner


class EventKind(IntEnum):
    """Event codes shared with host hook layers."""

    BLOCK_ENTRY = 1
    CLASS_DEFINITION = 2
    METHOD_CALL = 3
    METHOD_RETURN = 4
    BLOCK_RETURN = 5
    SCOPE_END = 6

    @property
    def is_entry(self) -> bool:
        """Entry kinds open a Frame."""
        return self <= EventKind.METHOD_CALL


@dataclass(frozen=True, slots=True)
class BlockEntry:
    """Block entered at file:line."""

    file: str
    line: int

    @property
    def kind(self) -> EventKind:
        return EventKind.BLOCK_ENTRY

    @property
    def signature(self) -> str:
        return format_event(self)


@dataclass(frozen=True, slots=True)
class ClassDefinition:
    """Class body opened."""

    class_name: str

    @property
    def kind(self) -> EventKind:
        return EventKind.CLASS_DEFINITION

    @property
    def signature(self) -> str:
        return format_event(self)


@dataclass(frozen=True, slots=True)
class MethodCall:
    """Method invoked on class_name (singleton spelling for class-level calls)."""

    class_name: str
    method_name: str

    @property
    def kind(self) -> EventKind:
        return EventKind.METHOD_CALL

    @property
    def signature(self) -> str:
        return format_event(self)


Event = BlockEntry | ClassDefinition | MethodCall


def format_event(event: Event) -> str:
    """Canonical call-site signature for event.

    Exhaustive match on Event union.

    Examples:
        MethodCall("Foo", "bar")              -> "Foo#bar"
        MethodCall("#<Class:Object>", "new")  -> "Object.new"
        BlockEntry("/app/lib/foo.py", 12)     -> "lib/foo.py:12"
    """
    match event:
        case MethodCall(class_name=class_name, method_name=method_name):
            # Canonicalize first: stripping ids decides whether the singleton form matches
            canonical = canonicalize(class_name)
            owner = singleton_owner(canonical)
            if owner is not None:
                return f"{owner}.{method_name}"
            return f"{canonical}#{method_name}"
        case ClassDefinition(class_name=class_name):
            return canonicalize(class_name)
        case BlockEntry(file=file, line=line):
            return f"{_short_path(file)}:{line}"


def _short_path(file: str) -> str:
    """Last two path segments joined by "/"."""
    segments = file.split("/")
    if len(segments) < 2:
        return file
    return "/".join(segments[-2:])
