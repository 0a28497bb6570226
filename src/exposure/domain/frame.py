"""Frame: one in-flight call and its accumulated observations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exposure.domain.exceptions import FrameFinalizedError

if TYPE_CHECKING:
    from exposure.domain.events import Event


@dataclass(slots=True)
class Frame:
    """Call-stack entry.

    Mutable only while on top of its CallStack. Once popped, the producer
    hands it to the writer and never touches it again.

    Attributes:
        event: Entry event that opened this frame.
        caller_file: File of the call site.
        caller_line: Line of the call site.
        locals: Variable name -> canonical type names observed. Sets only grow.
        return_type: Canonical return type, set at most once before handoff.
    """

    event: Event
    caller_file: str
    caller_line: int
    locals: dict[str, set[str]] = field(default_factory=dict)
    return_type: str | None = None

    @property
    def signature(self) -> str:
        """Canonical call-site signature of the opening event."""
        return self.event.signature

    def add_local(self, name: str, type_name: str) -> None:
        """Union type_name into the observations for name."""
        self.locals.setdefault(name, set()).add(type_name)

    def finalize(self, return_type: str | None) -> None:
        """Attach the observed return type.

        Raises:
            FrameFinalizedError: Return type already attached.
        """
        if self.return_type is not None:
            raise FrameFinalizedError(self.signature)
        self.return_type = return_type
