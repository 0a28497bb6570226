"""CallStack: turns a stream of enter/exit events into completed frames.

Per traced call:

    push() ──► on top, receives add_local() ──► pop_and_enqueue() ──► writer

push/add_local never touch I/O. pop_and_enqueue is a non-blocking queue put.
finish() is the only blocking call: it returns once every popped frame has
been merged into the Merge Store.

Not safe for concurrent producers: one CallStack per traced thread.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from exposure.application.services.persistence import MergeOutcome, PersistenceWriter
from exposure.domain.canonical import canonicalize
from exposure.domain.events import BlockEntry, ClassDefinition, MethodCall
from exposure.domain.exceptions import ExitEventPushedError, StackFinishedError
from exposure.domain.frame import Frame
from exposure.infrastructure.merge_store import MergeStore

if TYPE_CHECKING:
    from types import TracebackType

    from exposure.domain.events import Event

logger = structlog.get_logger()

_ENTRY_EVENTS = (BlockEntry, ClassDefinition, MethodCall)


@dataclass(frozen=True, slots=True)
class StackStats:
    """Counters for one CallStack lifetime.

    Attributes:
        pushed: Frames pushed.
        popped: Frames popped and handed to the writer.
        underflows: pop/add_local calls ignored on an empty stack.
        merge: Record files written/skipped by the writer.
    """

    pushed: int
    popped: int
    underflows: int
    merge: MergeOutcome


class CallStack:
    """LIFO stack of frames for one traced execution context.

    Owns the single PersistenceWriter for its lifetime.

    Lifecycle:
        stack = CallStack(Path.cwd())
        stack.push(MethodCall("Foo", "bar"), "caller.py", 3)
        stack.add_local("x", "Integer")
        stack.pop_and_enqueue("NilClass")
        stats = stack.finish()
    """

    __slots__ = (
        "_finished",
        "_frames",
        "_popped",
        "_pushed",
        "_root",
        "_store",
        "_underflows",
        "_writer",
    )

    def __init__(self, root_directory: Path | None = None) -> None:
        """Create stack and start its writer.

        Args:
            root_directory: Store root. Captured once, defaults to cwd.

        Raises:
            PersistenceError: .exposure/ layout cannot be created.
        """
        self._root = (root_directory or Path.cwd()).resolve()
        self._store = MergeStore(self._root)
        self._store.ensure_layout()

        self._frames: list[Frame] = []
        self._pushed = 0
        self._popped = 0
        self._underflows = 0
        self._finished = False

        self._writer = PersistenceWriter(self._store)
        self._writer.start()

    @property
    def root_directory(self) -> Path:
        return self._root

    @property
    def store(self) -> MergeStore:
        return self._store

    @property
    def depth(self) -> int:
        """Frames currently on the stack."""
        return len(self._frames)

    @property
    def top(self) -> Frame | None:
        """Frame receiving local observations, None if empty."""
        if not self._frames:
            return None
        return self._frames[-1]

    def push(self, event: Event, caller_file: str, caller_line: int) -> Frame:
        """Open a frame for an entry event.

        Raises:
            ExitEventPushedError: event is not an entry event.
        """
        if not isinstance(event, _ENTRY_EVENTS):
            raise ExitEventPushedError(event)
        frame = Frame(event=event, caller_file=caller_file, caller_line=caller_line)
        self._frames.append(frame)
        self._pushed += 1
        return frame

    def add_local(self, name: str, raw_type_name: str | None) -> None:
        """Record a local variable type on the top frame. No-op if empty."""
        if not self._frames:
            self._underflows += 1
            return
        self._frames[-1].add_local(name, canonicalize(raw_type_name))

    def pop_and_enqueue(self, raw_return_type: str | None) -> Frame | None:
        """Close the top frame and hand it to the writer.

        An empty or absent return type attaches no return observation.

        Returns:
            The popped frame, None if the stack was empty.

        Raises:
            WriterTerminatedError: Writer stopped unexpectedly.
        """
        if not self._frames:
            self._underflows += 1
            return None
        frame = self._frames.pop()
        frame.finalize(canonicalize(raw_return_type) or None)
        self._writer.enqueue(frame)
        self._popped += 1
        return frame

    def finish(self) -> StackStats:
        """Drain the writer and stop it. Call exactly once.

        Frames still on the stack are never handed off.

        Raises:
            StackFinishedError: Already finished.
            PersistenceError: A merge failed.
        """
        if self._finished:
            raise StackFinishedError
        self._finished = True

        merge = self._writer.stop()
        stats = StackStats(
            pushed=self._pushed,
            popped=self._popped,
            underflows=self._underflows,
            merge=merge,
        )
        logger.info(
            "call_stack_finished",
            root=str(self._root),
            pushed=stats.pushed,
            popped=stats.popped,
            unclosed=len(self._frames),
            underflows=stats.underflows,
            written=merge.written,
            skipped=merge.skipped,
        )
        return stats

    def __enter__(self) -> CallStack:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._finished:
            self.finish()
