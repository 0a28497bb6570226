"""Persistence: merge completed frames into the Merge Store.

A single background writer thread drains a FIFO queue of popped frames and
merges each one synchronously. Shutdown is a sentinel message: the writer
stops after everything queued before it has been merged.

    producer (traced thread)          writer thread
    ------------------------          -------------
    enqueue(frame) ──► SimpleQueue ──► write_frame(frame, store)
    stop() ─► _SENTINEL ─────────────► exit loop
    stop() ◄─ join() ◄───────────────┘

Exception Algebra:
  - Merge succeeds: next item
  - PersistenceError: captured as pending error, writer exits.
    enqueue() then raises WriterTerminatedError, stop() re-raises the error.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import structlog

from exposure.domain.exceptions import PersistenceError, WriterTerminatedError

if TYPE_CHECKING:
    from exposure.domain.frame import Frame
    from exposure.infrastructure.merge_store import MergeStore

logger = structlog.get_logger()

WRITER_THREAD_NAME: Final = "exposure-writer"


class _Sentinel:
    """Terminal queue message."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<writer sentinel>"


_SENTINEL: Final = _Sentinel()


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    """Result of merging one frame.

    Attributes:
        written: Record files rewritten.
        skipped: Record files already containing every observed type.
    """

    written: int = 0
    skipped: int = 0

    def __add__(self, other: MergeOutcome) -> MergeOutcome:
        return MergeOutcome(
            written=self.written + other.written,
            skipped=self.skipped + other.skipped,
        )


def write_frame(frame: Frame, store: MergeStore) -> MergeOutcome:
    """Merge a popped frame's observations into store.

    Locals go to locals/<signature>%<variable>, the return type (if any) to
    returns/<signature>. Each locals record is rewritten only when the union
    grew; the returns record unless it already holds exactly that one type.

    Raises:
        PersistenceError: A record could not be read or written.
    """
    signature = frame.signature
    written = 0
    skipped = 0

    for variable, types in frame.locals.items():
        if store.merge(store.locals_path(signature, variable), types):
            written += 1
        else:
            skipped += 1

    if frame.return_type is not None:
        if store.merge_return(store.returns_path(signature), frame.return_type):
            written += 1
        else:
            skipped += 1

    return MergeOutcome(written=written, skipped=skipped)


class PersistenceWriter:
    """Single background consumer performing all Merge Store writes.

    Contract:
      - Frames merged in FIFO order, one at a time
      - stop() merges everything enqueued before it, then joins
      - First PersistenceError stops the writer and is re-raised by stop()

    Lifecycle:
        writer = PersistenceWriter(store)
        writer.start()
        writer.enqueue(frame)  # any number of times
        outcome = writer.stop()
    """

    __slots__ = (
        "_frames_written",
        "_lock",
        "_outcome",
        "_pending_error",
        "_queue",
        "_store",
        "_thread",
    )

    def __init__(self, store: MergeStore) -> None:
        self._store = store
        self._queue: queue.SimpleQueue[Frame | _Sentinel] = queue.SimpleQueue()
        self._thread = threading.Thread(target=self._run, name=WRITER_THREAD_NAME, daemon=True)
        self._lock = threading.Lock()
        self._pending_error: PersistenceError | None = None
        self._outcome = MergeOutcome()
        self._frames_written = 0

    @property
    def is_alive(self) -> bool:
        """Check if the writer thread is consuming."""
        return self._thread.is_alive()

    @property
    def outcome(self) -> MergeOutcome:
        """Totals merged so far."""
        with self._lock:
            return self._outcome

    @property
    def frames_written(self) -> int:
        """Frames merged so far."""
        with self._lock:
            return self._frames_written

    def start(self) -> None:
        """Start the writer thread.

        Raises:
            RuntimeError: Already started.
        """
        self._thread.start()
        logger.debug("writer_started", root=str(self._store.root_directory))

    def enqueue(self, frame: Frame) -> None:
        """Hand a popped frame to the writer. Never blocks on I/O.

        Raises:
            WriterTerminatedError: Writer not running (chained to its failure).
        """
        if not self._thread.is_alive():
            with self._lock:
                cause = self._pending_error
            raise WriterTerminatedError from cause
        self._queue.put(frame)

    def stop(self) -> MergeOutcome:
        """Drain the queue, stop the writer, wait for it.

        Blocks until every frame enqueued before this call is merged.

        Raises:
            PersistenceError: A merge failed while the writer was running.
        """
        self._queue.put(_SENTINEL)
        self._thread.join()

        with self._lock:
            error = self._pending_error
            outcome = self._outcome
            frames = self._frames_written

        logger.debug(
            "writer_stopped",
            frames=frames,
            written=outcome.written,
            skipped=outcome.skipped,
        )
        if error is not None:
            raise error
        return outcome

    def _run(self) -> None:
        """Writer loop. Runs on the writer thread."""
        while True:
            item = self._queue.get()
            if isinstance(item, _Sentinel):
                return
            try:
                outcome = write_frame(item, self._store)
            except PersistenceError as exc:
                logger.error("merge_failed", signature=item.signature, error=str(exc))
                with self._lock:
                    self._pending_error = exc
                return
            with self._lock:
                self._outcome = self._outcome + outcome
                self._frames_written += 1
