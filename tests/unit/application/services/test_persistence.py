"""Tests for the persistence writer.

Tests:
- write_frame: record paths, write/skip accounting
- PersistenceWriter: FIFO drain on stop, failure propagation
"""

from __future__ import annotations

import errno
from typing import TYPE_CHECKING

import pytest

from exposure.application.services.persistence import (
    WRITER_THREAD_NAME,
    MergeOutcome,
    PersistenceWriter,
    write_frame,
)
from exposure.domain.events import BlockEntry, ClassDefinition, MethodCall
from exposure.domain.exceptions import PersistenceError, WriterTerminatedError
from exposure.infrastructure.merge_store import MergeStore
from tests.factories import make_frame, read_record

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


@pytest.fixture
def store(tmp_path: Path) -> MergeStore:
    """Store with its layout created."""
    store = MergeStore(tmp_path)
    store.ensure_layout()
    return store


def _failing_write(self: MergeStore, path: Path, types: Iterable[str]) -> None:
    raise PersistenceError(path, OSError(errno.ENOSPC, "No space left on device"))


class TestMergeOutcome:
    """MergeOutcome arithmetic."""

    def test_add(self) -> None:
        total = MergeOutcome(written=1, skipped=2) + MergeOutcome(written=3)
        assert total == MergeOutcome(written=4, skipped=2)


class TestWriteFrame:
    """write_frame() against a real store."""

    def test_locals_and_return(self, store: MergeStore) -> None:
        frame = make_frame(locals_={"x": {"Integer", "String"}}, return_type="nil")

        outcome = write_frame(frame, store)

        assert outcome == MergeOutcome(written=2)
        assert read_record(store.locals_path("Foo#bar", "x")) == {"Integer", "String"}
        assert read_record(store.returns_path("Foo#bar")) == {"nil"}

    def test_absent_return_writes_nothing(self, store: MergeStore) -> None:
        frame = make_frame(event=ClassDefinition("Foo"))

        assert write_frame(frame, store) == MergeOutcome()
        assert list(store.returns_directory.iterdir()) == []

    def test_same_frame_twice_skips(self, store: MergeStore) -> None:
        """Idempotence: no record rewritten the second time."""
        frame = make_frame(locals_={"x": {"Integer"}}, return_type="nil")
        write_frame(frame, store)

        assert write_frame(frame, store) == MergeOutcome(skipped=2)

    def test_block_signature_path(self, store: MergeStore) -> None:
        frame = make_frame(event=BlockEntry("/proj/lib/foo.py", 12), return_type="int")
        write_frame(frame, store)
        assert read_record(store.returns_directory / "lib" / "foo.py:12") == {"int"}

    def test_return_rewritten_unless_sole_type(self, store: MergeStore) -> None:
        """Returns record holding {Integer, String}: popping Integer writes again."""
        write_frame(make_frame(return_type="Integer"), store)
        write_frame(make_frame(return_type="String"), store)

        outcome = write_frame(make_frame(return_type="Integer"), store)

        assert outcome == MergeOutcome(written=1)
        assert read_record(store.returns_path("Foo#bar")) == {"Integer", "String"}

    def test_return_skipped_when_sole_type(self, store: MergeStore) -> None:
        write_frame(make_frame(return_type="Integer"), store)
        assert write_frame(make_frame(return_type="Integer"), store) == MergeOutcome(skipped=1)

    def test_locals_skipped_when_subset(self, store: MergeStore) -> None:
        write_frame(make_frame(locals_={"x": {"Integer", "String"}}), store)
        outcome = write_frame(make_frame(locals_={"x": {"Integer"}}), store)
        assert outcome == MergeOutcome(skipped=1)


class TestPersistenceWriter:
    """Background writer lifecycle."""

    def test_stop_drains_queue(self, store: MergeStore) -> None:
        writer = PersistenceWriter(store)
        writer.start()
        for index in range(20):
            writer.enqueue(make_frame(event=MethodCall("Foo", f"m{index}"), return_type="nil"))

        outcome = writer.stop()

        assert outcome == MergeOutcome(written=20)
        assert writer.frames_written == 20
        assert not writer.is_alive
        assert len(list(store.returns_directory.iterdir())) == 20

    def test_fifo_order_keeps_union(self, store: MergeStore) -> None:
        writer = PersistenceWriter(store)
        writer.start()
        for return_type in ("Integer", "String", "Integer"):
            writer.enqueue(make_frame(return_type=return_type))

        outcome = writer.stop()

        # A returns record holding more than the popped type is rewritten
        assert outcome == MergeOutcome(written=3)
        assert read_record(store.returns_path("Foo#bar")) == {"Integer", "String"}

    def test_thread_name(self, store: MergeStore) -> None:
        writer = PersistenceWriter(store)
        writer.start()
        try:
            assert writer._thread.name == WRITER_THREAD_NAME  # noqa: SLF001
            assert writer.is_alive
        finally:
            writer.stop()

    def test_stop_with_empty_queue(self, store: MergeStore) -> None:
        writer = PersistenceWriter(store)
        writer.start()
        assert writer.stop() == MergeOutcome()

    def test_failure_reraised_by_stop(
        self,
        store: MergeStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(MergeStore, "write_types", _failing_write)
        writer = PersistenceWriter(store)
        writer.start()
        writer.enqueue(make_frame(return_type="nil"))

        with pytest.raises(PersistenceError):
            writer.stop()

    def test_enqueue_after_failure_raises(
        self,
        store: MergeStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Dead writer: enqueue fails, chained to the merge failure."""
        monkeypatch.setattr(MergeStore, "write_types", _failing_write)
        writer = PersistenceWriter(store)
        writer.start()
        writer.enqueue(make_frame(return_type="nil"))
        writer._thread.join(timeout=5)  # noqa: SLF001

        with pytest.raises(WriterTerminatedError) as exc_info:
            writer.enqueue(make_frame(return_type="nil"))

        assert isinstance(exc_info.value.__cause__, PersistenceError)
        with pytest.raises(PersistenceError):
            writer.stop()

    def test_enqueue_before_start_raises(self, store: MergeStore) -> None:
        writer = PersistenceWriter(store)
        with pytest.raises(WriterTerminatedError):
            writer.enqueue(make_frame())
