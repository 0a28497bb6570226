"""Tracer service: run code under a TypeCollector and report what was merged.

Both entry points stop the collector before returning, so by the time a
CollectionSummary is visible every popped frame is already in the Merge Store
and MergeStore.snapshot() reflects the traced run.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from exposure.application.collectors.type_collector import TypeCollector
from exposure.domain.exceptions import NotExitedError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from exposure.application.collectors.type_collector import CollectionSummary
    from exposure.domain.model.configuration import ExposureConfig


@dataclass(frozen=True, slots=True)
class TraceHandle:
    """Result slot of a trace_context() block.

    Filled once, when the block exits and the writer has drained. Frames still
    open at that point (entered before the block) are not part of the summary.
    """

    _summary_value: CollectionSummary | None = None

    @property
    def summary(self) -> CollectionSummary:
        """Counts of frames pushed, popped and record files written or skipped.

        Raises:
            NotExitedError: Context not exited yet.
        """
        if self._summary_value is None:
            raise NotExitedError
        return self._summary_value


class TracerService:
    """Records observed types for a callable or a code block.

    One TypeCollector per call: collections never nest, a second concurrent
    one fails with ToolIdUnavailableError. The collector is stopped even when
    the traced code raises, so frames popped before the error are merged.
    """

    def __init__(self, config: ExposureConfig) -> None:
        self._config = config

    @property
    def config(self) -> ExposureConfig:
        return self._config

    def trace[T](self, target: Callable[[], T]) -> tuple[T, CollectionSummary]:
        """Call target with collection active.

        Args:
            target: Zero-argument callable to trace.

        Returns:
            (target result, summary of the merged run)

        Raises:
            ToolIdUnavailableError: Another collection holds the tool ID.
            PersistenceError: A merge failed during the run.
        """
        collector = TypeCollector(self._config)
        collector.start()
        try:
            result = target()
        finally:
            summary = collector.stop()
        return result, summary

    @contextmanager
    def trace_context(self) -> Iterator[TraceHandle]:
        """Collect types for the body of a with block.

        Usage:
            with tracer.trace_context() as handle:
                do_work()
            store = MergeStore(handle.summary.root_directory)
            print(store.snapshot().signatures)

        Raises:
            ToolIdUnavailableError: Another collection holds the tool ID.
            PersistenceError: A merge failed during the run.
        """
        handle = TraceHandle()
        collector = TypeCollector(self._config)
        collector.start()
        try:
            yield handle
        finally:
            object.__setattr__(handle, "_summary_value", collector.stop())
