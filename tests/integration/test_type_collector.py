"""Integration tests: real sys.monitoring runs recorded into a tmp store.

Code under test is defined in this module, which sits inside the trace path.
Assertions run outside the traced region.
"""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from exposure.application.collectors.type_collector import TypeCollector
from exposure.application.services.tracer import TracerService
from exposure.domain.exceptions import AlreadyActiveError, ToolIdUnavailableError
from exposure.domain.model.configuration import ExposureConfig
from exposure.infrastructure.merge_store import MergeStore
from tests.factories import read_record

_TRACED_DIR = Path(__file__).resolve().parent
_MODULE = __name__


class Account:
    def __init__(self, balance: int) -> None:
        self.balance = balance

    def deposit(self, amount: int) -> int:
        total = self.balance + amount
        self.balance = total
        return total

    @classmethod
    def empty(cls) -> Account:
        return cls(0)


def describe(value: object) -> str | None:
    label = str(value)
    return label or None


def countdown(n: int):  # noqa: ANN201
    while n:
        yield n
        n -= 1


def fail(reason: str) -> None:
    message = f"failed: {reason}"
    raise ValueError(message)


def build_class() -> type:
    class Local:
        size = 3

    return Local


increment = lambda n: n + 1  # noqa: E731


@pytest.fixture
def config(tmp_path: Path) -> ExposureConfig:
    return ExposureConfig(root_directory=tmp_path.resolve(), trace_paths=(_TRACED_DIR,))


@pytest.fixture
def store(config: ExposureConfig) -> MergeStore:
    return MergeStore(config.root_directory)


def _locals(store: MergeStore, signature: str, variable: str) -> set[str]:
    return read_record(store.locals_path(signature, variable))


def _returns(store: MergeStore, signature: str) -> set[str]:
    return read_record(store.returns_path(signature))


class TestMethods:
    """Instance and class-level calls."""

    def test_instance_method(self, config: ExposureConfig, store: MergeStore) -> None:
        account = Account(10)

        with TracerService(config).trace_context() as handle:
            account.deposit(5)

        signature = f"{_MODULE}.Account#deposit"
        assert _locals(store, signature, "amount") == {"int"}
        assert _locals(store, signature, "total") == {"int"}
        assert _locals(store, signature, "self") == {f"{_MODULE}.Account"}
        assert _returns(store, signature) == {"int"}
        assert handle.summary.frames_popped == handle.summary.frames_pushed

    def test_classmethod_and_constructor(self, config: ExposureConfig, store: MergeStore) -> None:
        TracerService(config).trace(Account.empty)

        assert _returns(store, f"{_MODULE}.Account.empty") == {f"{_MODULE}.Account"}
        assert _returns(store, f"{_MODULE}.Account#__init__") == {"None"}
        assert _locals(store, f"{_MODULE}.Account#__init__", "balance") == {"int"}

    def test_module_function_types_accumulate(
        self,
        config: ExposureConfig,
        store: MergeStore,
    ) -> None:
        def run() -> None:
            describe(1)
            describe("")
            describe([1])

        TracerService(config).trace(run)

        signature = f"{_MODULE}.describe"
        assert _locals(store, signature, "value") == {"int", "str", "list"}
        assert _returns(store, signature) == {"str", "None"}

    def test_second_run_unions(self, config: ExposureConfig, store: MergeStore) -> None:
        tracer = TracerService(config)
        tracer.trace(lambda: describe(1))
        tracer.trace(lambda: describe(1.5))

        assert _locals(store, f"{_MODULE}.describe", "value") == {"int", "float"}


class TestScopes:
    """Generators, exceptions, class bodies, blocks."""

    def test_generator(self, config: ExposureConfig, store: MergeStore) -> None:
        with TracerService(config).trace_context() as handle:
            values = list(countdown(2))

        assert values == [2, 1]
        signature = f"{_MODULE}.countdown"
        assert _locals(store, signature, "n") == {"int"}
        assert _returns(store, signature) == {"None"}
        assert handle.summary.frames_pushed == 3
        assert handle.summary.frames_popped == 3

    def test_exception_unwinds_without_return(
        self,
        config: ExposureConfig,
        store: MergeStore,
    ) -> None:
        with TracerService(config).trace_context() as handle, pytest.raises(ValueError):
            fail("boom")

        signature = f"{_MODULE}.fail"
        assert _locals(store, signature, "message") == {"str"}
        assert not store.returns_path(signature).exists()
        assert handle.summary.frames_popped == 1

    def test_class_body(self, config: ExposureConfig, store: MergeStore) -> None:
        TracerService(config).trace(build_class)

        signature = f"{_MODULE}.build_class.<locals>.Local"
        assert _locals(store, signature, "size") == {"int"}
        assert not store.returns_path(signature).exists()

    def test_lambda_block(self, config: ExposureConfig, store: MergeStore) -> None:
        TracerService(config).trace(lambda: increment(1))

        code = increment.__code__
        signature = f"{_TRACED_DIR.name}/{Path(code.co_filename).name}:{code.co_firstlineno}"
        assert _locals(store, signature, "n") == {"int"}
        assert _returns(store, signature) == {"int"}


class TestCollectorContract:
    """Lifecycle and thread ownership."""

    def test_other_threads_not_recorded(self, config: ExposureConfig, store: MergeStore) -> None:
        def run() -> None:
            worker = threading.Thread(target=describe, args=(1,))
            worker.start()
            worker.join()

        TracerService(config).trace(run)

        assert not store.locals_path(f"{_MODULE}.describe", "value").exists()

    def test_start_twice_raises(self, config: ExposureConfig) -> None:
        collector = TypeCollector(config)
        collector.start()
        try:
            with pytest.raises(AlreadyActiveError):
                collector.start()
        finally:
            collector.stop()

    def test_concurrent_collectors_rejected(self, config: ExposureConfig) -> None:
        first = TypeCollector(config)
        first.start()
        try:
            with pytest.raises(ToolIdUnavailableError):
                TypeCollector(config).start()
        finally:
            first.stop()

    def test_collector_reusable_after_stop(self, config: ExposureConfig) -> None:
        collector = TypeCollector(config)
        collector.start()
        first = collector.stop()
        collector.start()
        second = collector.stop()
        assert first.root_directory == second.root_directory
        assert not collector.is_started

    def test_snapshot_after_run(self, config: ExposureConfig, store: MergeStore) -> None:
        TracerService(config).trace(lambda: describe(1))

        snapshot = store.snapshot()
        assert f"{_MODULE}.describe" in snapshot.signatures
        assert snapshot.returns[f"{_MODULE}.describe"] == {"str"}

    def test_summary_root_reads_back_run(self, config: ExposureConfig) -> None:
        """Records are merged by the time the summary is visible."""
        with TracerService(config).trace_context() as handle:
            describe(1)

        snapshot = MergeStore(handle.summary.root_directory).snapshot()
        assert snapshot.locals[f"{_MODULE}.describe"]["value"] == {"int"}
        assert handle.summary.files_written >= 2
