"""Runtime type collector using sys.monitoring (PEP 669).

Hook layer driving a CallStack from interpreter events:

    PY_START / PY_RESUME / PY_THROW   → push frame, record arguments
    PY_RETURN                         → record locals, pop with return type
    PY_YIELD / PY_UNWIND              → record locals, pop without return type

Design decisions:
- Classification cached per code object; untraced locations DISABLEd
- PY_THROW/PY_UNWIND cannot be disabled, untraced ones return None
- Only the thread that called start() is recorded: one CallStack, one producer
- restart_events() on start: DISABLE from an earlier run may hide code traced now
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from exposure.application.collectors.classifier import CodeRole, classify_code
from exposure.application.collectors.constants import EXPOSURE_TOOL_ID, EXPOSURE_TOOL_NAME
from exposure.application.services.call_stack import CallStack
from exposure.domain.canonical import singleton_name
from exposure.domain.events import BlockEntry, ClassDefinition, MethodCall
from exposure.domain.exceptions import AlreadyActiveError, NotActiveError, ToolIdUnavailableError

if TYPE_CHECKING:
    from pathlib import Path
    from types import CodeType, FrameType

    from exposure.domain.events import Event
    from exposure.domain.model.configuration import ExposureConfig

logger = structlog.get_logger()

_EVENTS = sys.monitoring.events

_ENTRY_EVENTS = (_EVENTS.PY_START, _EVENTS.PY_RESUME, _EVENTS.PY_THROW)
_EXIT_EVENTS = (_EVENTS.PY_RETURN, _EVENTS.PY_YIELD, _EVENTS.PY_UNWIND)


@dataclass(frozen=True, slots=True)
class CollectionSummary:
    """Result of stop().

    Attributes:
        root_directory: Store root the run was merged into.
        frames_pushed: Frames opened.
        frames_popped: Frames closed and merged.
        underflows: Exits seen with an empty stack (entered before start()).
        files_written: Record files rewritten.
        files_skipped: Record files already up to date.
    """

    root_directory: Path
    frames_pushed: int
    frames_popped: int
    underflows: int
    files_written: int
    files_skipped: int


def describe_type(value: object) -> str:
    """Raw type name of value: bare for builtins, module-qualified otherwise."""
    cls = type(value)
    module = getattr(cls, "__module__", None)
    if not module or module == "builtins":
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


class TypeCollector:
    """Records local and return types of traced code into a Merge Store.

    Lifecycle:
        collector = TypeCollector(ExposureConfig.for_directory(Path.cwd()))
        collector.start()
        # ... run traced code ...
        summary = collector.stop()
    """

    def __init__(self, config: ExposureConfig) -> None:
        """Initialize collector.

        Args:
            config: Store root and trace paths
        """
        self._config = config
        self._trace_paths = config.resolved_trace_paths
        self._roles: dict[CodeType, CodeRole | None] = {}
        self._stack: CallStack | None = None
        self._thread_id: int | None = None

    @property
    def is_started(self) -> bool:
        """Check if collector is currently running."""
        return self._stack is not None

    def start(self) -> None:
        """Create the CallStack and register sys.monitoring callbacks.

        Raises:
            AlreadyActiveError: Already started
            ToolIdUnavailableError: Tool ID is in use
            PersistenceError: Store layout cannot be created
        """
        if self._stack is not None:
            raise AlreadyActiveError

        try:
            sys.monitoring.use_tool_id(EXPOSURE_TOOL_ID, EXPOSURE_TOOL_NAME)
        except ValueError as e:
            raise ToolIdUnavailableError(EXPOSURE_TOOL_ID) from e

        try:
            self._stack = CallStack(self._config.root_directory)
        except BaseException:
            sys.monitoring.free_tool_id(EXPOSURE_TOOL_ID)
            raise

        self._thread_id = threading.get_ident()

        callbacks = {
            _EVENTS.PY_START: self._on_start,
            _EVENTS.PY_RESUME: self._on_resume,
            _EVENTS.PY_THROW: self._on_throw,
            _EVENTS.PY_RETURN: self._on_return,
            _EVENTS.PY_YIELD: self._on_yield,
            _EVENTS.PY_UNWIND: self._on_unwind,
        }
        for event, callback in callbacks.items():
            sys.monitoring.register_callback(EXPOSURE_TOOL_ID, event, callback)

        sys.monitoring.restart_events()

        event_set = 0
        for event in (*_ENTRY_EVENTS, *_EXIT_EVENTS):
            event_set |= event
        sys.monitoring.set_events(EXPOSURE_TOOL_ID, event_set)

        logger.info(
            "collector_started",
            root=str(self._config.root_directory),
            trace_paths=[str(p) for p in self._trace_paths],
        )

    def stop(self) -> CollectionSummary:
        """Unregister callbacks, drain the writer, return summary.

        Raises:
            NotActiveError: Not started
            PersistenceError: A merge failed during the run
        """
        stack = self._stack
        if stack is None:
            raise NotActiveError

        sys.monitoring.set_events(EXPOSURE_TOOL_ID, 0)
        for event in (*_ENTRY_EVENTS, *_EXIT_EVENTS):
            sys.monitoring.register_callback(EXPOSURE_TOOL_ID, event, None)
        sys.monitoring.free_tool_id(EXPOSURE_TOOL_ID)

        self._stack = None
        self._thread_id = None

        stats = stack.finish()
        summary = CollectionSummary(
            root_directory=stack.root_directory,
            frames_pushed=stats.pushed,
            frames_popped=stats.popped,
            underflows=stats.underflows,
            files_written=stats.merge.written,
            files_skipped=stats.merge.skipped,
        )
        logger.info(
            "collector_stopped",
            frames=summary.frames_popped,
            written=summary.files_written,
        )
        return summary

    # =========================================================================
    # sys.monitoring callbacks
    # =========================================================================

    def _on_start(self, code: CodeType, instruction_offset: int) -> object:
        role = self._role(code)
        if role is None:
            return sys.monitoring.DISABLE
        if threading.get_ident() == self._thread_id:
            self._enter(code, role, sys._getframe(1))  # noqa: SLF001
        return None

    def _on_resume(self, code: CodeType, instruction_offset: int) -> object:
        role = self._role(code)
        if role is None:
            return sys.monitoring.DISABLE
        if threading.get_ident() == self._thread_id:
            self._enter(code, role, sys._getframe(1))  # noqa: SLF001
        return None

    def _on_throw(
        self, code: CodeType, instruction_offset: int, exception: BaseException
    ) -> object:
        role = self._role(code)
        if role is not None and threading.get_ident() == self._thread_id:
            self._enter(code, role, sys._getframe(1))  # noqa: SLF001
        return None

    def _on_return(self, code: CodeType, instruction_offset: int, retval: object) -> object:
        role = self._role(code)
        if role is None:
            return sys.monitoring.DISABLE
        if threading.get_ident() == self._thread_id:
            # Class bodies return the class cell, not a value of the class
            return_type = "" if role is CodeRole.CLASS_BODY else describe_type(retval)
            self._exit(sys._getframe(1), return_type)  # noqa: SLF001
        return None

    def _on_yield(self, code: CodeType, instruction_offset: int, retval: object) -> object:
        role = self._role(code)
        if role is None:
            return sys.monitoring.DISABLE
        if threading.get_ident() == self._thread_id:
            self._exit(sys._getframe(1), "")  # noqa: SLF001
        return None

    def _on_unwind(
        self, code: CodeType, instruction_offset: int, exception: BaseException
    ) -> object:
        role = self._role(code)
        if role is not None and threading.get_ident() == self._thread_id:
            self._exit(sys._getframe(1), "")  # noqa: SLF001
        return None

    # =========================================================================
    # Stack driving
    # =========================================================================

    def _role(self, code: CodeType) -> CodeRole | None:
        """Cached classification of code."""
        try:
            return self._roles[code]
        except KeyError:
            role = classify_code(code, self._trace_paths, self._config.exclude_patterns)
            self._roles[code] = role
            return role

    def _enter(self, code: CodeType, role: CodeRole, frame: FrameType) -> None:
        stack = self._stack
        if stack is None:
            return
        caller = frame.f_back
        if caller is None:
            caller_file, caller_line = "", 0
        else:
            caller_file, caller_line = caller.f_code.co_filename, caller.f_lineno or 0
        stack.push(_event_for(code, role, frame), caller_file, caller_line)
        self._record_locals(stack, frame)

    def _exit(self, frame: FrameType, return_type: str) -> None:
        stack = self._stack
        if stack is None:
            return
        self._record_locals(stack, frame)
        stack.pop_and_enqueue(return_type)

    @staticmethod
    def _record_locals(stack: CallStack, frame: FrameType) -> None:
        for name, value in frame.f_locals.items():
            stack.add_local(name, describe_type(value))


def _event_for(code: CodeType, role: CodeRole, frame: FrameType) -> Event:
    """Entry event for a traced frame."""
    module = frame.f_globals.get("__name__") or ""

    match role:
        case CodeRole.CLASS_BODY:
            return ClassDefinition(class_name=f"{module}.{code.co_qualname}")
        case CodeRole.BLOCK:
            return BlockEntry(file=code.co_filename, line=code.co_firstlineno)
        case CodeRole.FUNCTION:
            owner, _, name = code.co_qualname.rpartition(".")
            if not owner or owner.endswith("<locals>"):
                # Module-level or nested function: class-level call on the module
                return MethodCall(class_name=singleton_name(module), method_name=code.co_qualname)

            owner_name = f"{module}.{owner}"
            if code.co_argcount and isinstance(frame.f_locals.get(code.co_varnames[0]), type):
                # First argument is a class: classmethod
                return MethodCall(class_name=singleton_name(owner_name), method_name=name)
            return MethodCall(class_name=owner_name, method_name=name)
