"""Handle boundary for host hook layers.

Host layers (tracepoint bindings, foreign-call shims) never hold a CallStack
directly: they get an integer handle from create() and pass it back to every
call. Marshalled strings may arrive as str, bytes or None.

Preconditions (documented, not enforced on the hot path):
  - one create() per traced run
  - exactly one destroy() per handle, after the last event
  - all calls for a handle from the same thread
Violations that are detected (unknown handle, exit code pushed) are fatal.
"""

from __future__ import annotations

import itertools
from pathlib import Path

from exposure.application.services.call_stack import CallStack, StackStats
from exposure.domain.events import BlockEntry, ClassDefinition, Event, EventKind, MethodCall
from exposure.domain.exceptions import InvalidEventCodeError, UnknownHandleError

_stacks: dict[int, CallStack] = {}
_next_handle = itertools.count(1)


def create(root_directory: Path | None = None) -> int:
    """Allocate a CallStack rooted at root_directory (default: cwd).

    Creates .exposure/{locals,returns,uses} before returning.

    Raises:
        PersistenceError: Store layout cannot be created.
    """
    handle = next(_next_handle)
    _stacks[handle] = CallStack(root_directory)
    return handle


def push_frame(
    handle: int,
    event_code: int,
    caller_file: str | bytes | None,
    caller_line: int,
    trace_file: str | bytes | None,
    trace_line: int,
    class_name: str | bytes | None,
    method_name: str | bytes | None,
    receiver_name: str | bytes | None,
) -> None:
    """Open a frame for an entry event.

    Fields used per code:
        1 BLOCK_ENTRY       trace_file, trace_line
        2 CLASS_DEFINITION  receiver_name
        3 METHOD_CALL       class_name, method_name

    Raises:
        InvalidEventCodeError: Exit code (4-6) or unknown code.
        UnknownHandleError: Handle not created or already destroyed.
    """
    event = _convert_event(
        event_code,
        trace_file=trace_file,
        trace_line=trace_line,
        class_name=class_name,
        method_name=method_name,
        receiver_name=receiver_name,
    )
    _lookup(handle).push(event, decode_string(caller_file), caller_line)


def add_local(
    handle: int,
    variable_name: str | bytes | None,
    raw_type_name: str | bytes | None,
) -> None:
    """Record a local variable type on the top frame.

    Raises:
        UnknownHandleError: Handle not created or already destroyed.
    """
    _lookup(handle).add_local(decode_string(variable_name), decode_string(raw_type_name))


def pop_frame(handle: int, raw_return_type: str | bytes | None) -> None:
    """Close the top frame with its return type.

    Raises:
        UnknownHandleError: Handle not created or already destroyed.
        WriterTerminatedError: Writer stopped unexpectedly.
    """
    _lookup(handle).pop_and_enqueue(decode_string(raw_return_type))


def destroy(handle: int) -> StackStats:
    """Finish the CallStack and release the handle.

    Blocks until every popped frame is merged.

    Raises:
        UnknownHandleError: Handle not created or already destroyed.
        PersistenceError: A merge failed.
    """
    try:
        stack = _stacks.pop(handle)
    except KeyError:
        raise UnknownHandleError(handle) from None
    return stack.finish()


def active_handles() -> frozenset[int]:
    """Handles created and not yet destroyed."""
    return frozenset(_stacks)


# =============================================================================
# Conversion (boundary values → domain)
# =============================================================================


def decode_string(value: str | bytes | None) -> str:
    """Boundary string to str. None = "", invalid UTF-8 replaced."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _lookup(handle: int) -> CallStack:
    """Resolve handle. FAIL-FIRST on unknown handles."""
    try:
        return _stacks[handle]
    except KeyError:
        raise UnknownHandleError(handle) from None


def _convert_event(
    event_code: int,
    *,
    trace_file: str | bytes | None,
    trace_line: int,
    class_name: str | bytes | None,
    method_name: str | bytes | None,
    receiver_name: str | bytes | None,
) -> Event:
    """Build the entry event for event_code."""
    try:
        kind = EventKind(event_code)
    except ValueError:
        raise InvalidEventCodeError(event_code) from None

    match kind:
        case EventKind.BLOCK_ENTRY:
            return BlockEntry(file=decode_string(trace_file), line=trace_line)
        case EventKind.CLASS_DEFINITION:
            return ClassDefinition(class_name=decode_string(receiver_name))
        case EventKind.METHOD_CALL:
            return MethodCall(
                class_name=decode_string(class_name),
                method_name=decode_string(method_name),
            )
        case EventKind.METHOD_RETURN | EventKind.BLOCK_RETURN | EventKind.SCOPE_END:
            raise InvalidEventCodeError(event_code)
