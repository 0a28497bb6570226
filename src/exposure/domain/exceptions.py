"""Domain exceptions: all public errors of exposure.

All exceptions visible to users are defined in domain.
Infrastructure/Application raise these, not their own public exceptions.
"""

from __future__ import annotations


class ExposureError(Exception):
    """Base for all exposure exceptions.

    Allows: except ExposureError to catch all library errors.
    """


class ContractViolationError(ExposureError, RuntimeError):
    """Host broke the enter/exit protocol.

    Fatal: continuing would record inconsistent frames.
    """


class ExitEventPushedError(ContractViolationError):
    """Exit kind passed where an entry event is required.

    Attributes:
        kind: Offending event kind.
    """

    def __init__(self, kind: object) -> None:
        """Initialize with offending kind."""
        self.kind = kind
        super().__init__(f"cannot push exit event {kind!r}, expected an entry event")


class InvalidEventCodeError(ContractViolationError, ValueError):
    """Event code at the handle boundary is not an entry code (1-3).

    Attributes:
        code: Offending code.
    """

    def __init__(self, code: int) -> None:
        """Initialize with offending code."""
        self.code = code
        super().__init__(f"event code must be 1, 2 or 3, got {code}")


class UnknownHandleError(ContractViolationError, LookupError):
    """Handle was never created or was already destroyed.

    Attributes:
        handle: Offending handle.
    """

    def __init__(self, handle: int) -> None:
        """Initialize with offending handle."""
        self.handle = handle
        super().__init__(f"unknown trace handle {handle}")


class PersistenceError(ExposureError):
    """Merge Store write failed.

    Wraps the original OSError via __cause__.

    Attributes:
        path: File that could not be written.
        original: Original exception.
    """

    def __init__(self, path: object, original: BaseException) -> None:
        """Initialize with failed path and original exception."""
        self.path = path
        self.original = original
        super().__init__(f"failed to persist {path}: {type(original).__name__}: {original}")
        self.__cause__ = original


class WriterTerminatedError(ExposureError, RuntimeError):
    """Frame handed off after the persistence writer stopped."""

    def __init__(self) -> None:
        """Initialize with fixed message."""
        super().__init__("Persistence writer is not running")


class FrameFinalizedError(ExposureError, RuntimeError):
    """Return type attached to a frame twice.

    Attributes:
        signature: Signature of the frame.
    """

    def __init__(self, signature: str) -> None:
        """Initialize with frame signature."""
        self.signature = signature
        super().__init__(f"frame {signature!r} already finalized")


class StackFinishedError(ExposureError, RuntimeError):
    """CallStack.finish() called more than once."""

    def __init__(self) -> None:
        """Initialize with fixed message."""
        super().__init__("call stack already finished")


class AlreadyActiveError(ExposureError, RuntimeError):
    """Collector already started, cannot start again."""

    def __init__(self) -> None:
        """Initialize with fixed message."""
        super().__init__("Collection already active")


class NotActiveError(ExposureError, RuntimeError):
    """Collector not started, cannot stop."""

    def __init__(self) -> None:
        """Initialize with fixed message."""
        super().__init__("Collection not active")


class NotExitedError(ExposureError, RuntimeError):
    """Context not exited, summary not available.

    Raised when accessing TraceHandle.summary before context exit.
    """

    def __init__(self) -> None:
        """Initialize with fixed message."""
        super().__init__("Context not exited, summary not available")


class ToolIdUnavailableError(ExposureError, RuntimeError):
    """sys.monitoring tool ID is already in use.

    Attributes:
        tool_id: Requested tool ID.
    """

    def __init__(self, tool_id: int) -> None:
        """Initialize with requested tool ID."""
        self.tool_id = tool_id
        super().__init__(f"sys.monitoring tool ID {tool_id} is already in use")
