"""Code classification for the type collector.

Decides, once per code object, whether it is traced and which entry event
it opens:
- CLASS_BODY: class statement body → ClassDefinition
- BLOCK: lambda / generator expression / comprehension → BlockEntry
- FUNCTION: def → MethodCall
- None: not traced (module bodies, files outside trace paths, exposure itself)
"""

from __future__ import annotations

import fnmatch
import inspect
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from types import CodeType

# src/exposure: never trace our own code
_PACKAGE_DIR: Final = Path(__file__).resolve().parents[2]


class CodeRole(Enum):
    """Entry event a traced code object opens."""

    CLASS_BODY = "CLASS_BODY"
    BLOCK = "BLOCK"
    FUNCTION = "FUNCTION"


def classify_code(
    code: CodeType,
    trace_paths: tuple[Path, ...],
    exclude_patterns: tuple[str, ...] = (),
) -> CodeRole | None:
    """Classify code object.

    Algorithm:
    1. Synthetic filename ("<string>", "<frozen ...>")? → None
    2. Outside every trace path, inside exposure, or excluded? → None
    3. Module body? → None
    4. Unoptimized scope → CLASS_BODY, "<...>" name → BLOCK, else FUNCTION

    Args:
        code: Code object from a sys.monitoring callback
        trace_paths: Resolved directories whose code is traced
        exclude_patterns: fnmatch patterns on absolute file paths

    Returns:
        CodeRole, or None if the code is not traced
    """
    if not is_traced_file(code.co_filename, trace_paths, exclude_patterns):
        return None

    if code.co_name == "<module>":
        return None

    # Class bodies run as unoptimized scopes, functions never do
    if not code.co_flags & inspect.CO_OPTIMIZED:
        return CodeRole.CLASS_BODY

    if code.co_name.startswith("<"):
        return CodeRole.BLOCK

    return CodeRole.FUNCTION


def is_traced_file(
    filename: str,
    trace_paths: tuple[Path, ...],
    exclude_patterns: tuple[str, ...] = (),
) -> bool:
    """Check if filename lies under a trace path and is not excluded."""
    if not filename or filename.startswith("<"):
        return False

    path = Path(filename).resolve()
    if path.is_relative_to(_PACKAGE_DIR):
        return False

    if not any(path.is_relative_to(base) for base in trace_paths):
        return False

    posix = path.as_posix()
    return not any(fnmatch.fnmatch(posix, pattern) for pattern in exclude_patterns)
