"""Infrastructure layer: on-disk Merge Store.

Layout under the root directory:

    .exposure/
        locals/<signature>%<variable>   observed local variable types
        returns/<signature>             observed return types
        uses/                           reserved, never written

Signatures are split on "/" into nested directories. Path segments that would
leave or collapse the tree ("", ".", "..") are stored as %2F, %2E and %2E%2E;
"/" and "%" inside variable names are stored as %2F and %25.

Each file holds one type name per line with set semantics. Updates are
union-only and written atomically (temp file + os.replace), so a reader never
sees a half-written record.

Not thread-safe: exactly one writer thread owns a store.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from exposure.domain.exceptions import PersistenceError
from exposure.domain.model.snapshot import StoreSnapshot

if TYPE_CHECKING:
    from collections.abc import Iterable

STORE_DIRNAME: Final = ".exposure"
LOCALS_DIRNAME: Final = "locals"
RETURNS_DIRNAME: Final = "returns"
USES_DIRNAME: Final = "uses"

# Separates signature from variable name in locals/ file names
VARIABLE_SEPARATOR: Final = "%"

_SEGMENT_TOKENS: Final = MappingProxyType({"": "%2F", ".": "%2E", "..": "%2E%2E"})
_TOKEN_SEGMENTS: Final = MappingProxyType({v: k for k, v in _SEGMENT_TOKENS.items()})

_VARIABLE_ESCAPES: Final = MappingProxyType({"%": "%25", "/": "%2F"})
_VARIABLE_ESCAPE_PATTERN: Final = re.compile(r"[%/]")
_VARIABLE_UNESCAPE_PATTERN: Final = re.compile(r"%(?:25|2F)")
_VARIABLE_UNESCAPES: Final = MappingProxyType({v: k for k, v in _VARIABLE_ESCAPES.items()})


class MergeStore:
    """Read-merge-write access to the .exposure/ tree under a root directory."""

    __slots__ = ("_root",)

    def __init__(self, root_directory: Path) -> None:
        """Initialize store rooted at root_directory.

        Args:
            root_directory: Directory containing (or to contain) .exposure/.
                Resolved once, later cwd changes do not move the store.
        """
        self._root = root_directory.resolve()

    @property
    def root_directory(self) -> Path:
        return self._root

    @property
    def store_directory(self) -> Path:
        return self._root / STORE_DIRNAME

    @property
    def locals_directory(self) -> Path:
        return self.store_directory / LOCALS_DIRNAME

    @property
    def returns_directory(self) -> Path:
        return self.store_directory / RETURNS_DIRNAME

    @property
    def uses_directory(self) -> Path:
        return self.store_directory / USES_DIRNAME

    def ensure_layout(self) -> None:
        """Create .exposure/{locals,returns,uses}. Idempotent.

        Raises:
            PersistenceError: Directories cannot be created.
        """
        for directory in (self.locals_directory, self.returns_directory, self.uses_directory):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise PersistenceError(directory, exc) from exc

    def locals_path(self, signature: str, variable: str) -> Path:
        """Record file for one local variable of a call site.

        Always below locals/, whatever the signature or variable contains.
        """
        *directories, last = signature.split("/")
        name = f"{last}{VARIABLE_SEPARATOR}{_escape_variable(variable)}"
        return self.locals_directory.joinpath(*_encode_segments(directories), name)

    def returns_path(self, signature: str) -> Path:
        """Record file for the return types of a call site.

        Always below returns/, whatever the signature contains.
        """
        return self.returns_directory.joinpath(*_encode_segments(signature.split("/")))

    def read_types(self, path: Path) -> set[str]:
        """Read the persisted set at path. Missing file = empty set.

        Raises:
            PersistenceError: File exists but cannot be read.
        """
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return set()
        except OSError as exc:
            raise PersistenceError(path, exc) from exc
        return {line for line in text.splitlines() if line}

    def merge(self, path: Path, new_types: Iterable[str]) -> bool:
        """Union new_types into the record at path.

        Skips the write when the union adds nothing, so unchanged records keep
        their mtime.

        Returns:
            True if the file was rewritten, False if it was already a superset.

        Raises:
            PersistenceError: Read or write failed.
        """
        persisted = self.read_types(path)
        merged = persisted | set(new_types)
        if merged == persisted:
            return False
        self.write_types(path, merged)
        return True

    def merge_return(self, path: Path, type_name: str) -> bool:
        """Union a return type into the record at path.

        The write is skipped only when the record holds exactly type_name;
        any other persisted set is rewritten with type_name added.

        Returns:
            True if the file was rewritten.

        Raises:
            PersistenceError: Read or write failed.
        """
        persisted = self.read_types(path)
        if persisted == {type_name}:
            return False
        self.write_types(path, persisted | {type_name})
        return True

    def write_types(self, path: Path, types: Iterable[str]) -> None:
        """Atomically replace the record at path.

        Raises:
            PersistenceError: Write failed (permissions, disk full).
        """
        content = "".join(f"{type_name}\n" for type_name in sorted(set(types)))
        try:
            # Block signatures contain "/", records may live in nested directories
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", text=True)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(path, exc) from exc

    def snapshot(self) -> StoreSnapshot:
        """Read every record into an immutable snapshot.

        Raises:
            PersistenceError: A record exists but cannot be read.
        """
        locals_: dict[str, dict[str, frozenset[str]]] = {}
        for path in self._record_files(self.locals_directory):
            *directories, name = path.relative_to(self.locals_directory).parts
            last, separator, variable = name.partition(VARIABLE_SEPARATOR)
            if not separator:
                continue
            signature = "/".join([*_decode_segments(directories), last])
            locals_.setdefault(signature, {})[_unescape_variable(variable)] = frozenset(
                self.read_types(path)
            )

        returns: dict[str, frozenset[str]] = {}
        for path in self._record_files(self.returns_directory):
            parts = path.relative_to(self.returns_directory).parts
            returns["/".join(_decode_segments(parts))] = frozenset(self.read_types(path))

        return StoreSnapshot(
            locals=MappingProxyType(
                {sig: MappingProxyType(variables) for sig, variables in locals_.items()}
            ),
            returns=MappingProxyType(returns),
        )

    @staticmethod
    def _record_files(directory: Path) -> list[Path]:
        """All record files below directory, skipping in-flight temp files."""
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.rglob("*")
            if path.is_file() and not path.name.startswith(".tmp-")
        )


def _encode_segments(segments: Iterable[str]) -> list[str]:
    return [_SEGMENT_TOKENS.get(segment, segment) for segment in segments]


def _decode_segments(segments: Iterable[str]) -> list[str]:
    return [_TOKEN_SEGMENTS.get(segment, segment) for segment in segments]


def _escape_variable(variable: str) -> str:
    return _VARIABLE_ESCAPE_PATTERN.sub(lambda m: _VARIABLE_ESCAPES[m.group()], variable)


def _unescape_variable(variable: str) -> str:
    return _VARIABLE_UNESCAPE_PATTERN.sub(lambda m: _VARIABLE_UNESCAPES[m.group()], variable)
