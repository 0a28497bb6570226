"""Tracing configuration.

User-provided configuration for a collection run: where the Merge Store
lives and which source files are traced.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ExposureConfig:
    """Collection configuration DTO.

    Immutable configuration object with FAIL-FIRST validation.

    Attributes:
        root_directory: Directory holding the .exposure/ store.
        trace_paths: Directories whose code is traced. Empty = root_directory only.
        exclude_patterns: fnmatch patterns on absolute file paths never traced.
    """

    root_directory: Path
    trace_paths: tuple[Path, ...] = ()
    exclude_patterns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if self.root_directory is None:
            raise TypeError("root_directory must not be None")
        if not self.root_directory.is_dir():
            raise ValueError(f"root_directory must be a directory: {self.root_directory}")

        for path in self.trace_paths:
            if not path.is_dir():
                raise ValueError(f"trace path must be a directory: {path}")

        for pattern in self.exclude_patterns:
            if not pattern:
                raise ValueError("exclude_patterns must not contain empty patterns")

    @classmethod
    def for_directory(cls, root_directory: Path) -> ExposureConfig:
        """Store and trace everything under root_directory."""
        return cls(root_directory=root_directory.resolve())

    @property
    def resolved_trace_paths(self) -> tuple[Path, ...]:
        """Absolute trace paths, defaulting to the root directory."""
        paths = self.trace_paths or (self.root_directory,)
        return tuple(path.resolve() for path in paths)
