"""Tests for ExposureConfig."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

import pytest

from exposure.domain.model.configuration import ExposureConfig

if TYPE_CHECKING:
    from pathlib import Path


class TestExposureConfig:
    """FAIL-FIRST validation and defaults."""

    def test_for_directory(self, tmp_path: Path) -> None:
        config = ExposureConfig.for_directory(tmp_path)
        assert config.root_directory == tmp_path.resolve()
        assert config.resolved_trace_paths == (tmp_path.resolve(),)

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="root_directory"):
            ExposureConfig(root_directory=tmp_path / "missing")

    def test_none_root_raises(self) -> None:
        with pytest.raises(TypeError, match="root_directory"):
            ExposureConfig(root_directory=None)  # type: ignore[arg-type]

    def test_missing_trace_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="trace path"):
            ExposureConfig(root_directory=tmp_path, trace_paths=(tmp_path / "nope",))

    def test_empty_exclude_pattern_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="exclude_patterns"):
            ExposureConfig(root_directory=tmp_path, exclude_patterns=("",))

    def test_explicit_trace_paths(self, tmp_path: Path) -> None:
        src = tmp_path / "src"
        src.mkdir()
        config = ExposureConfig(root_directory=tmp_path, trace_paths=(src,))
        assert config.resolved_trace_paths == (src.resolve(),)

    def test_frozen(self, tmp_path: Path) -> None:
        config = ExposureConfig.for_directory(tmp_path)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.root_directory = tmp_path  # type: ignore[misc]
