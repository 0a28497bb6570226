"""pytest plugin for exposure.

Provides fixtures for recording observed types while tests run:
    exposure_config: Collection configuration (override in conftest.py)
    exposure_tracer: TracerService bound to exposure_config
    exposure_trace: Traces the requesting test body

Configuration (pytest.ini or pyproject.toml):
    exposure_root: Directory holding .exposure/ (default: rootdir)
    exposure_trace_paths: Directories to trace (default: rootdir)

Enable with: pytest_plugins = ["exposure.presentation.pytest_plugin"]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

# Register fixtures from fixtures module
from exposure.presentation.pytest_plugin.fixtures import (
    exposure_config,
    exposure_trace,
    exposure_tracer,
)

if TYPE_CHECKING:
    import pytest

# Export fixtures for pytest discovery
__all__ = [
    "exposure_config",
    "exposure_trace",
    "exposure_tracer",
]


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register ini options."""
    parser.addini(
        "exposure_root",
        help="Directory holding the .exposure/ store (relative to rootdir)",
        default="",
    )
    parser.addini(
        "exposure_trace_paths",
        help="Directories whose code is traced (relative to rootdir)",
        type="linelist",
        default=[],
    )


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest plugin with markers."""
    config.addinivalue_line(
        "markers",
        "exposure: mark test as recording observed types",
    )
