"""pytest fixtures for type collection.

User overrides exposure_config in their conftest.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from exposure.application.services.tracer import TracerService
from exposure.domain.model.configuration import ExposureConfig

if TYPE_CHECKING:
    from collections.abc import Iterator

    from exposure.application.services.tracer import TraceHandle


def _get_ini_value(config: pytest.Config, name: str, default: str) -> str:
    """Get ini value from pytest config with fallback.

    Args:
        config: pytest Config object
        name: ini option name
        default: default value if not set

    Returns:
        String value of ini option
    """
    value = config.getini(name)
    if value:
        return str(value)
    return default


@pytest.fixture(scope="session")
def exposure_config(request: pytest.FixtureRequest) -> ExposureConfig:
    """Collection configuration from ini options.

    Reads exposure_root and exposure_trace_paths (relative to rootdir).
    Defaults: store in rootdir, trace everything under rootdir.

    Returns:
        ExposureConfig
    """
    root_dir = Path(str(getattr(request.config, "rootdir", ".")))

    store_root = root_dir / _get_ini_value(request.config, "exposure_root", ".")
    if not store_root.is_dir():
        raise FileNotFoundError(
            f"exposure_root '{store_root}' does not exist. "
            f"Configure exposure_root in pytest.ini or pyproject.toml."
        )

    trace_paths = tuple(root_dir / p for p in request.config.getini("exposure_trace_paths"))

    return ExposureConfig(root_directory=store_root.resolve(), trace_paths=trace_paths)


@pytest.fixture(scope="session")
def exposure_tracer(exposure_config: ExposureConfig) -> TracerService:
    """Tracer bound to the session configuration.

    Returns:
        TracerService
    """
    return TracerService(exposure_config)


@pytest.fixture
def exposure_trace(exposure_tracer: TracerService) -> Iterator[TraceHandle]:
    """Trace the whole test body.

    Observed types are merged before teardown finishes; the handle's
    summary is readable in later fixtures' teardown.

    Yields:
        TraceHandle
    """
    with exposure_tracer.trace_context() as handle:
        yield handle
