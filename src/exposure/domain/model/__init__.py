"""Domain model: configuration and read-back value objects."""

from exposure.domain.model.configuration import ExposureConfig
from exposure.domain.model.snapshot import StoreSnapshot

__all__ = [
    "ExposureConfig",
    "StoreSnapshot",
]
