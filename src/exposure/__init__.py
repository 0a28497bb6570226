"""exposure - record the types that actually flow through Python code at runtime."""

__version__ = "0.1.0"

from exposure.application.services.call_stack import CallStack
from exposure.application.services.tracer import TracerService
from exposure.domain.model.configuration import ExposureConfig

__all__ = ["CallStack", "ExposureConfig", "TracerService", "__version__"]
