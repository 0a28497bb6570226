"""Runtime collectors.

Collectors subscribe to interpreter events and drive a CallStack:
- sys.monitoring (PEP 669) for function entry/exit, class bodies, blocks
"""

from exposure.application.collectors.classifier import CodeRole, classify_code
from exposure.application.collectors.constants import (
    EXPOSURE_TOOL_ID,
    EXPOSURE_TOOL_NAME,
)
from exposure.application.collectors.type_collector import (
    CollectionSummary,
    TypeCollector,
    describe_type,
)

__all__ = [
    # Constants
    "EXPOSURE_TOOL_ID",
    "EXPOSURE_TOOL_NAME",
    # Classifier
    "CodeRole",
    "classify_code",
    # Collectors
    "CollectionSummary",
    "TypeCollector",
    "describe_type",
]
