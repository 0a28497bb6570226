"""Constants for the sys.monitoring collector.

Python 3.12+ sys.monitoring tool IDs:
- 0: sys.monitoring.DEBUGGER_ID
- 1: sys.monitoring.COVERAGE_ID
- 2: sys.monitoring.PROFILER_ID
- 5: sys.monitoring.OPTIMIZER_ID
- 3, 4: Available for user tools

We use ID 4 for exposure.
"""

from typing import Final

# sys.monitoring tool ID for exposure
EXPOSURE_TOOL_ID: Final = 4

# Tool name registered with sys.monitoring
EXPOSURE_TOOL_NAME: Final = "exposure"
