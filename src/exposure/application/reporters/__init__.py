"""Reporters for recorded type observations.

Reporters render a StoreSnapshot and return str; callers decide destination.
"""

from exposure.application.reporters.console import ConsoleConfig, ConsoleReporter
from exposure.application.reporters.json_reporter import JsonReporter

__all__ = [
    "ConsoleConfig",
    "ConsoleReporter",
    "JsonReporter",
]
