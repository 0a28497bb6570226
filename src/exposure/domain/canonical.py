"""Canonical names for runtime identifiers.

Runtime-generated names carry noise (object ids, host-specific spellings of
nil/boolean types). Canonical names are stable across runs and are used
verbatim as Merge Store keys and values.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Final

# ":0x" + 16 hex digits: identity tag embedded in anonymous object names
GENERATED_ID_PATTERN: Final = re.compile(r":0x[0-9A-Fa-f]{16}")

GENERATED_MARKER: Final = ":(generated)"

# Singleton class of a named object: "#<Class:Name>" (leading "#" optional)
SINGLETON_CLASS_PATTERN: Final = re.compile(r"^#?<Class:([^\s>]+)")

TYPE_ALIASES: Final = MappingProxyType(
    {
        "NilClass": "nil",
        "TrueClass": "Boolean",
        "FalseClass": "Boolean",
        "NoneType": "None",
    }
)


def canonicalize(raw_name: str | None) -> str:
    """Normalize a raw runtime identifier into a stable key.

    Total over all inputs: None becomes "".

    Examples:
        >>> canonicalize("X:0xF2F5EAB2B2D35910")
        'X:(generated)'
        >>> canonicalize("NilClass")
        'nil'
    """
    if not raw_name:
        return ""
    stripped = GENERATED_ID_PATTERN.sub(GENERATED_MARKER, raw_name)
    return TYPE_ALIASES.get(stripped, stripped)


def singleton_name(owner: str) -> str:
    """Singleton class spelling for owner. Formats as a class-level call."""
    return f"#<Class:{owner}>"


def singleton_owner(canonical_name: str) -> str | None:
    """Owner captured from a singleton class name, None for regular names."""
    match = SINGLETON_CLASS_PATTERN.match(canonical_name)
    if match is None:
        return None
    return match.group(1)
