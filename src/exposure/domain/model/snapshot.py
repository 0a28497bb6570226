"""Read-back view of a Merge Store."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class StoreSnapshot:
    """Immutable snapshot of everything recorded so far.

    Attributes:
        locals: Signature -> variable name -> observed types.
        returns: Signature -> observed return types.
    """

    locals: Mapping[str, Mapping[str, frozenset[str]]]
    returns: Mapping[str, frozenset[str]]

    @property
    def signatures(self) -> tuple[str, ...]:
        """All recorded signatures, sorted."""
        return tuple(sorted(set(self.locals) | set(self.returns)))

    def is_empty(self) -> bool:
        """Check if nothing has been recorded."""
        return not self.locals and not self.returns

    @classmethod
    def empty(cls) -> StoreSnapshot:
        """Snapshot of a store with no records."""
        return cls(locals=MappingProxyType({}), returns=MappingProxyType({}))
