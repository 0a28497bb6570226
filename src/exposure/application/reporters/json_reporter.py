"""JSON reporter: StoreSnapshot → JSON string."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from exposure.domain.model.snapshot import StoreSnapshot


class JsonReporter:
    """JSON reporter: outputs machine-readable JSON.

    Schema:
        {"signatures": {sig: {"locals": {var: [types]}, "returns": [types] | null}},
         "summary": {"signatures": n, "locals": n, "returns": n}}
    Type lists are sorted for stable output.
    """

    def __init__(self, *, indent: int | None = 2) -> None:
        """Initialize reporter.

        Args:
            indent: JSON indentation. None for compact output.
        """
        self._indent = indent

    def report(self, snapshot: StoreSnapshot) -> str:
        """Format snapshot as JSON string."""
        signatures: dict[str, dict[str, object]] = {}
        for signature in snapshot.signatures:
            variables = snapshot.locals.get(signature, {})
            returns = snapshot.returns.get(signature)
            signatures[signature] = {
                "locals": {name: sorted(types) for name, types in sorted(variables.items())},
                "returns": None if returns is None else sorted(returns),
            }

        data = {
            "signatures": signatures,
            "summary": {
                "signatures": len(signatures),
                "locals": sum(len(v) for v in snapshot.locals.values()),
                "returns": len(snapshot.returns),
            },
        }
        return json.dumps(data, indent=self._indent)
