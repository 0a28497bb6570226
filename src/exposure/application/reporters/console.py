"""Console reporter: StoreSnapshot → rich formatted string."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from exposure.domain.model.snapshot import StoreSnapshot


@dataclass(frozen=True, slots=True)
class ConsoleConfig:
    """Configuration for console reporter.

    All fields have defaults. Immutable (frozen dataclass).

    Attributes:
        include_signatures: fnmatch patterns on signatures. Empty = all.
        width: Console width in columns.
        color: Emit ANSI color codes.
    """

    include_signatures: tuple[str, ...] = ()
    width: int = 120
    color: bool = True


class ConsoleReporter:
    """Console reporter: one table of observed types per call site.

    Output is str, not print(). Caller decides destination.
    """

    def __init__(self, config: ConsoleConfig | None = None) -> None:
        """Initialize reporter.

        Args:
            config: Reporter configuration. Uses defaults if None.
        """
        self._config = config or ConsoleConfig()

    def report(self, snapshot: StoreSnapshot) -> str:
        """Format snapshot as rich formatted string.

        Args:
            snapshot: Store contents to format.

        Returns:
            Formatted string with one table per signature.
        """
        output = StringIO()
        console = Console(
            file=output,
            force_terminal=self._config.color,
            no_color=not self._config.color,
            width=self._config.width,
        )

        signatures = self._filter_signatures(snapshot.signatures)

        console.print()
        console.rule("[bold]OBSERVED TYPES[/bold]")
        console.print()
        console.print(f"[bold]Call sites:[/bold] {len(signatures)}")
        console.print()

        for signature in signatures:
            self._render_signature(console, snapshot, signature)

        return output.getvalue()

    def _filter_signatures(self, signatures: tuple[str, ...]) -> tuple[str, ...]:
        """Filter signatures by config. Only explicit config filters applied."""
        patterns = self._config.include_signatures
        if not patterns:
            return signatures
        return tuple(s for s in signatures if any(fnmatch.fnmatchcase(s, p) for p in patterns))

    def _render_signature(self, console: Console, snapshot: StoreSnapshot, signature: str) -> None:
        """Render locals and return types of one call site."""
        table = Table(title=escape(signature), title_justify="left", show_edge=False)
        table.add_column("Name", style="cyan")
        table.add_column("Types", style="yellow")

        for variable, types in sorted(snapshot.locals.get(signature, {}).items()):
            table.add_row(escape(variable), _join_types(types))

        returns = snapshot.returns.get(signature)
        if returns is not None:
            table.add_row("[bold]return[/bold]", _join_types(returns))

        console.print(table)
        console.print()


def _join_types(types: frozenset[str]) -> str:
    """Union-style type list."""
    return escape(" | ".join(sorted(types)))
