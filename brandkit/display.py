"""
Display utilities for resolved branding and snapshot verification.

Provides rich formatting for token tables and verification verdicts.
"""

from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from brandkit.types import ResolvedBranding, SnapshotVerification


def display_branding(resolved: ResolvedBranding, console: Console | None = None) -> None:
    """
    Display a resolution as a token table.

    Args:
        resolved: The ResolvedBranding to show.
        console: Optional rich Console instance.

    Example:
        resolved = brandkit.resolve_branding(context, layers)
        display_branding(resolved)
    """
    if console is None:
        console = Console()

    if not resolved.tokens:
        console.print(
            f"[yellow]No tokens resolved for tenant {escape(resolved.tenant_id)}.[/yellow]"
        )
        return

    table = Table(
        title=f"Branding for tenant {escape(resolved.tenant_id)}",
        caption=f"resolved at {resolved.resolved_at} | context {resolved.context_hash[:12]}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Token", style="cyan")
    table.add_column("Value")
    table.add_column("Level", style="magenta")
    table.add_column("Source layer")
    table.add_column("Resolved from", style="dim")

    for key, token in resolved.tokens.items():
        table.add_row(
            escape(key),
            escape(token.value if isinstance(token.value, str) else json.dumps(token.value)),
            token.source_level.value,
            escape(token.source_layer),
            escape(token.resolved_from or ""),
        )

    console.print(table)

    applied = escape(", ".join(resolved.applied_layers)) or "(none)"
    console.print(f"Applied layers: {applied}")


def display_verification(
    result: SnapshotVerification, console: Console | None = None
) -> None:
    """Display a verification verdict in a panel, listing every issue."""
    if console is None:
        console = Console()

    if result.valid:
        console.print(
            Panel(
                "[bold green]Snapshot is valid[/bold green]",
                title="[bold]Verification[/bold]",
                border_style="green",
            )
        )
        return

    lines = [f"[red]- {issue.code.value}[/red]: {escape(issue.message)}" for issue in result.issues]
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]Verification failed ({len(result.issues)} issues)[/bold]",
            border_style="red",
        )
    )
