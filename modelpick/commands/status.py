"""Slash command for session and configuration status."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..slash_commands import SlashCommand, SlashCommandContext, render_rich

SECTION_ALIASES: Dict[str, Sequence[str]] = {
    "session": ("session", "info", "summary"),
    "diagnostics": ("diagnostics", "diag", "diags"),
}
DEFAULT_MAX_ROWS = 5


def _resolve_sections(args: Iterable[str]) -> Tuple[List[str], bool]:
    """Return sections to render and whether all rows should be shown."""

    normalized = [arg.strip().lower() for arg in args]
    show_all = any(arg in {"--all", "-a", "all"} for arg in normalized)

    requested = [
        section
        for section, aliases in SECTION_ALIASES.items()
        if any(arg in aliases for arg in normalized)
    ]
    return requested or list(SECTION_ALIASES.keys()), show_all


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    config = context.config
    session = context.session
    sections, show_all = _resolve_sections(args)

    def _render_session(console: Console) -> None:
        info = Table.grid(padding=(0, 1))
        info.add_column("Key", style="bold", no_wrap=True)
        info.add_column("Value", overflow="fold")
        if session is not None:
            info.add_row("Model", session.model)
            info.add_row("Effort", session.effort.value if session.effort else "-")
            info.add_row("Responses", str(session.response_count))
            info.add_row(
                "Switching",
                "[red]locked (use /new)[/red]" if session.has_prior_response else "[green]available[/green]",
            )
        else:
            info.add_row("Session", "(not started)")
        info.add_row("Home", str(config.home_dir))
        info.add_row("Config", f"{config.status} ({len(config.files_loaded)} file(s))")
        info.add_row("Log path", str(config.log_path or "(not initialized)"))

        console.print(Panel(info, title="Session", border_style="green", padding=(0, 1)))

    def _render_diagnostics(console: Console) -> None:
        if not config.diagnostics:
            console.print(Panel("[green]No diagnostics reported.", title="Diagnostics", border_style="red"))
            return

        diag_table = Table(
            show_header=True,
            header_style="bold red",
            box=box.SIMPLE,
            pad_edge=False,
        )
        diag_table.add_column("Lvl", style="red", no_wrap=True)
        diag_table.add_column("Message", overflow="fold", ratio=2)
        diag_table.add_column("Source", overflow="fold", ratio=1)

        max_rows = len(config.diagnostics) if show_all else DEFAULT_MAX_ROWS
        for diag in config.diagnostics[:max_rows]:
            diag_table.add_row(
                diag.level.upper(),
                Text(diag.message),
                Text(str(diag.source or config.home_dir)),
            )

        console.print(Panel(diag_table, title="Diagnostics", border_style="red", padding=(0, 1)))
        if len(config.diagnostics) > max_rows:
            console.print(
                f"[dim]Showing {max_rows}/{len(config.diagnostics)}. "
                "Use '/status diagnostics --all' for the full list.[/dim]"
            )

    renderers = {
        "session": _render_session,
        "diagnostics": _render_diagnostics,
    }

    def _render(console: Console) -> None:
        for section in sections:
            renderers[section](console)

    return render_rich(_render)


COMMAND = SlashCommand(
    name="status",
    description="Show the active model, lock state, and configuration diagnostics.",
    handler=_handler,
    usage="/status (session | diagnostics) (--all)",
)
