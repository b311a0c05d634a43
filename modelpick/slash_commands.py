"""Slash command routing for the chat shell.

Every command receives a ``SlashCommandContext`` carrying the chat session,
the model catalog and the selector widget the shell was started with, and
returns the text to show (often a Rich layout rendered to ANSI).
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from io import StringIO
import shutil
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .catalog import ModelCatalog
from .configuration import ConfigurationBundle
from .session import ChatSession

if TYPE_CHECKING:
    from .typeahead import PromptTypeahead

SlashCommandHandler = Callable[["SlashCommandContext", List[str]], str]


class MissingSessionError(LookupError):
    """Raised when a command needs the chat session but the router has none."""


@dataclass
class SlashCommandContext:
    """What a command handler can reach: config, router, and the running chat."""

    config: ConfigurationBundle
    router: "CommandRouter"
    session: Optional[ChatSession] = None
    catalog: Optional[ModelCatalog] = None
    typeahead: Optional["PromptTypeahead"] = None

    def require_session(self) -> ChatSession:
        if self.session is None:
            raise MissingSessionError("chat session is not available.")
        return self.session


@dataclass
class SlashCommand:
    name: str
    description: str
    handler: SlashCommandHandler
    usage: str = ""


def parse_command_line(line: str) -> Optional[Tuple[str, List[str]]]:
    """Split ``/name arg ...`` into ``(name, args)``; ``None`` for anything else."""

    stripped = line.strip()
    if not stripped.startswith("/"):
        return None
    parts = stripped[1:].split()
    if not parts:
        return None
    return parts[0], parts[1:]


class CommandRouter:
    """Registry and dispatcher for the shell's slash commands."""

    def __init__(
        self,
        config: ConfigurationBundle,
        *,
        session: Optional[ChatSession] = None,
        catalog: Optional[ModelCatalog] = None,
        typeahead: Optional["PromptTypeahead"] = None,
    ) -> None:
        self.config = config
        self.session = session
        self.catalog = catalog
        self.typeahead = typeahead
        self._commands: Dict[str, SlashCommand] = {}

    def register(self, command: SlashCommand) -> None:
        self._commands[command.name.lower()] = command

    def context(self) -> SlashCommandContext:
        return SlashCommandContext(
            config=self.config,
            router=self,
            session=self.session,
            catalog=self.catalog,
            typeahead=self.typeahead,
        )

    def handle(self, command_name: str, args: List[str]) -> str:
        name = command_name.lower().lstrip("/")
        command = self._commands.get(name)
        if command is None:
            return self._unknown(name)
        try:
            return command.handler(self.context(), args)
        except MissingSessionError as exc:
            return f"[{command.name}] {exc}"

    def dispatch(self, line: str) -> Optional[str]:
        """Run a ``/command`` line; ``None`` when the line is not a command."""

        parsed = parse_command_line(line)
        if parsed is None:
            return None
        return self.handle(*parsed)

    def _unknown(self, name: str) -> str:
        suggestions = get_close_matches(name, self._commands.keys(), n=1)
        if suggestions:
            return f"[router] unknown command '/{name}'. Did you mean /{suggestions[0]}?"
        return f"[router] unknown command '/{name}'. Try /help."

    @property
    def command_names(self) -> Sequence[str]:
        return sorted(self._commands)

    def commands(self) -> Sequence[SlashCommand]:
        return [self._commands[name] for name in self.command_names]

    def get(self, command_name: str) -> Optional[SlashCommand]:
        return self._commands.get(command_name.lower().lstrip("/"))


def render_help_table(commands: Sequence[SlashCommand]) -> str:
    def _render(console: Console) -> None:
        table = Table(title="Slash Commands", show_header=True, header_style="bold cyan")
        table.add_column("Command", style="green", no_wrap=True)
        table.add_column("Description")
        for cmd in commands:
            table.add_row(cmd.usage or f"/{cmd.name}", cmd.description)
        console.print(table)

    return render_rich(_render)


def render_rich(render_fn: Callable[[Console], None]) -> str:
    """Render a Rich layout to an ANSI string without printing live."""

    terminal_size = shutil.get_terminal_size(fallback=(80, 24))
    console = Console(
        record=True,
        force_terminal=True,
        width=max(20, terminal_size.columns),
        height=max(10, terminal_size.lines),
        file=StringIO(),
    )
    render_fn(console)
    return console.export_text(styles=True)


__all__ = [
    "CommandRouter",
    "MissingSessionError",
    "SlashCommand",
    "SlashCommandContext",
    "parse_command_line",
    "render_help_table",
    "render_rich",
]
