"""
Interactive chat shell for modelpick.

The shell keeps one chat session, routes ``/commands`` to the slash command
router, and records everything else as chat turns. There is no model backend:
replies come from an offline responder so the session behaves like a real run
(the first reply locks the model choice).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
try:
    import readline
except ImportError:  # pragma: no cover
    readline = None
from shutil import get_terminal_size
from typing import Callable, Optional

from rich.console import Console
from rich.text import Text

from .catalog import ModelCatalog, build_catalog
from .commands import COMMANDS
from .configuration import ConfigurationBundle, Diagnostic, load_runtime_configuration
from .logging_utils import setup_logging
from .models import reasoning_predicate
from .session import ChatSession
from .slash_commands import CommandRouter
from .typeahead import PromptTypeahead

logger = logging.getLogger("modelpick")
TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}

Responder = Callable[[ChatSession, str], str]


def _log_path_within_home(log_path: Path, home_dir: Path) -> bool:
    try:
        log_path.relative_to(home_dir)
        return True
    except ValueError:
        return False


def print_banner(session: ChatSession) -> None:
    """Print the shell header with the active model."""

    terminal_width = get_terminal_size(fallback=(80, 24)).columns
    effort = f" · {session.effort.value} effort" if session.effort else ""
    title = f"modelpick :: {session.model}{effort}"

    if terminal_width >= 60:
        inner_width = 58
        print("╭" + "─" * inner_width + "╮")
        print(f"│{title.center(inner_width)}│")
        print(f"│{'/help for commands · /model to switch'.center(inner_width)}│")
        print("╰" + "─" * inner_width + "╯")
    else:
        print(title)
    print()


def _parse_env_flag(value: str, *, default: bool = True) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_STRINGS:
        return True
    if normalized in FALSE_STRINGS:
        return False
    return default


def _resolve_ui_verbose(config_bundle: ConfigurationBundle) -> bool:
    """Resolve whether the shell prints the banner and configuration report."""

    env_value = os.environ.get("MODELPICK_UI_VERBOSE")
    if env_value is not None:
        return _parse_env_flag(env_value)

    verbose_setting = config_bundle.section("ui").get("verbose")
    if verbose_setting is None:
        return True
    return bool(verbose_setting)


def _resolve_log_level(config_bundle: ConfigurationBundle) -> str:
    env_level = os.environ.get("MODELPICK_LOG_LEVEL")
    configured_level = config_bundle.section("logging").get("level")
    return (env_level or configured_level or "WARNING").upper()


def build_session(config_bundle: ConfigurationBundle) -> ChatSession:
    """Start a chat session from the ``models`` config section."""

    models_cfg = config_bundle.section("models")
    return ChatSession(
        model=models_cfg.get("default") or "o4-mini",
        effort=models_cfg.get("effort"),
        is_reasoning=reasoning_predicate(models_cfg.get("reasoning_prefixes") or ["o"]),
    )


def build_router(
    config: ConfigurationBundle,
    session: ChatSession,
    catalog: ModelCatalog,
    typeahead: Optional[PromptTypeahead] = None,
) -> CommandRouter:
    """Register the built-in commands and share the session with them."""

    router = CommandRouter(config, session=session, catalog=catalog, typeahead=typeahead)
    for command in COMMANDS:
        router.register(command)
    return router


def emit_configuration_report(config: ConfigurationBundle) -> None:
    """Print diagnostics so users can correct issues quickly."""

    if not config.diagnostics:
        print(f"[config] Loaded {len(config.files_loaded)} file(s).")
        return

    print("[config] Diagnostics:")
    for diag in config.diagnostics:
        prefix = diag.source or config.home_dir
        print(f"  - ({diag.level.upper()}) {diag.message} [{prefix}]")


def configure_autocomplete(router: CommandRouter) -> None:
    """Enable readline tab completion for slash commands."""

    if readline is None:
        return

    commands = list(router.command_names)

    def completer(text: str, state: int):
        buffer = readline.get_line_buffer()
        if not buffer.startswith("/"):
            return None
        fragment = text[1:] if text.startswith("/") else text
        matches = [f"/{cmd}" for cmd in commands if cmd.startswith(fragment)]
        if state < len(matches):
            return matches[state]
        return None

    readline.set_completer(completer)
    readline.parse_and_bind("tab: complete")
    readline.set_completer_delims(" \t")


def respond_offline(session: ChatSession, prompt: str) -> str:
    """Stand-in reply used when no model backend is attached."""

    effort = f", {session.effort.value} effort" if session.effort else ""
    return (
        f"(offline) {session.model}{effort} would answer: {prompt!r}. "
        "Start a new chat with /new to pick a different model."
    )


def handle_line(
    line: str,
    router: CommandRouter,
    session: ChatSession,
    *,
    responder: Responder = respond_offline,
) -> str:
    """Route one line of input and return what should be shown."""

    stripped = line.strip()
    if not stripped:
        return ""

    if stripped.startswith("/"):
        logger.info("Executing slash command: %s", stripped)
        return router.dispatch(stripped) or ""

    session.record_user(stripped)
    reply = responder(session, stripped)
    session.record_response(reply)
    logger.info("Recorded response #%d from %s", session.response_count, session.model)
    return reply


def main() -> None:
    """Entry point for the ``modelpick`` console script."""

    console = Console()
    config_bundle = load_runtime_configuration()
    log_path = setup_logging(config_bundle.home_dir, _resolve_log_level(config_bundle))
    config_bundle.log_path = log_path
    if not _log_path_within_home(log_path, config_bundle.home_dir):
        config_bundle.diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"Home log directory is not writable; logging to '{log_path}'.",
                source=log_path,
            )
        )

    session = build_session(config_bundle)
    catalog = build_catalog(config_bundle)
    ui_verbose = _resolve_ui_verbose(config_bundle)
    if ui_verbose:
        print_banner(session)
        emit_configuration_report(config_bundle)
    logger.info("Logging initialized at %s", log_path)

    router = build_router(config_bundle, session, catalog, PromptTypeahead(console=console))
    configure_autocomplete(router)

    while True:
        try:
            raw_line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print("\n[Exiting]")
            break

        if raw_line.strip().lower() in {"quit", "exit", "/quit", "/exit"}:
            print("[Goodbye]")
            break

        try:
            output = handle_line(raw_line, router, session)
        except KeyboardInterrupt:
            print("\n[Interrupted]")
            continue
        if not output:
            continue
        if raw_line.strip().startswith("/"):
            print(output)
        else:
            console.print()
            console.print(Text(f"[{session.model}]", style="bold cyan"))
            console.print(output)
            console.print()
