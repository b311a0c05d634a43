"""Slash command for inspecting or switching the chat model."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ..catalog import ModelCatalog
from ..models import DEFAULT_EFFORT, build_model_items, parse_effort
from ..overlay import LOCKED_HEADING, ModelOverlay
from ..session import ChatSession
from ..slash_commands import SlashCommand, SlashCommandContext, render_rich
from ..typeahead import PromptTypeahead, run_overlay

logger = logging.getLogger(__name__)

USAGE = "[model] usage: /model, /model list, or /model set <name> [low|medium|high]"


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    session = context.require_session()
    catalog = context.catalog
    if catalog is None:
        return "[model] model catalog is not available."

    if not args:
        return _run_selector(session, catalog, context.typeahead or PromptTypeahead())

    subcommand = args[0].lower()
    if subcommand == "list":
        return _render_model_list(session, catalog)
    if subcommand == "set" and len(args) >= 2:
        return _set_model(session, catalog, args[1], args[2] if len(args) > 2 else None)
    return USAGE


def _run_selector(session: ChatSession, catalog: ModelCatalog, widget: PromptTypeahead) -> str:
    outcome: Dict[str, Any] = {}

    def on_select(model: str, effort=None) -> None:
        outcome["model"] = model
        outcome["effort"] = effort

    def on_exit() -> None:
        outcome["exited"] = True

    overlay = ModelOverlay(
        session.model,
        catalog=catalog,
        on_select=on_select,
        on_exit=on_exit,
        has_prior_response=session.has_prior_response,
        current_effort=session.effort,
        is_reasoning=session.is_reasoning,
    )
    try:
        asyncio.run(run_overlay(overlay, widget))
    except KeyboardInterrupt:
        overlay.dismiss()
        logger.info("Model selector interrupted")

    if "model" not in outcome:
        return f"[model] keeping '{session.model}'."
    session.apply_selection(outcome["model"], outcome["effort"])
    return _switched_message(session)


def _set_model(
    session: ChatSession,
    catalog: ModelCatalog,
    model: str,
    raw_effort: Optional[str],
) -> str:
    if session.has_prior_response:
        return f"[model] {LOCKED_HEADING}: start a new chat with /new first."

    try:
        effort = parse_effort(raw_effort)
    except ValueError as exc:
        return f"[model] {exc}"

    available = asyncio.run(catalog.fetch_available_models())
    # An empty catalog means it could not be reached; trust the caller then.
    if available and model not in available:
        return f"[model] unable to find model '{model}'."

    if not session.is_reasoning(model):
        session.apply_selection(model, None)
        message = _switched_message(session)
        if effort is not None:
            message += f" Effort '{effort.value}' ignored: effort only applies to reasoning models."
        return message

    session.apply_selection(model, effort or session.effort or DEFAULT_EFFORT)
    return _switched_message(session)


def _switched_message(session: ChatSession) -> str:
    if session.effort:
        return f"[model] switched to '{session.model}' with {session.effort.value} effort."
    return f"[model] switched to '{session.model}'."


def _render_model_list(session: ChatSession, catalog: ModelCatalog) -> str:
    available = asyncio.run(catalog.fetch_available_models())
    items = build_model_items(available, catalog.recommended_models)

    def _render(console: Console) -> None:
        if not items:
            console.print(f"Current model: {session.model}\n\n(no models available from the catalog)")
            return
        table = Table(title="Models", show_header=True, header_style="bold cyan")
        table.add_column("Model")
        table.add_column("", no_wrap=True)
        for item in items:
            table.add_row(item.label, "(active)" if item.value == session.model else "")
        console.print(table)

    return render_rich(_render)


COMMAND = SlashCommand(
    name="model",
    description="Pick the chat model (and effort for reasoning models).",
    handler=_handler,
    usage="/model, /model list, /model set NAME (EFFORT)",
)
