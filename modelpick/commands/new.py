"""Slash command for starting a fresh chat."""

from __future__ import annotations

from typing import List

from ..slash_commands import SlashCommand, SlashCommandContext


def _handler(context: SlashCommandContext, _: List[str]) -> str:
    session = context.require_session()
    session.reset()
    return f"[new] started a new chat with '{session.model}'. Use /model to switch models."


COMMAND = SlashCommand(
    name="new",
    description="Start a new chat; the model can be changed again afterwards.",
    handler=_handler,
)
