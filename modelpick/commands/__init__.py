"""Slash command registry."""

from __future__ import annotations

from .help import COMMAND as HELP_COMMAND
from .model import COMMAND as MODEL_COMMAND
from .new import COMMAND as NEW_COMMAND
from .status import COMMAND as STATUS_COMMAND

COMMANDS = [
    STATUS_COMMAND,
    HELP_COMMAND,
    MODEL_COMMAND,
    NEW_COMMAND,
]

__all__ = ["COMMANDS"]
