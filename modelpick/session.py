"""Chat session state owned by the shell."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import List, Literal, Optional, Union

from .models import ModelEffort, ReasoningPredicate, is_reasoning_family, parse_effort

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]


@dataclass
class ChatTurn:
    role: Role
    content: str
    model: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class ChatSession:
    """The active model choice plus the conversation recorded so far."""

    model: str
    effort: Optional[ModelEffort] = None
    transcript: List[ChatTurn] = field(default_factory=list)
    is_reasoning: ReasoningPredicate = is_reasoning_family

    def __post_init__(self) -> None:
        self.effort = parse_effort(self.effort)
        if not self.is_reasoning(self.model):
            self.effort = None

    @property
    def has_prior_response(self) -> bool:
        return any(turn.role == "assistant" for turn in self.transcript)

    @property
    def response_count(self) -> int:
        return sum(1 for turn in self.transcript if turn.role == "assistant")

    def record_user(self, content: str) -> ChatTurn:
        turn = ChatTurn(role="user", content=content, model=self.model)
        self.transcript.append(turn)
        return turn

    def record_response(self, content: str) -> ChatTurn:
        turn = ChatTurn(role="assistant", content=content, model=self.model)
        self.transcript.append(turn)
        return turn

    def apply_selection(
        self,
        model: str,
        effort: Union[ModelEffort, str, None] = None,
    ) -> None:
        """Store a finalized choice; effort is dropped for non-reasoning models."""

        self.model = model
        self.effort = parse_effort(effort) if self.is_reasoning(model) else None
        logger.info(
            "Session model set to %s (effort: %s)",
            self.model,
            self.effort.value if self.effort else "-",
        )

    def reset(self) -> None:
        """Start a new chat with the same model so it can be switched again."""

        self.transcript.clear()
        logger.info("Started a new chat with model %s", self.model)


__all__ = ["ChatSession", "ChatTurn"]
