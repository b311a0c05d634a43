"""Interactive model selector: list, effort, and locked screens.

The overlay owns no rendering. It exposes the active screen through
``ModelOverlay.view()`` and receives the user's decisions through the
callbacks bound into that view (or ``handle_key`` for the locked screen).
Exactly one of ``on_select``/``on_exit`` fires per overlay; after that the
overlay is closed and ignores every further event.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Callable, List, Optional, Sequence, Union

from rich.text import Text

from .catalog import ModelCatalog
from .gating import is_locked
from .models import (
    DEFAULT_EFFORT,
    EFFORT_ITEMS,
    ModelEffort,
    ReasoningPredicate,
    SelectableItem,
    build_model_items,
    is_reasoning_family,
    parse_effort,
)

logger = logging.getLogger(__name__)

MODEL_TITLE = "Switch model"
EFFORT_TITLE = "Select model effort"
LOCKED_HEADING = "Unable to switch model"
LOCKED_BODY = (
    "You can only pick a model before the assistant sends its first response. "
    "To use a different model please start a new chat."
)
LOCKED_FOOTER = "press esc or enter to close"
HIGHLIGHT_STYLE = "bright_green"

OnSelect = Callable[..., None]
OnExit = Callable[[], None]


class KeyEvent(str, Enum):
    CANCEL = "cancel"
    CONFIRM = "confirm"


@dataclass
class LockedState:
    """Switching is disallowed; only a dismiss is accepted."""


@dataclass
class ModelListState:
    items: List[SelectableItem] = field(default_factory=list)
    current_value: str = ""


@dataclass
class EffortListState:
    pending_model: str
    current_value: str = DEFAULT_EFFORT.value
    items: List[SelectableItem] = field(default_factory=lambda: list(EFFORT_ITEMS))


OverlayState = Union[LockedState, ModelListState, EffortListState]


@dataclass(frozen=True)
class LockedView:
    heading: str = LOCKED_HEADING
    body: str = LOCKED_BODY
    footer: str = LOCKED_FOOTER


@dataclass
class TypeaheadView:
    """Everything a typeahead list widget needs to render one screen."""

    title: str
    description: Text
    items: Sequence[SelectableItem]
    current_value: str
    on_select: Callable[[str], None]
    on_exit: Callable[[], None]


OverlayView = Union[LockedView, TypeaheadView]


class ModelOverlay:
    """State machine behind the ``/model`` selector."""

    def __init__(
        self,
        current_model: str,
        *,
        catalog: ModelCatalog,
        on_select: OnSelect,
        on_exit: OnExit,
        has_prior_response: bool = False,
        current_effort: Union[ModelEffort, str, None] = None,
        is_reasoning: ReasoningPredicate = is_reasoning_family,
    ) -> None:
        if not isinstance(current_model, str) or not current_model.strip():
            raise ValueError("current_model must be a non-empty model identifier.")
        if not callable(on_select) or not callable(on_exit):
            raise TypeError("on_select and on_exit must be callable.")
        if not callable(is_reasoning):
            raise TypeError("is_reasoning must be callable.")

        self.current_model = current_model
        self.current_effort = parse_effort(current_effort)
        self._catalog = catalog
        self._on_select = on_select
        self._on_exit = on_exit
        self._is_reasoning = is_reasoning

        # Gating is decided once per overlay; callers remount to re-evaluate.
        self._locked = is_locked(has_prior_response)
        self._model_state = ModelListState(items=[], current_value=current_model)
        self._state: OverlayState = LockedState() if self._locked else self._model_state
        self._selected_model = current_model
        self._mounted = False
        self._closed = False
        self._load_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> OverlayState:
        return self._state

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> bool:
        return self._mounted and not self._closed

    @property
    def pending_load(self) -> Optional[asyncio.Task]:
        return self._load_task

    def mount(self) -> None:
        """Start the overlay and kick off the catalog fetch without waiting for it.

        Must be called from a running event loop.
        """

        if self._mounted or self._closed:
            return
        self._mounted = True
        if self._locked:
            logger.info("Model switch requested after first response; overlay locked")
            return
        loop = asyncio.get_running_loop()
        self._load_task = loop.create_task(self._load_models())

    def unmount(self) -> None:
        self._mounted = False

    async def _load_models(self) -> None:
        try:
            available = await self._catalog.fetch_available_models()
        except Exception:
            logger.warning("Model catalog fetch failed; keeping the current list", exc_info=True)
            return

        if not self.active:
            logger.debug("Discarding model catalog result for a closed overlay")
            return
        self.apply_available_models(available)

    def apply_available_models(self, available: Sequence[str]) -> None:
        """Replace the model list with the ordered catalog result."""

        if self._closed or self._locked:
            return
        items = build_model_items(available, self._catalog.recommended_models)
        refreshed = ModelListState(items=items, current_value=self._model_state.current_value)
        if self._state is self._model_state:
            self._state = refreshed
        self._model_state = refreshed
        logger.debug("Model list refreshed with %d item(s)", len(items))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def commit_model(self, value: str) -> None:
        if self._closed or not isinstance(self._state, ModelListState):
            return
        self._selected_model = value
        if self._is_reasoning(value):
            effort = self.current_effort or DEFAULT_EFFORT
            self._state = EffortListState(pending_model=value, current_value=effort.value)
            return
        self._finish_select(value, None)

    def cancel_model(self) -> None:
        if self._closed or not isinstance(self._state, ModelListState):
            return
        self._finish_exit()

    def commit_effort(self, value: str) -> None:
        state = self._state
        if self._closed or not isinstance(state, EffortListState):
            return
        self._finish_select(state.pending_model, parse_effort(value))

    def cancel_effort(self) -> None:
        if self._closed or not isinstance(self._state, EffortListState):
            return
        self._state = self._model_state

    def dismiss(self) -> None:
        """Close from whichever screen is showing, keeping the current model (Ctrl-C)."""

        if self._closed:
            return
        self._finish_exit()

    def handle_key(self, key: KeyEvent) -> None:
        """Handle keys the overlay reacts to directly; list keys belong to the widget."""

        if self._closed:
            return
        state = self._state
        if isinstance(state, LockedState):
            if key in (KeyEvent.CANCEL, KeyEvent.CONFIRM):
                self._finish_exit()
        elif isinstance(state, EffortListState):
            if key is KeyEvent.CANCEL:
                self.cancel_effort()

    def _finish_select(self, model: str, effort: Optional[ModelEffort]) -> None:
        self._closed = True
        logger.info("Model selected: %s (effort: %s)", model, effort.value if effort else "-")
        if effort is None:
            self._on_select(model)
        else:
            self._on_select(model, effort)

    def _finish_exit(self) -> None:
        self._closed = True
        logger.info("Model overlay dismissed without a selection")
        self._on_exit()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def view(self) -> OverlayView:
        state = self._state
        if isinstance(state, LockedState):
            return LockedView()
        if isinstance(state, EffortListState):
            return TypeaheadView(
                title=EFFORT_TITLE,
                description=self._effort_description(),
                items=list(state.items),
                current_value=state.current_value,
                on_select=self.commit_effort,
                on_exit=self.cancel_effort,
            )
        if isinstance(state, ModelListState):
            return TypeaheadView(
                title=MODEL_TITLE,
                description=self._model_description(),
                items=list(state.items),
                current_value=state.current_value,
                on_select=self.commit_model,
                on_exit=self.cancel_model,
            )
        raise TypeError(f"Unhandled overlay state: {state!r}")

    def _model_description(self) -> Text:
        description = Text.assemble("Current model: ", (self.current_model, HIGHLIGHT_STYLE))
        if self.current_effort and self._is_reasoning(self._selected_model):
            description.append_text(
                Text.assemble(" (Effort: ", (self.current_effort.value, HIGHLIGHT_STYLE), ")")
            )
        return description

    def _effort_description(self) -> Text:
        effort = self.current_effort or DEFAULT_EFFORT
        return Text.assemble("Current effort: ", (effort.value, HIGHLIGHT_STYLE))


__all__ = [
    "EFFORT_TITLE",
    "EffortListState",
    "KeyEvent",
    "LOCKED_BODY",
    "LOCKED_FOOTER",
    "LOCKED_HEADING",
    "LockedState",
    "LockedView",
    "MODEL_TITLE",
    "ModelListState",
    "ModelOverlay",
    "OverlayState",
    "OverlayView",
    "TypeaheadView",
]
