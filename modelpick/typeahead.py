"""Line-oriented typeahead list for the terminal, rendered with Rich."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import SelectableItem
from .overlay import KeyEvent, LockedView, ModelOverlay, TypeaheadView

CANCEL_INPUTS = {"esc", "escape", ":q"}
CLEAR_FILTER_INPUT = "/"
DEFAULT_PROMPT = "select> "
LIST_HINT = "type to filter, / to clear, number or enter to pick, esc to cancel"


def filter_items(items: Sequence[SelectableItem], query: str) -> List[SelectableItem]:
    """Keep items whose label contains the query's characters in order (case-insensitive)."""

    needle = query.strip().lower()
    if not needle:
        return list(items)
    return [item for item in items if _is_subsequence(needle, item.label.lower())]


def _is_subsequence(needle: str, haystack: str) -> bool:
    remaining = iter(haystack)
    return all(char in remaining for char in needle)


def highlighted_item(
    items: Sequence[SelectableItem],
    current_value: str,
) -> Optional[SelectableItem]:
    """The row Enter would pick: the current value if visible, else the first row."""

    for item in items:
        if item.value == current_value:
            return item
    return items[0] if items else None


def _picks_row(raw: str) -> bool:
    text = raw.strip()
    return not text or text.isdigit()


def _list_changed(shown: TypeaheadView, latest: object) -> bool:
    if not isinstance(latest, TypeaheadView) or latest.title != shown.title:
        return False
    return list(latest.items) != list(shown.items)


class PromptTypeahead:
    """Drive overlay screens one input line at a time.

    Input is read on a worker thread so background work on the event loop
    (the model catalog fetch) keeps running while the user types.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        read_line: Callable[[str], str] = input,
        prompt: str = DEFAULT_PROMPT,
    ) -> None:
        self.console = console or Console()
        self.prompt = prompt
        self.query = ""
        self._read_line = read_line
        self._active_title: Optional[str] = None

    async def interact(self, overlay: ModelOverlay) -> None:
        """Render the overlay's current screen and apply one line of input."""

        view = overlay.view()
        if isinstance(view, LockedView):
            self.render_locked(view)
            key = self.parse_key(await self._read())
            if key is not None:
                overlay.handle_key(key)
            return

        if view.title != self._active_title:
            self._active_title = view.title
            self.query = ""
        self.render_list(view)
        raw = await self._read()

        # Row numbers and Enter refer to the rows that were on screen.
        if raw is not None and _picks_row(raw) and _list_changed(view, overlay.view()):
            self.console.print("[yellow]The model list was refreshed; pick again.[/yellow]")
            return
        self.dispatch(view, raw)

    async def _read(self) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read_line, self.prompt)
        except (EOFError, KeyboardInterrupt):
            return None

    @staticmethod
    def parse_key(raw: Optional[str]) -> Optional[KeyEvent]:
        if raw is None:
            return KeyEvent.CANCEL
        text = raw.strip().lower()
        if text in CANCEL_INPUTS:
            return KeyEvent.CANCEL
        if not text:
            return KeyEvent.CONFIRM
        return None

    def dispatch(self, view: TypeaheadView, raw: Optional[str]) -> None:
        """Apply one line of input to a list screen."""

        if raw is None or raw.strip().lower() in CANCEL_INPUTS:
            self.query = ""
            view.on_exit()
            return

        text = raw.strip()
        if text == CLEAR_FILTER_INPUT:
            self.query = ""
            return

        visible = filter_items(view.items, self.query)
        if not text:
            choice = highlighted_item(visible, view.current_value)
            if choice is None:
                self.console.print("[yellow]Nothing to select yet.[/yellow]")
                return
            self.query = ""
            view.on_select(choice.value)
            return

        if text.isdigit():
            index = int(text) - 1
            if not 0 <= index < len(visible):
                self.console.print(f"[yellow]No item numbered {text}.[/yellow]")
                return
            self.query = ""
            view.on_select(visible[index].value)
            return

        self.query = text

    def render_list(self, view: TypeaheadView) -> None:
        visible = filter_items(view.items, self.query)
        choice = highlighted_item(visible, view.current_value)

        rows = Table.grid(padding=(0, 1))
        rows.add_column(style="dim", justify="right", no_wrap=True)
        rows.add_column()
        for index, item in enumerate(visible, start=1):
            pointer = "›" if choice is not None and item.value == choice.value else " "
            style = "bold bright_green" if item.value == view.current_value else ""
            rows.add_row(str(index), Text(f"{pointer} {item.label}", style=style))

        parts: List = [view.description, Text()]
        if visible:
            parts.append(rows)
        elif self.query:
            parts.append(Text(f"(no matches for '{self.query}')", style="dim"))
        else:
            parts.append(Text("(loading models…)", style="dim"))
        if self.query:
            parts.append(Text(f"filter: {self.query}", style="cyan"))
        parts.append(Text(LIST_HINT, style="dim"))

        self.console.print(
            Panel(Group(*parts), title=view.title, border_style="cyan", padding=(0, 1))
        )

    def render_locked(self, view: LockedView) -> None:
        self.console.print(
            Panel(
                Group(
                    Text(view.heading, style="bold red"),
                    Text(view.body),
                    Text(view.footer, style="dim"),
                ),
                border_style="grey50",
                width=80,
                padding=(0, 1),
            )
        )


async def run_overlay(overlay: ModelOverlay, widget: PromptTypeahead) -> None:
    """Run one overlay lifecycle to completion.

    Ctrl-C lands on the main thread while the reader thread is blocked, and
    ``asyncio.run`` turns it into a cancellation of this task. The overlay is
    dismissed before the cancellation propagates so ``on_exit`` still fires.
    """

    overlay.mount()
    try:
        while not overlay.closed:
            await widget.interact(overlay)
    except asyncio.CancelledError:
        overlay.dismiss()
        raise
    finally:
        overlay.unmount()


__all__ = [
    "PromptTypeahead",
    "filter_items",
    "highlighted_item",
    "run_overlay",
]
