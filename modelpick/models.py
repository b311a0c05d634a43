"""Model identifiers, effort levels, and the selectable model list."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

ReasoningPredicate = Callable[[str], bool]

RECOMMENDED_MODELS: Tuple[str, ...] = ("o4-mini", "o3")
RECOMMENDED_MARKER = "⭐"
REASONING_PREFIXES: Tuple[str, ...] = ("o",)


class ModelEffort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_EFFORT = ModelEffort.MEDIUM


@dataclass(frozen=True)
class SelectableItem:
    """One row of a selectable list: what the user sees and what it maps to."""

    label: str
    value: str


EFFORT_ITEMS: Tuple[SelectableItem, ...] = (
    SelectableItem(label="Low Effort", value=ModelEffort.LOW.value),
    SelectableItem(label="Medium Effort", value=ModelEffort.MEDIUM.value),
    SelectableItem(label="High Effort", value=ModelEffort.HIGH.value),
)


def parse_effort(value: Union[ModelEffort, str, None]) -> Optional[ModelEffort]:
    """Coerce an effort from config or user input; ``None`` stays ``None``."""

    if value is None or isinstance(value, ModelEffort):
        return value
    if isinstance(value, str):
        try:
            return ModelEffort(value.strip().lower())
        except ValueError:
            pass
    choices = ", ".join(effort.value for effort in ModelEffort)
    raise ValueError(f"Unknown effort level {value!r}; expected one of: {choices}.")


def is_reasoning_family(model_id: str) -> bool:
    """Reasoning models are recognised purely by their ``o`` prefix."""

    return model_id.startswith("o")


def reasoning_predicate(prefixes: Sequence[str] = REASONING_PREFIXES) -> ReasoningPredicate:
    """Build a reasoning-family check for a configured set of id prefixes."""

    normalized = tuple(prefix for prefix in prefixes if prefix)
    if normalized == REASONING_PREFIXES:
        return is_reasoning_family

    def _predicate(model_id: str) -> bool:
        return model_id.startswith(normalized) if normalized else False

    return _predicate


def recommended_label(model_id: str) -> str:
    return f"{RECOMMENDED_MARKER} {model_id}"


def build_model_items(
    available: Iterable[str],
    recommended: Sequence[str] = RECOMMENDED_MODELS,
) -> List[SelectableItem]:
    """Order the available models: recommended first (in the given order), then the rest sorted.

    Every available model appears exactly once. Recommended models that are not
    available are left out.
    """

    available_set = set(available)
    seen = set()
    featured: List[str] = []
    for model_id in recommended:
        if model_id in available_set and model_id not in seen:
            featured.append(model_id)
            seen.add(model_id)

    others = sorted(available_set - seen)

    items = [SelectableItem(label=recommended_label(m), value=m) for m in featured]
    items.extend(SelectableItem(label=m, value=m) for m in others)
    return items


__all__ = [
    "DEFAULT_EFFORT",
    "EFFORT_ITEMS",
    "ModelEffort",
    "REASONING_PREFIXES",
    "RECOMMENDED_MARKER",
    "RECOMMENDED_MODELS",
    "ReasoningPredicate",
    "SelectableItem",
    "build_model_items",
    "is_reasoning_family",
    "parse_effort",
    "reasoning_predicate",
    "recommended_label",
]
