"""Tests for model list ordering and effort parsing."""

from __future__ import annotations

import pytest

from modelpick.models import (
    EFFORT_ITEMS,
    ModelEffort,
    SelectableItem,
    build_model_items,
    is_reasoning_family,
    parse_effort,
    reasoning_predicate,
)


def test_recommended_models_come_first_with_marker():
    items = build_model_items({"gpt-4", "o1", "o1-mini"}, ["o1"])

    assert items == [
        SelectableItem(label="⭐ o1", value="o1"),
        SelectableItem(label="gpt-4", value="gpt-4"),
        SelectableItem(label="o1-mini", value="o1-mini"),
    ]


def test_recommended_order_is_kept_and_others_sorted():
    items = build_model_items(
        ["zeta", "o3", "alpha", "o4-mini", "gpt-4o"],
        ["o4-mini", "o3"],
    )

    assert [item.value for item in items] == ["o4-mini", "o3", "alpha", "gpt-4o", "zeta"]
    assert [item.label for item in items[:2]] == ["⭐ o4-mini", "⭐ o3"]
    assert all("⭐" not in item.label for item in items[2:])


def test_unavailable_recommendations_are_left_out():
    items = build_model_items(["gpt-4o"], ["o4-mini", "o3"])

    assert items == [SelectableItem(label="gpt-4o", value="gpt-4o")]


def test_each_available_model_appears_once():
    items = build_model_items(["o3", "gpt-4o", "o3", "gpt-4o"], ["o3", "o3"])

    assert [item.value for item in items] == ["o3", "gpt-4o"]


def test_empty_catalog_builds_empty_list():
    assert build_model_items([], ["o3"]) == []


def test_effort_items_are_fixed():
    assert [(item.label, item.value) for item in EFFORT_ITEMS] == [
        ("Low Effort", "low"),
        ("Medium Effort", "medium"),
        ("High Effort", "high"),
    ]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("high", ModelEffort.HIGH),
        (" Medium ", ModelEffort.MEDIUM),
        (ModelEffort.LOW, ModelEffort.LOW),
    ],
)
def test_parse_effort(raw, expected):
    assert parse_effort(raw) is expected


@pytest.mark.parametrize("raw", ["extreme", "", 3])
def test_parse_effort_rejects_unknown_values(raw):
    with pytest.raises(ValueError):
        parse_effort(raw)


def test_reasoning_family_is_a_prefix_check():
    assert is_reasoning_family("o1")
    assert is_reasoning_family("o4-mini")
    assert not is_reasoning_family("gpt-4o")
    assert not is_reasoning_family("O3")


def test_reasoning_predicate_supports_extra_prefixes():
    assert reasoning_predicate(["o"]) is is_reasoning_family

    predicate = reasoning_predicate(["o", "gpt-5"])
    assert predicate("gpt-5-mini")
    assert predicate("o3")
    assert not predicate("gpt-4o")

    assert not reasoning_predicate([])("o3")
