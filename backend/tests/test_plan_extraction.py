"""Tests for JSON recovery from noisy AI output."""
from __future__ import annotations

import pytest

from milestone_ai.services.errors import PlanExtractionError
from milestone_ai.services.plan_extraction import extract_json_block, load_plan_json


def test_plain_json_is_loaded() -> None:
    assert load_plan_json('{"months": []}') == {"months": []}


def test_json_code_fence_is_stripped() -> None:
    text = 'Here you go:\n```json\n{"weeks": [1]}\n```\nGood luck!'

    assert load_plan_json(text) == {"weeks": [1]}


def test_prose_around_object_is_dropped() -> None:
    text = 'Sure! {"months": [{"title": "Month 1: A"}]} Let me know.'

    assert extract_json_block(text) == '{"months": [{"title": "Month 1: A"}]}'


def test_trailing_commas_are_cleaned_up() -> None:
    text = '{"months": [{"title": "A",},],}'

    assert load_plan_json(text) == {"months": [{"title": "A"}]}


def test_smart_quotes_are_replaced() -> None:
    text = "{“months”: []}"

    assert load_plan_json(text) == {"months": []}


@pytest.mark.parametrize("text", [None, "", "   ", "no json here", "{broken"])
def test_unparseable_text_raises(text) -> None:
    with pytest.raises(PlanExtractionError):
        load_plan_json(text)


def test_trailing_comma_cleanup_keeps_smart_quotes_inside_strings() -> None:
    text = '{"months": [{"title": "Read “Dune”", "weeks": []},]}'

    assert load_plan_json(text) == {"months": [{"title": "Read “Dune”", "weeks": []}]}


def test_smart_quote_delimiters_with_trailing_comma() -> None:
    text = "{“months”: [1, 2,]}"

    assert load_plan_json(text) == {"months": [1, 2]}
