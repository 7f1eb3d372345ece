"""Recover a JSON value from noisy generative-model output."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator

from milestone_ai.services.errors import PlanExtractionError

logger = logging.getLogger(__name__)

JSON_FENCE = "```json"
FENCE = "```"
TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")
SMART_QUOTES = {
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
}


def _strip_code_fence(text: str) -> str:
    if JSON_FENCE in text:
        return text.split(JSON_FENCE, 1)[1].split(FENCE, 1)[0].strip()
    if FENCE in text:
        parts = text.split(FENCE)
        if len(parts) >= 3:
            return parts[1].strip()
    return text


def extract_json_block(text: str) -> str:
    """Return the substring most likely to hold the plan object.

    Code fences win, then the first ``{`` .. last ``}`` span, then the whole
    trimmed text.
    """
    candidate = _strip_code_fence(text.strip())
    first_brace = candidate.find("{")
    last_brace = candidate.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return candidate[first_brace : last_brace + 1]
    return candidate.strip()


def _strip_trailing_commas(text: str) -> str:
    return TRAILING_COMMA_PATTERN.sub(r"\1", text)


def _replace_smart_quotes(text: str) -> str:
    for smart, plain in SMART_QUOTES.items():
        text = text.replace(smart, plain)
    return text


def _cleanup_candidates(block: str) -> Iterator[str]:
    """Yield rewrites of ``block`` to retry, mildest first.

    Trailing commas go first; smart quotes are swapped only in the last
    attempt since they may be ordinary text inside string values.
    """
    seen = {block}
    for candidate in (_strip_trailing_commas(block), _strip_trailing_commas(_replace_smart_quotes(block))):
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def _parse(text: str) -> Any:
    try:
        return json.loads(text)
    except RecursionError as exc:
        raise json.JSONDecodeError("JSON nested too deeply", text, 0) from exc


def load_plan_json(text: str | None) -> Any:
    """Parse the JSON payload of an AI response.

    Raises:
        PlanExtractionError: when nothing parseable is found.
    """
    if not text or not text.strip():
        raise PlanExtractionError("AI response is empty")

    block = extract_json_block(text)
    try:
        return _parse(block)
    except json.JSONDecodeError as first_error:
        last_error = first_error

    for candidate in _cleanup_candidates(block):
        try:
            value = _parse(candidate)
        except json.JSONDecodeError as exc:
            last_error = exc
            continue
        logger.info("Parsed AI response after JSON cleanup.")
        return value

    raise PlanExtractionError(f"AI response is not JSON: {last_error}") from last_error
