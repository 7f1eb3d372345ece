"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Dict, Iterator, Optional

from milestone_ai.observability import client as opik_client

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Log a metric to Opik if it is enabled."""
    client = opik_client.get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
        metric_trace.end()
    except Exception as exc:  # pragma: no cover - opik failure
        logger.debug("Unable to record metric %s: %s", name, exc)


@contextmanager
def timed(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
    """Record `<name>.latency_ms` when the block exits.

    The yielded dict is merged into the metric metadata, so callers can add
    outcome fields (source, success, ...) once they know them.
    """
    extra: Dict[str, Any] = {}
    start = perf_counter()
    try:
        yield extra
    finally:
        latency_ms = (perf_counter() - start) * 1000
        log_metric(f"{name}.latency_ms", latency_ms, {**(metadata or {}), **extra})
