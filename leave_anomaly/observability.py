"""
Timing lines for analyzer runs.

One line per employee analysis and one per team batch, e.g.::

    [TRACE] analyze_leave_patterns outcome=ok duration_ms=0.41 employee=E001 records=8 score=88

Callers add keys to the yielded dict while the span is open. A run that
raises is logged with ``outcome=error`` and the exception type, then the
exception propagates unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger("leave_anomaly.trace")


def _format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


@contextmanager
def trace_span(name: str, **fields: Any) -> Iterator[dict[str, Any]]:
    """Time the enclosed block and log it as a single key=value line."""
    started = time.perf_counter()
    outcome = "ok"
    try:
        yield fields
    except Exception as e:
        outcome = f"error error={type(e).__name__}"
        raise
    finally:
        elapsed = (time.perf_counter() - started) * 1000
        logger.info(
            "[TRACE] %s outcome=%s duration_ms=%.2f %s",
            name,
            outcome,
            elapsed,
            _format_fields(fields),
        )
