"""Timing spans for week loads and recomputation."""

import time
from contextlib import contextmanager

from mealcart.logging import get_logger

logger = get_logger(__name__)

# Prefix for all timing logs so they are easy to grep
_TIMING_PREFIX = "[TIMING]"


def format_duration(ms: float) -> str:
    """12500 -> '12.5s', 750 -> '750ms'."""
    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    return f"{int(ms)}ms"


class Span:
    def __init__(self, name: str):
        self.name = name
        self.started = time.perf_counter()
        self.elapsed_ms: int | None = None

    def finish(self) -> int:
        self.elapsed_ms = int((time.perf_counter() - self.started) * 1000)
        return self.elapsed_ms


@contextmanager
def time_span(name: str, **extra: object):
    """Log elapsed time of the block with optional key=value fields."""
    span = Span(name)
    try:
        yield span
    finally:
        elapsed = span.finish()
        fields = " ".join(f"{k}={v}" for k, v in extra.items())
        logger.info("%s %s elapsed_ms=%s (%s) %s", _TIMING_PREFIX, name, elapsed, format_duration(elapsed), fields)
