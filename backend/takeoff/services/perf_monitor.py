"""Performance and reconciliation counters for workbook synthesis."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict

logger = logging.getLogger("takeoff-api.perf")


def timed(func: Callable) -> Callable:
    """
    Decorator that measures and logs execution time for synchronous functions.

    Usage::

        @timed
        def emit_dim_sheet(groups):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.debug(
                "function timed",
                extra={
                    "function": func.__qualname__,
                    "duration_ms": duration_ms,
                },
            )
    return wrapper


class SynthesisTracker:
    """
    Thread-safe in-memory tracker for synthesis passes.

    Tracks:
    - Passes completed and their average duration
    - Quantity cells written as formulas vs. plain fallback values
    - Formulas whose token product diverged from the upstream quantity
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._passes: int = 0
        self._total_duration_ms: float = 0.0
        self._formulas: int = 0
        self._fallbacks: int = 0
        self._divergences: int = 0

    def record_pass(self, duration_ms: float, formulas: int = 0, fallbacks: int = 0, divergences: int = 0) -> None:
        """Call once per completed synthesize_workbook()."""
        with self._lock:
            self._passes += 1
            self._total_duration_ms += duration_ms
            self._formulas += formulas
            self._fallbacks += fallbacks
            self._divergences += divergences

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            avg = round(self._total_duration_ms / self._passes, 2) if self._passes else 0.0
            return {
                "passes_completed": self._passes,
                "avg_pass_duration_ms": avg,
                "formula_cells": self._formulas,
                "dimension_fallbacks": self._fallbacks,
                "formula_divergences": self._divergences,
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._passes = 0
            self._total_duration_ms = 0.0
            self._formulas = 0
            self._fallbacks = 0
            self._divergences = 0


# Module-level singleton; import this instance everywhere else.
tracker = SynthesisTracker()
