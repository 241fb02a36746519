"""Per-run stage timings and fallback counters."""

import logging
import time
from collections import defaultdict
from typing import Any, Dict


class MetricsCollector:
    """
    Stage timings and counters for one pipeline run.

    A stage timed more than once accumulates. Timers still running when the
    summary is taken (a stage that raised) are left out.
    Implements IMetricsCollector protocol.
    """

    def __init__(self):
        self._started = time.perf_counter()
        self._running: Dict[str, float] = {}
        self._stages_ms: Dict[str, float] = defaultdict(float)
        self._counters: Dict[str, int] = defaultdict(int)

    def start_timer(self, name: str) -> None:
        self._running[name] = time.perf_counter()

    def stop_timer(self, name: str) -> float:
        """
        Stop a stage timer.

        Returns:
            Elapsed milliseconds for this run of the stage

        Raises:
            KeyError: If the timer was not started
        """
        if name not in self._running:
            raise KeyError(f"Timer '{name}' was not started")

        elapsed_ms = (time.perf_counter() - self._running.pop(name)) * 1000.0
        self._stages_ms[name] += elapsed_ms
        return elapsed_ms

    def increment_counter(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def stage_ms(self, name: str) -> float:
        """Accumulated milliseconds for a finished stage, 0 if it never ran."""
        return self._stages_ms.get(name, 0.0)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000.0

    def get_summary(self) -> Dict[str, Any]:
        """
        Plain-dict snapshot, safe to attach to a result.

        Keys: ``total_ms``, ``stages_ms`` (stage -> ms), ``counters``.
        """
        return {
            "total_ms": self.elapsed_ms(),
            "stages_ms": dict(self._stages_ms),
            "counters": dict(self._counters),
        }

    def log_summary(self, logger: logging.Logger, level: int = logging.DEBUG) -> None:
        summary = self.get_summary()
        stages = ", ".join(f"{name}={ms:.0f}ms" for name, ms in summary["stages_ms"].items())
        logger.log(level, f"Stages: {stages or 'none'} (total {summary['total_ms']:.0f}ms)")
        if summary["counters"]:
            counters = ", ".join(f"{name}={value}" for name, value in summary["counters"].items())
            logger.log(level, f"Counters: {counters}")
