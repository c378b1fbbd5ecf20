"""Provider call timing for translation runs.

Every provider method is wrapped in ``@timed_call``.  While a run is inside
``collect_metrics()`` each call lands in the run's metric list together with
whether it succeeded, and the run's wall time is kept on the collector so the
report can split the run into time spent waiting on the model and time spent
in the orchestrator itself (validation, annotation, publishing to sinks).

Usage::

    @timed_call("translate_and_analyze")
    async def translate_and_analyze(...):
        ...

    collector = collect_metrics()
    with collector as metrics:
        await orchestrator_run()
    report = build_report(metrics, collector.elapsed_ms)
"""

from __future__ import annotations

import contextvars
import functools
import logging
import time

from .models import StepMetrics

log = logging.getLogger(__name__)

_current_metrics: contextvars.ContextVar[list[StepMetrics] | None] = (
    contextvars.ContextVar("_current_metrics", default=None)
)


class collect_metrics:
    """Context manager that activates metric collection for ``@timed_call``.

    Yields the ``list[StepMetrics]`` decorated calls append to.  After the
    block exits, ``elapsed_ms`` holds the wall time of the whole block.
    """

    def __init__(self) -> None:
        self.elapsed_ms = 0

    def __enter__(self) -> list[StepMetrics]:
        self._metrics: list[StepMetrics] = []
        self._token = _current_metrics.set(self._metrics)
        self._t0 = time.monotonic_ns()
        return self._metrics

    def __exit__(self, *exc) -> None:
        self.elapsed_ms = (time.monotonic_ns() - self._t0) // 1_000_000
        _current_metrics.reset(self._token)


def timed_call(name: str):
    """Decorator for async provider calls.

    A call that raises is recorded with ``succeeded=False`` and the exception
    propagates unchanged.
    """

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            metrics = _current_metrics.get(None)
            t0 = time.monotonic_ns()
            succeeded = False
            try:
                result = await fn(*args, **kwargs)
                succeeded = True
                return result
            finally:
                duration_ms = (time.monotonic_ns() - t0) // 1_000_000
                log.info("%s: %d ms%s", name, duration_ms, "" if succeeded else " (failed)")
                if metrics is not None:
                    metrics.append(StepMetrics(name, duration_ms, succeeded))

        return wrapper

    return decorator


def build_report(metrics: list[StepMetrics], elapsed_ms: int) -> dict:
    """Summarize one run's provider calls against its wall time."""
    provider_ms = sum(m.duration_ms for m in metrics)
    return {
        "total_duration_ms": elapsed_ms,
        "provider_duration_ms": provider_ms,
        "orchestration_duration_ms": max(0, elapsed_ms - provider_ms),
        "provider_calls": len(metrics),
        "failed_calls": sum(1 for m in metrics if not m.succeeded),
        "steps": [
            {
                "step": m.step_name,
                "duration_ms": m.duration_ms,
                "succeeded": m.succeeded,
            }
            for m in metrics
        ],
    }
