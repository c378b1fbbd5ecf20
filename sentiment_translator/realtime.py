"""Live sentiment feedback while the user types.

Each text field ("source", "target") gets a channel with its own debounce
timer and request generation.  Only the last edit of a burst is analyzed,
at most one request per field is in flight at a time, and a response is
applied only if no newer request for the same field has been dispatched
since.  Provider failures degrade to the neutral reading.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Callable, Optional, Protocol

from . import config
from .errors import ProviderError
from .models import NEUTRAL_READING, EmojiAnnotatedSentiment, annotate
from .providers.base import AnalysisProvider

log = logging.getLogger(__name__)

FIELDS = ("source", "target")

ReadingCallback = Callable[[str, str, EmojiAnnotatedSentiment], None]
BusyCallback = Callable[[str, bool], None]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class LoopScheduler:
    """Schedules callbacks on the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class _FieldChannel:
    def __init__(self, name: str):
        self.name = name
        self.timer: Optional[TimerHandle] = None
        self.generation = 0
        self.inflight: Optional[asyncio.Task] = None
        self.queued: Optional[str] = None
        self.suppressed: Optional[str] = None


class RealtimeAnalysisController:
    """Debounced, single-flight sentiment requests per text field.

    *on_reading* receives ``(field, text, sentiment)`` for every applied
    result; *on_busy* receives ``(field, busy)`` when a field starts and stops
    waiting on the provider.
    """

    def __init__(
        self,
        provider: AnalysisProvider,
        on_reading: ReadingCallback,
        on_busy: Optional[BusyCallback] = None,
        *,
        debounce_seconds: float = config.DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        self._provider = provider
        self._on_reading = on_reading
        self._on_busy = on_busy
        self.debounce_seconds = debounce_seconds
        self._scheduler = scheduler or LoopScheduler()
        self._channels = {name: _FieldChannel(name) for name in FIELDS}
        self._suspended = False

    @property
    def suspended(self) -> bool:
        return self._suspended

    def is_busy(self, field: str) -> bool:
        ch = self._channel(field)
        return ch.inflight is not None and not ch.inflight.done()

    def on_text_changed(self, field: str, text: str) -> None:
        """Restart the quiet period for *field* with the latest *text*."""
        ch = self._channel(field)
        self._cancel_timer(ch)
        if self._suspended:
            ch.suppressed = text
            return
        ch.timer = self._scheduler.call_later(
            self.debounce_seconds, functools.partial(self._fire, ch, text),
        )

    def request_now(self, field: str, text: str) -> None:
        """Skip the quiet period and analyze *text* right away."""
        ch = self._channel(field)
        self._cancel_timer(ch)
        if self._suspended:
            ch.suppressed = text
            return
        self._fire(ch, text)

    def invalidate(self, field: str) -> None:
        """Drop any pending or in-flight result for *field*."""
        ch = self._channel(field)
        self._cancel_timer(ch)
        ch.queued = None
        ch.suppressed = None
        ch.generation += 1

    def suspend(self) -> None:
        """Stop scheduling and dispatching; pending work is dropped."""
        self._suspended = True
        for name in FIELDS:
            self.invalidate(name)
        log.debug("Realtime analysis suspended")

    def resume(self) -> None:
        """Re-enable analysis and pick up edits made while suspended."""
        self._suspended = False
        log.debug("Realtime analysis resumed")
        for ch in self._channels.values():
            if ch.suppressed is not None:
                text, ch.suppressed = ch.suppressed, None
                self.on_text_changed(ch.name, text)

    def close(self) -> None:
        """Cancel timers and discard every outstanding result."""
        for name in FIELDS:
            self.invalidate(name)

    # ------------------------------------------------------------------

    def _channel(self, field: str) -> _FieldChannel:
        try:
            return self._channels[field]
        except KeyError:
            raise ValueError(f"Unknown text field {field!r}") from None

    @staticmethod
    def _cancel_timer(ch: _FieldChannel) -> None:
        if ch.timer is not None:
            ch.timer.cancel()
            ch.timer = None

    def _fire(self, ch: _FieldChannel, text: str) -> None:
        ch.timer = None
        if self._suspended:
            ch.suppressed = text
            return
        ch.generation += 1
        if ch.inflight is not None and not ch.inflight.done():
            # The in-flight response is now stale; send this text once it settles.
            ch.queued = text
            log.debug("%s: request in flight, queued newer text (%d chars)",
                      ch.name, len(text))
            return
        self._dispatch(ch, text)

    def _dispatch(self, ch: _FieldChannel, text: str) -> None:
        generation = ch.generation
        log.debug("%s: dispatching sentiment request #%d (%d chars)",
                  ch.name, generation, len(text))
        self._set_busy(ch, True)
        task = asyncio.get_running_loop().create_task(self._analyze(ch, text, generation))
        ch.inflight = task
        task.add_done_callback(functools.partial(self._on_settled, ch))

    async def _analyze(self, ch: _FieldChannel, text: str, generation: int) -> None:
        try:
            reading = await self._provider.analyze_sentiment(text)
        except ProviderError as e:
            log.warning("Live sentiment for %s failed, using neutral reading: %s",
                        ch.name, e)
            reading = NEUTRAL_READING

        if generation != ch.generation:
            log.debug("%s: discarding stale response #%d (current #%d)",
                      ch.name, generation, ch.generation)
            return
        self._on_reading(ch.name, text, annotate(reading))

    def _on_settled(self, ch: _FieldChannel, task: asyncio.Task) -> None:
        ch.inflight = None
        if not task.cancelled() and task.exception() is not None:
            log.error("%s: live sentiment task crashed", ch.name,
                      exc_info=task.exception())

        if ch.queued is not None and not self._suspended:
            text, ch.queued = ch.queued, None
            self._dispatch(ch, text)
        else:
            ch.queued = None
            self._set_busy(ch, False)

    def _set_busy(self, ch: _FieldChannel, busy: bool) -> None:
        if self._on_busy is not None:
            self._on_busy(ch.name, busy)
