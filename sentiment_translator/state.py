"""Single source of truth for a session's PipelineState."""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from .models import PipelineState
from .sinks import RenderingSink

log = logging.getLogger(__name__)


class StateStore:
    """Holds the current snapshot and publishes every replacement.

    ``replace`` builds the new frozen snapshot first and swaps it in with a
    single assignment, so a sink never observes a half-applied update.
    """

    def __init__(
        self,
        initial: PipelineState | None = None,
        sinks: Iterable[RenderingSink] = (),
    ):
        self._state = initial or PipelineState()
        self._sinks: list[RenderingSink] = list(sinks)

    @property
    def state(self) -> PipelineState:
        return self._state

    def subscribe(self, sink: RenderingSink) -> None:
        self._sinks.append(sink)

    def replace(self, **changes) -> PipelineState:
        new_state = dataclasses.replace(self._state, **changes)
        self._state = new_state
        for sink in self._sinks:
            try:
                sink.render(new_state)
            except Exception:
                log.exception("Rendering sink %r failed", sink)
        return new_state
