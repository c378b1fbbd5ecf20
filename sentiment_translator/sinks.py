"""Rendering sinks that receive PipelineState snapshots."""

from __future__ import annotations

import logging
from typing import Protocol

from .models import Phase, PipelineState

log = logging.getLogger(__name__)


class RenderingSink(Protocol):
    def render(self, state: PipelineState) -> None:
        ...


class SnapshotRecorder:
    """Keeps every published snapshot, in order."""

    def __init__(self) -> None:
        self.snapshots: list[PipelineState] = []

    def render(self, state: PipelineState) -> None:
        self.snapshots.append(state)

    @property
    def latest(self) -> PipelineState | None:
        return self.snapshots[-1] if self.snapshots else None

    def phases(self) -> list[Phase]:
        """Distinct phases in publication order (consecutive repeats collapsed)."""
        seen: list[Phase] = []
        for snap in self.snapshots:
            if not seen or seen[-1] is not snap.phase:
                seen.append(snap.phase)
        return seen


class LoggingSink:
    """Logs phase transitions and per-field analysis flags."""

    def __init__(self) -> None:
        self._last_phase: Phase | None = None

    def render(self, state: PipelineState) -> None:
        if state.phase is not self._last_phase:
            log.info("phase -> %s", state.phase.value)
            self._last_phase = state.phase
        log.debug(
            "snapshot: phase=%s source_analyzing=%s target_analyzing=%s "
            "translation=%s suggestion=%s",
            state.phase.value, state.source_analyzing, state.target_analyzing,
            state.translation is not None, state.suggestion is not None,
        )
