"""Translation orchestrator.

Drives one session through translate → compare → (maybe) suggest, and
owns the session's PipelineState.  Every transition publishes one whole
snapshot; an edit to the source text while a run is in flight clears the
derived fields at once and makes the run discard its result.

    IDLE --translate()--> TRANSLATING --ok--> ANALYZING_TRANSLATION
    TRANSLATING --provider error--> FAILED
    ANALYZING_TRANSLATION --delta <= 0.2--> READY
    ANALYZING_TRANSLATION --delta > 0.2--> SUGGESTING_EMOJI --> READY
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from . import config
from .errors import ProviderError
from .languages import Language
from .models import (
    CLEARED_DERIVED,
    RUN_PHASES,
    EmojiAnnotatedSentiment,
    EmojiSuggestion,
    Phase,
    PipelineState,
    TranslationResult,
    annotate,
)
from .providers.base import AnalysisProvider
from .realtime import RealtimeAnalysisController, Scheduler
from .sinks import RenderingSink
from .state import StateStore
from .timing import build_report, collect_metrics

log = logging.getLogger(__name__)

# Valence drift at or below this is not worth a suggestion.
SUGGESTION_THRESHOLD = 0.2

GENERIC_FAILURE_MESSAGE = "An error occurred while translating. Please try again."


def sentiment_delta(source_valence: float, target_valence: float) -> float:
    return abs(source_valence - target_valence)


def needs_suggestion(source_valence: float, target_valence: float) -> bool:
    return sentiment_delta(source_valence, target_valence) > SUGGESTION_THRESHOLD


class TranslationOrchestrator:
    """Session facade exposing the user actions.

    ``on_source_text_changed``, ``translate`` and ``append_suggested_glyph``
    are the only ways the outside world changes the session; sinks observe
    it through published snapshots.
    """

    def __init__(
        self,
        provider: AnalysisProvider,
        sinks: Iterable[RenderingSink] = (),
        *,
        initial: Optional[PipelineState] = None,
        debounce_seconds: float = config.DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        self._provider = provider
        self._store = StateStore(initial, sinks)
        self._realtime = RealtimeAnalysisController(
            provider,
            self._apply_live_reading,
            self._apply_live_busy,
            debounce_seconds=debounce_seconds,
            scheduler=scheduler,
        )
        self._edit_seq = 0
        self.last_report: Optional[dict] = None

    @property
    def state(self) -> PipelineState:
        return self._store.state

    @property
    def realtime(self) -> RealtimeAnalysisController:
        return self._realtime

    def subscribe(self, sink: RenderingSink) -> None:
        self._store.subscribe(sink)

    def close(self) -> None:
        self._realtime.close()

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def on_source_text_changed(self, text: str) -> None:
        """Record an edit of the source text and schedule live analysis."""
        state = self._store.state
        if text == state.source_text:
            return
        self._edit_seq += 1

        if state.phase in RUN_PHASES:
            # The run finishes on its own and then discards its result.
            self._store.replace(source_text=text, **CLEARED_DERIVED)
        elif state.phase is not Phase.IDLE:
            log.info("Source text edited in phase %s; clearing derived state",
                     state.phase.value)
            self._realtime.invalidate("target")
            self._realtime.invalidate("source")
            self._store.replace(source_text=text, phase=Phase.IDLE, **CLEARED_DERIVED)
        else:
            self._store.replace(source_text=text)

        self._realtime.on_text_changed("source", text)

    def set_source_language(self, language: Language) -> None:
        self._set_language(source_language=language)

    def set_target_language(self, language: Language) -> None:
        self._set_language(target_language=language)

    async def translate(self) -> PipelineState:
        """Run the full pipeline once and return the final snapshot.

        No-op when the source text is blank or a run is already active.
        """
        state = self._store.state
        if not state.source_text.strip():
            log.info("translate() ignored: source text is empty")
            return state
        if state.phase in RUN_PHASES:
            log.info("translate() ignored: run already in phase %s", state.phase.value)
            return state

        self._realtime.suspend()
        try:
            collector = collect_metrics()
            with collector as metrics:
                final = await self._run(state.source_text, self._edit_seq)
        except Exception:
            log.exception("Pipeline run crashed")
            self._store.replace(phase=Phase.FAILED, error=GENERIC_FAILURE_MESSAGE)
            raise
        finally:
            self._realtime.resume()

        self.last_report = build_report(metrics, collector.elapsed_ms)
        log.info(
            "Pipeline complete: phase=%s suggestion=%s | total=%dms (provider=%dms over %d calls, %d failed)",
            final.phase.value, final.suggestion is not None,
            self.last_report["total_duration_ms"],
            self.last_report["provider_duration_ms"],
            self.last_report["provider_calls"],
            self.last_report["failed_calls"],
        )
        return final

    def append_suggested_glyph(self, glyph: str) -> None:
        """Append *glyph* to the translation and re-score the new text.

        Must be called from within the running event loop.
        """
        state = self._store.state
        if state.translation is None or state.phase in RUN_PHASES:
            log.info("append_suggested_glyph() ignored: no finished translation")
            return
        glyph = glyph.strip()
        if not glyph:
            return

        new_text = f"{state.translation.strip()} {glyph}".strip()
        self._store.replace(translation=new_text)
        self._realtime.request_now("target", new_text)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def _run(self, text: str, edit_seq: int) -> PipelineState:
        state = self._store.replace(phase=Phase.TRANSLATING, **CLEARED_DERIVED)
        source_lang = state.source_language
        target_lang = state.target_language

        try:
            result = await self._provider.translate_and_analyze(
                text, source_lang.code, target_lang.name,
            )
        except ProviderError as e:
            log.error("Translation %s -> %s failed: %s", source_lang.code, target_lang.code, e)
            if self._is_stale(edit_seq):
                return self._discard_run()
            return self._store.replace(phase=Phase.FAILED, error=GENERIC_FAILURE_MESSAGE)

        if self._is_stale(edit_seq):
            return self._discard_run()

        source_sentiment = annotate(result.source_sentiment)
        target_sentiment = annotate(result.target_sentiment)
        self._store.replace(
            phase=Phase.ANALYZING_TRANSLATION,
            translation=result.translated_text,
            source_sentiment=source_sentiment,
            target_sentiment=target_sentiment,
            nuance=result.nuance,
            style_hints=result.style_hints,
            ui_labels=result.ui_labels,
        )

        delta = sentiment_delta(source_sentiment.valence, target_sentiment.valence)
        if not needs_suggestion(source_sentiment.valence, target_sentiment.valence):
            log.info("Sentiment delta %.3f within threshold; no suggestion", delta)
            return self._store.replace(phase=Phase.READY)

        log.info("Sentiment delta %.3f exceeds %.1f; requesting emoji suggestion",
                 delta, SUGGESTION_THRESHOLD)
        self._store.replace(phase=Phase.SUGGESTING_EMOJI)
        suggestion = await self._suggest(text, result)

        if self._is_stale(edit_seq):
            return self._discard_run()
        return self._store.replace(phase=Phase.READY, suggestion=suggestion)

    async def _suggest(self, text: str, result: TranslationResult) -> Optional[EmojiSuggestion]:
        try:
            return await self._provider.suggest_emoji_gap(
                text,
                result.translated_text,
                result.source_sentiment.valence,
                result.target_sentiment.valence,
            )
        except ProviderError as e:
            log.warning("Emoji suggestion failed, continuing without it: %s", e)
            return None

    def _is_stale(self, edit_seq: int) -> bool:
        return edit_seq != self._edit_seq

    def _discard_run(self) -> PipelineState:
        log.info("Source text changed during the run; discarding its result")
        return self._store.replace(phase=Phase.IDLE, **CLEARED_DERIVED)

    # ------------------------------------------------------------------
    # Realtime callbacks and helpers
    # ------------------------------------------------------------------

    def _apply_live_reading(
        self, field: str, text: str, sentiment: EmojiAnnotatedSentiment,
    ) -> None:
        state = self._store.state
        if state.phase in RUN_PHASES:
            return
        if field == "source":
            self._store.replace(source_sentiment=sentiment)
        elif state.translation == text:
            self._store.replace(target_sentiment=sentiment)

    def _apply_live_busy(self, field: str, busy: bool) -> None:
        state = self._store.state
        if field == "target":
            if state.target_analyzing != busy:
                self._store.replace(target_analyzing=busy)
            return

        changes: dict = {}
        if state.source_analyzing != busy:
            changes["source_analyzing"] = busy
        if busy and state.phase is Phase.IDLE:
            changes["phase"] = Phase.DEBOUNCED_ANALYZING
        elif not busy and state.phase is Phase.DEBOUNCED_ANALYZING:
            changes["phase"] = Phase.IDLE
        if changes:
            self._store.replace(**changes)

    def _set_language(self, **change: Language) -> None:
        state = self._store.state
        if state.phase in RUN_PHASES:
            log.info("Language change ignored while a run is active")
            return
        self._store.replace(**change)
