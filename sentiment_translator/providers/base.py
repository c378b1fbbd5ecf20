"""Interface between the pipeline and whatever scores and translates text."""

from __future__ import annotations

import abc

from ..models import EmojiSuggestion, SentimentReading, TranslationResult


class AnalysisProvider(abc.ABC):
    """Asynchronous sentiment, translation and emoji-suggestion service.

    Implementations raise :class:`~sentiment_translator.errors.ProviderError`
    subclasses on failure and never return partial results.
    """

    @abc.abstractmethod
    async def analyze_sentiment(self, text: str) -> SentimentReading:
        """Score *text*.  Blank text must yield ``NEUTRAL_READING`` without
        contacting any backend."""

    @abc.abstractmethod
    async def translate_and_analyze(
        self,
        text: str,
        source_lang_code: str,
        target_lang_name: str,
    ) -> TranslationResult:
        """Translate *text* and score both sides in one request."""

    @abc.abstractmethod
    async def suggest_emoji_gap(
        self,
        source_text: str,
        translated_text: str,
        source_valence: float,
        target_valence: float,
    ) -> EmojiSuggestion:
        """Explain a tonal gap and propose exactly three compensating emojis."""
