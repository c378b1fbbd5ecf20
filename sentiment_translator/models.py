"""Data models for the sentiment-translation pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from .emoji import match_emoji
from .languages import DEFAULT_SOURCE_LANGUAGE, DEFAULT_TARGET_LANGUAGE, Language


@dataclass(frozen=True)
class SentimentReading:
    """Three-axis tone reading of one text.

    ``valence`` is in [-1, 1]; ``intimacy`` and ``formality`` are in [0, 100].
    """

    valence: float
    intimacy: float = 50.0
    formality: float = 50.0


NEUTRAL_READING = SentimentReading(valence=0.0, intimacy=50.0, formality=50.0)


@dataclass(frozen=True)
class EmojiAnnotatedSentiment:
    """A reading plus the glyph derived from its valence.

    The glyph is computed on construction and cannot be passed in.
    """

    reading: SentimentReading
    glyph: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "glyph", match_emoji(self.reading.valence))

    @property
    def valence(self) -> float:
        return self.reading.valence

    @property
    def intimacy(self) -> float:
        return self.reading.intimacy

    @property
    def formality(self) -> float:
        return self.reading.formality


def annotate(reading: SentimentReading) -> EmojiAnnotatedSentiment:
    return EmojiAnnotatedSentiment(reading)


class TextStyle(str, enum.Enum):
    SPOKEN = "SPOKEN"
    WRITTEN = "WRITTEN"


@dataclass(frozen=True)
class StyleHints:
    """Register (spoken vs. written) of each side of a translation."""

    source: TextStyle
    target: TextStyle


@dataclass(frozen=True)
class UILabels:
    """Plot axis and legend labels localized into the target language."""

    formal: str
    intimate: str
    negative: str
    positive: str
    spoken: str = ""
    written: str = ""


@dataclass(frozen=True)
class TranslationResult:
    translated_text: str
    source_sentiment: SentimentReading
    target_sentiment: SentimentReading
    nuance: Optional[str] = None
    style_hints: Optional[StyleHints] = None
    ui_labels: Optional[UILabels] = None


@dataclass(frozen=True)
class EmojiSuggestion:
    explanation: str
    glyphs: tuple[str, str, str]


class Phase(str, enum.Enum):
    IDLE = "idle"
    DEBOUNCED_ANALYZING = "debounced_analyzing"
    TRANSLATING = "translating"
    ANALYZING_TRANSLATION = "analyzing_translation"
    SUGGESTING_EMOJI = "suggesting_emoji"
    READY = "ready"
    FAILED = "failed"


# Phases during which a translation run is in flight.
RUN_PHASES = frozenset([
    Phase.TRANSLATING,
    Phase.ANALYZING_TRANSLATION,
    Phase.SUGGESTING_EMOJI,
])


@dataclass(frozen=True)
class PipelineState:
    """Immutable snapshot of one session.

    Replaced wholesale on every change; never mutated in place.
    """

    source_text: str = ""
    source_language: Language = DEFAULT_SOURCE_LANGUAGE
    target_language: Language = DEFAULT_TARGET_LANGUAGE
    source_sentiment: Optional[EmojiAnnotatedSentiment] = None
    target_sentiment: Optional[EmojiAnnotatedSentiment] = None
    translation: Optional[str] = None
    suggestion: Optional[EmojiSuggestion] = None
    nuance: Optional[str] = None
    style_hints: Optional[StyleHints] = None
    ui_labels: Optional[UILabels] = None
    error: Optional[str] = None
    source_analyzing: bool = False
    target_analyzing: bool = False
    phase: Phase = Phase.IDLE

    @property
    def has_derived(self) -> bool:
        """True when any field derived from the source text is populated."""
        return any((
            self.translation is not None,
            self.source_sentiment is not None,
            self.target_sentiment is not None,
            self.suggestion is not None,
            self.nuance is not None,
            self.style_hints is not None,
            self.ui_labels is not None,
            self.error is not None,
        ))


# Field values that reset every source-derived part of a PipelineState.
CLEARED_DERIVED = dict(
    source_sentiment=None,
    target_sentiment=None,
    translation=None,
    suggestion=None,
    nuance=None,
    style_hints=None,
    ui_labels=None,
    error=None,
    target_analyzing=False,
)


@dataclass
class StepMetrics:
    """Timing for one provider call made during a run."""

    step_name: str
    duration_ms: int = 0
    succeeded: bool = True
