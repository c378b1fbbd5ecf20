"""Pydantic schemas.

Two groups live here: the JSON payloads the LLM is asked to return (validated
before anything reaches the pipeline), and the request/response bodies of the
HTTP service.
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints, field_validator

from .models import (
    EmojiSuggestion,
    SentimentReading,
    StyleHints,
    TextStyle,
    TranslationResult,
    UILabels,
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))


# ---------------------------------------------------------------------------
# LLM payloads
# ---------------------------------------------------------------------------


class SentimentPayload(BaseModel):
    score: float = Field(allow_inf_nan=False)
    intimacy: float = Field(50.0, allow_inf_nan=False)
    formality: float = Field(50.0, allow_inf_nan=False)

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, v: float) -> float:
        return _clamp(v, -1.0, 1.0)

    @field_validator("intimacy", "formality")
    @classmethod
    def _clamp_axis(cls, v: float) -> float:
        return _clamp(v, 0.0, 100.0)

    def to_reading(self) -> SentimentReading:
        return SentimentReading(
            valence=self.score, intimacy=self.intimacy, formality=self.formality,
        )


class UILabelsPayload(BaseModel):
    formal: str
    intimate: str
    negative: str
    positive: str
    spoken: str = ""
    written: str = ""


class TranslationPayload(BaseModel):
    translation: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    source_sentiment: SentimentPayload
    translated_sentiment: SentimentPayload
    nuance: Optional[str] = None
    source_style: Optional[TextStyle] = None
    translated_style: Optional[TextStyle] = None
    ui_labels: Optional[UILabelsPayload] = None

    @field_validator("nuance")
    @classmethod
    def _blank_nuance_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("source_style", "translated_style", mode="before")
    @classmethod
    def _normalise_style(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in TextStyle.__members__:
                return None
        return v

    def to_result(self) -> TranslationResult:
        style_hints = None
        if self.source_style is not None and self.translated_style is not None:
            style_hints = StyleHints(source=self.source_style, target=self.translated_style)
        ui_labels = UILabels(**self.ui_labels.model_dump()) if self.ui_labels else None
        return TranslationResult(
            translated_text=self.translation,
            source_sentiment=self.source_sentiment.to_reading(),
            target_sentiment=self.translated_sentiment.to_reading(),
            nuance=self.nuance,
            style_hints=style_hints,
            ui_labels=ui_labels,
        )


class EmojiSuggestionPayload(BaseModel):
    explanation: str
    emojis: list[str] = Field(min_length=3)

    @field_validator("emojis")
    @classmethod
    def _keep_three(cls, v: list[str]) -> list[str]:
        glyphs = [e.strip() for e in v if isinstance(e, str) and e.strip()]
        if len(glyphs) < 3:
            raise ValueError("expected 3 non-empty emojis")
        return glyphs[:3]

    def to_suggestion(self) -> EmojiSuggestion:
        return EmojiSuggestion(
            explanation=self.explanation, glyphs=tuple(self.emojis[:3]),
        )


# ---------------------------------------------------------------------------
# HTTP bodies
# ---------------------------------------------------------------------------


class SentimentRequest(BaseModel):
    text: str


class PlotPointModel(BaseModel):
    x: float
    y: float


class SentimentModel(BaseModel):
    valence: float
    intimacy: float
    formality: float
    glyph: str
    hue: float
    color: str
    point: PlotPointModel


class TranslateRequest(BaseModel):
    text: str
    source_language: str = "th"
    target_language: str = "ko"


class SuggestionModel(BaseModel):
    explanation: str
    glyphs: list[str]


class ComparisonModel(BaseModel):
    start: PlotPointModel
    end: PlotPointModel
    start_hue: float
    end_hue: float


class TranslateResponse(BaseModel):
    phase: str
    source_text: str
    translation: str
    source_sentiment: SentimentModel
    target_sentiment: SentimentModel
    comparison: ComparisonModel
    suggestion: Optional[SuggestionModel] = None
    nuance: Optional[str] = None
    source_style: Optional[str] = None
    target_style: Optional[str] = None
    ui_labels: Optional[dict[str, str]] = None
    phases: list[str]
    report: dict
