"""Projection of sentiment readings onto the formality/intimacy plot.

Valence is shown by colour (and glyph), not position: x is formality, y is
intimacy, both on the 0-100 scale of the reading.
"""

from __future__ import annotations

from typing import NamedTuple, Union

from .models import EmojiAnnotatedSentiment, SentimentReading

Reading = Union[SentimentReading, EmojiAnnotatedSentiment]

HUE_NEGATIVE = 0.0
HUE_POSITIVE = 120.0


class PlotPoint(NamedTuple):
    x: float
    y: float


class ComparisonVector(NamedTuple):
    """Endpoints and colours of the line drawn between two readings."""

    start: PlotPoint
    end: PlotPoint
    start_hue: float
    end_hue: float


def to_plot_point(reading: Reading) -> PlotPoint:
    return PlotPoint(x=reading.formality, y=reading.intimacy)


def color_for(valence: float) -> float:
    """Map valence to an HSL hue: -1 red (0), 0 yellow (60), 1 green (120)."""
    hue = 120.0 * (valence * 0.5 + 0.5)
    return max(HUE_NEGATIVE, min(HUE_POSITIVE, hue))


def css_color(valence: float) -> str:
    return f"hsl({color_for(valence):g}, 80%, 60%)"


def comparison_vector(a: Reading, b: Reading) -> ComparisonVector:
    """Line from reading *a* (e.g. the source) to reading *b* (the translation)."""
    return ComparisonVector(
        start=to_plot_point(a),
        end=to_plot_point(b),
        start_hue=color_for(a.valence),
        end_hue=color_for(b.valence),
    )
