"""Nearest-match emoji lookup for a valence score.

The reference table is a curated subset of the Emoji Sentiment Ranking
(https://kt.ijs.si/data/Emoji_sentiment_ranking/), sorted ascending by score.
"""

from __future__ import annotations

from typing import NamedTuple


class EmojiScore(NamedTuple):
    glyph: str
    score: float


DEFAULT_GLYPH = "\U0001F914"  # 🤔

EMOJI_SENTIMENT_TABLE: tuple[EmojiScore, ...] = tuple(sorted(
    (
        EmojiScore("\U0001F621", -0.875),  # 😡
        EmojiScore("\U0001F62D", -0.803),  # 😭
        EmojiScore("\U0001F629", -0.729),  # 😩
        EmojiScore("\U0001F612", -0.583),  # 😒
        EmojiScore("\U0001F615", -0.422),  # 😕
        EmojiScore("\U0001F610", -0.106),  # 😐
        EmojiScore("\U0001F914", 0.042),   # 🤔
        EmojiScore("\U0001F642", 0.312),   # 🙂
        EmojiScore("\U0001F60A", 0.598),   # 😊
        EmojiScore("\U0001F604", 0.762),   # 😄
        EmojiScore("\U0001F60D", 0.869),   # 😍
        EmojiScore("\U0001F496", 0.958),   # 💖
    ),
    key=lambda e: e.score,
))


def match_emoji(
    score: float,
    table: tuple[EmojiScore, ...] | list[EmojiScore] = EMOJI_SENTIMENT_TABLE,
) -> str:
    """Return the glyph whose reference score is closest to *score*.

    Ties keep the entry seen first, i.e. the more negative one since the
    table is ascending.  Out-of-range scores simply land on an end of the
    table.  An empty table yields ``DEFAULT_GLYPH``.
    """
    if not table:
        return DEFAULT_GLYPH

    best = table[0]
    best_distance = abs(best.score - score)
    for entry in table[1:]:
        distance = abs(entry.score - score)
        if distance < best_distance:
            best, best_distance = entry, distance
    return best.glyph
