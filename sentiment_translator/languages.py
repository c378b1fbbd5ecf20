"""Languages offered for translation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Language:
    code: str
    name: str


SUPPORTED_LANGUAGES: tuple[Language, ...] = (
    Language("en", "English"),
    Language("ko", "Korean"),
    Language("ja", "Japanese"),
    Language("es", "Spanish"),
    Language("fr", "French"),
    Language("de", "German"),
    Language("th", "Thai"),
    Language("zh", "Chinese"),
)

DEFAULT_SOURCE_LANGUAGE = SUPPORTED_LANGUAGES[6]  # Thai
DEFAULT_TARGET_LANGUAGE = SUPPORTED_LANGUAGES[1]  # Korean


def find_language(code: str) -> Language | None:
    """Look up a supported language by its code (case-insensitive)."""
    code = code.strip().lower()
    for lang in SUPPORTED_LANGUAGES:
        if lang.code == code:
            return lang
    return None
