"""Analysis provider backed by a local Ollama model.

Every request asks the model for a JSON object, which is validated with the
pydantic payload schemas before it is turned into pipeline types.  Source
languages listed in ``PARTICLE_LANGUAGES`` get a prompt that asks the model to
look for discourse particles and explain what they do to the relationship
between speaker and listener.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx
from pydantic import ValidationError

from .. import config
from ..errors import MalformedResponse
from ..models import NEUTRAL_READING, EmojiSuggestion, SentimentReading, TranslationResult
from ..schemas import EmojiSuggestionPayload, SentimentPayload, TranslationPayload
from ..timing import timed_call
from .base import AnalysisProvider
from .ollama_client import call_ollama

log = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


def _load(name: str) -> str:
    return (_PROMPTS_DIR / name).read_text(encoding="utf-8").strip()


_SENTIMENT_SYSTEM = _load("sentiment_system.txt")
_SENTIMENT_USER = _load("sentiment_user.txt")
_TRANSLATE_SYSTEM = _load("translate_system.txt")
_TRANSLATE_USER = _load("translate_user.txt")
_TRANSLATE_PARTICLES_USER = _load("translate_particles_user.txt")
_EMOJI_GAP_SYSTEM = _load("emoji_gap_system.txt")
_EMOJI_GAP_USER = _load("emoji_gap_user.txt")

# Upper bound on text length sent in a single prompt.
_MAX_TEXT_CHARS = 4000


class OllamaAnalysisProvider(AnalysisProvider):
    """``AnalysisProvider`` that talks to Ollama's ``/api/generate``.

    Pass *client* to share a connection pool (or a mock transport in tests);
    otherwise the provider owns one and :meth:`aclose` releases it.
    """

    def __init__(
        self,
        ollama_url: str = config.OLLAMA_BASE_URL,
        model_name: str = config.MODEL_NAME,
        client: httpx.AsyncClient | None = None,
        particle_languages: frozenset[str] = config.PARTICLE_LANGUAGES,
    ):
        self.ollama_url = ollama_url.rstrip("/")
        self.model_name = model_name
        self.particle_languages = frozenset(c.lower() for c in particle_languages)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OllamaAnalysisProvider":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    @timed_call("analyze_sentiment")
    async def analyze_sentiment(self, text: str) -> SentimentReading:
        if not text.strip():
            return NEUTRAL_READING

        prompt = _SENTIMENT_USER.format(text=text[:_MAX_TEXT_CHARS])
        parsed = await self._call(_SENTIMENT_SYSTEM, prompt)
        return _validate(SentimentPayload, parsed).to_reading()

    @timed_call("translate_and_analyze")
    async def translate_and_analyze(
        self,
        text: str,
        source_lang_code: str,
        target_lang_name: str,
    ) -> TranslationResult:
        template = (
            _TRANSLATE_PARTICLES_USER
            if self.uses_particle_prompt(source_lang_code)
            else _TRANSLATE_USER
        )
        prompt = template.format(
            source_lang_code=source_lang_code,
            target_language=target_lang_name,
            text=text[:_MAX_TEXT_CHARS],
        )
        log.info("Translating %d chars %s -> %s (particle prompt=%s)",
                 len(text), source_lang_code, target_lang_name,
                 template is _TRANSLATE_PARTICLES_USER)
        parsed = await self._call(_TRANSLATE_SYSTEM, prompt)
        return _validate(TranslationPayload, parsed).to_result()

    @timed_call("suggest_emoji_gap")
    async def suggest_emoji_gap(
        self,
        source_text: str,
        translated_text: str,
        source_valence: float,
        target_valence: float,
    ) -> EmojiSuggestion:
        prompt = _EMOJI_GAP_USER.format(
            source_text=source_text[:_MAX_TEXT_CHARS],
            translated_text=translated_text[:_MAX_TEXT_CHARS],
            source_score=f"{source_valence:.2f}",
            target_score=f"{target_valence:.2f}",
        )
        parsed = await self._call(_EMOJI_GAP_SYSTEM, prompt)
        return _validate(EmojiSuggestionPayload, parsed).to_suggestion()

    def uses_particle_prompt(self, source_lang_code: str) -> bool:
        return source_lang_code.strip().lower() in self.particle_languages

    async def _call(self, system_prompt: str, user_prompt: str) -> dict:
        log.info("Calling Ollama model=%s", self.model_name)
        return await call_ollama(
            self._client, self.ollama_url, self.model_name, system_prompt, user_prompt,
        )


def _validate(schema, parsed: dict):
    try:
        return schema.model_validate(parsed)
    except ValidationError as e:
        log.error("LLM payload failed %s validation: %s | payload=%.500s",
                  schema.__name__, e.errors(), json.dumps(parsed, ensure_ascii=False))
        raise MalformedResponse(f"{schema.__name__} validation failed") from e
