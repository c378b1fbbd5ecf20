"""
Unit tests for the Ollama-backed analysis provider.

The Ollama HTTP API is replaced with ``httpx.MockTransport``.
"""

import asyncio
import json

import httpx
import pytest

from sentiment_translator.errors import MalformedResponse, ProviderUnavailable
from sentiment_translator.models import NEUTRAL_READING, SentimentReading, StyleHints, TextStyle
from sentiment_translator.providers.ollama import OllamaAnalysisProvider

TRANSLATION_PAYLOAD = {
    "translation": "Komm doch mal vorbei",
    "source_sentiment": {"score": 0.6, "intimacy": 80, "formality": 20},
    "translated_sentiment": {"score": 0.2, "intimacy": 40, "formality": 55},
    "nuance": "\"doch mal\" turns the request into a friendly nudge.",
    "source_style": "spoken",
    "translated_style": "WRITTEN",
    "ui_labels": {
        "formal": "Formell",
        "intimate": "Vertraut",
        "negative": "Negativ",
        "positive": "Positiv",
    },
}


class _FakeOllama:
    """Records requests and answers with a canned model output."""

    def __init__(self, model_output=None, status_code=200, raw_response=None):
        self.model_output = model_output
        self.status_code = status_code
        self.raw_response = raw_response
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.raw_response is not None:
            return httpx.Response(self.status_code, json={"response": self.raw_response})
        return httpx.Response(
            self.status_code,
            json={"response": json.dumps(self.model_output, ensure_ascii=False)},
        )


def _run(handler, call):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = OllamaAnalysisProvider(
                "http://ollama:11434/", "test-model", client=client,
                particle_languages=frozenset({"de", "th"}),
            )
            return await call(provider)

    return asyncio.run(go())


class TestAnalyzeSentiment:
    def test_parses_reading(self):
        handler = _FakeOllama({"score": -0.4, "intimacy": 30, "formality": 75})
        reading = _run(handler, lambda p: p.analyze_sentiment("I am not impressed."))

        assert reading == SentimentReading(-0.4, 30.0, 75.0)
        (body,) = handler.requests
        assert body["model"] == "test-model"
        assert body["format"] == "json"
        assert body["stream"] is False
        assert "I am not impressed." in body["prompt"]

    def test_out_of_range_values_are_clamped(self):
        handler = _FakeOllama({"score": 1.7, "intimacy": 140, "formality": -3})
        reading = _run(handler, lambda p: p.analyze_sentiment("WOW"))
        assert reading == SentimentReading(1.0, 100.0, 0.0)

    def test_missing_axes_default_to_midpoint(self):
        handler = _FakeOllama({"score": 0.3})
        reading = _run(handler, lambda p: p.analyze_sentiment("ok"))
        assert reading == SentimentReading(0.3, 50.0, 50.0)

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_text_short_circuits(self, text):
        handler = _FakeOllama({"score": 0.9})
        reading = _run(handler, lambda p: p.analyze_sentiment(text))
        assert reading == NEUTRAL_READING
        assert handler.requests == []

    def test_missing_score_is_malformed(self):
        handler = _FakeOllama({"intimacy": 10})
        with pytest.raises(MalformedResponse):
            _run(handler, lambda p: p.analyze_sentiment("hello"))

    @pytest.mark.parametrize("raw", [
        '{"score": NaN, "intimacy": 50, "formality": 50}',
        '{"score": Infinity}',
        '{"score": 0.2, "intimacy": -Infinity}',
        '{"score": 0.2, "formality": NaN}',
    ])
    def test_non_finite_values_are_malformed(self, raw):
        handler = _FakeOllama(raw_response=raw)
        with pytest.raises(MalformedResponse):
            _run(handler, lambda p: p.analyze_sentiment("hello"))


class TestTranslateAndAnalyze:
    def test_builds_complete_result(self):
        handler = _FakeOllama(TRANSLATION_PAYLOAD)
        result = _run(handler, lambda p: p.translate_and_analyze("Come over sometime", "en", "German"))

        assert result.translated_text == "Komm doch mal vorbei"
        assert result.source_sentiment == SentimentReading(0.6, 80.0, 20.0)
        assert result.target_sentiment == SentimentReading(0.2, 40.0, 55.0)
        assert result.style_hints == StyleHints(TextStyle.SPOKEN, TextStyle.WRITTEN)
        assert result.ui_labels.formal == "Formell"
        assert result.ui_labels.spoken == ""
        assert "doch mal" in result.nuance

    @pytest.mark.parametrize("code,particles", [
        ("de", True),
        ("th", True),
        ("TH", True),
        ("en", False),
        ("ko", False),
    ])
    def test_particle_prompt_depends_on_source_language(self, code, particles):
        handler = _FakeOllama(TRANSLATION_PAYLOAD)
        _run(handler, lambda p: p.translate_and_analyze("text", code, "Korean"))

        (body,) = handler.requests
        assert f"Source language code: {code}" in body["prompt"]
        assert "Target language: Korean" in body["prompt"]
        assert ("discourse particles" in body["prompt"]) is particles

    def test_missing_required_field_is_malformed(self):
        payload = dict(TRANSLATION_PAYLOAD)
        del payload["translated_sentiment"]
        with pytest.raises(MalformedResponse):
            _run(_FakeOllama(payload), lambda p: p.translate_and_analyze("x", "en", "German"))

    @pytest.mark.parametrize("translation", ["", "   ", "\n\t"])
    def test_blank_translation_is_malformed(self, translation):
        payload = dict(TRANSLATION_PAYLOAD, translation=translation)
        with pytest.raises(MalformedResponse):
            _run(_FakeOllama(payload), lambda p: p.translate_and_analyze("x", "en", "German"))

    def test_non_finite_sentiment_is_malformed(self):
        payload = dict(TRANSLATION_PAYLOAD, translated_sentiment={"score": float("nan")})
        with pytest.raises(MalformedResponse):
            _run(_FakeOllama(payload), lambda p: p.translate_and_analyze("x", "en", "German"))

    def test_translation_is_trimmed(self):
        payload = dict(TRANSLATION_PAYLOAD, translation="  Komm doch mal vorbei\n")
        result = _run(_FakeOllama(payload), lambda p: p.translate_and_analyze("x", "en", "German"))
        assert result.translated_text == "Komm doch mal vorbei"

    def test_optional_fields_may_be_absent(self):
        payload = {
            "translation": "Hola",
            "source_sentiment": {"score": 0.1},
            "translated_sentiment": {"score": 0.1},
            "nuance": "  ",
            "source_style": "SUNG",
        }
        result = _run(_FakeOllama(payload), lambda p: p.translate_and_analyze("Hi", "en", "Spanish"))
        assert result.nuance is None
        assert result.style_hints is None
        assert result.ui_labels is None


class TestSuggestEmojiGap:
    def test_keeps_three_glyphs(self):
        handler = _FakeOllama({
            "explanation": "The German version lost the warmth of the particle.",
            "emojis": ["\U0001F60A", "\U0001F917", "✨", "\U0001F44B"],
        })
        suggestion = _run(handler, lambda p: p.suggest_emoji_gap("src", "dst", 0.8, 0.3))

        assert suggestion.glyphs == ("\U0001F60A", "\U0001F917", "✨")
        (body,) = handler.requests
        assert "sentiment 0.80" in body["prompt"]
        assert "sentiment 0.30" in body["prompt"]

    def test_fewer_than_three_glyphs_is_malformed(self):
        handler = _FakeOllama({"explanation": "x", "emojis": ["\U0001F60A", ""]})
        with pytest.raises(MalformedResponse):
            _run(handler, lambda p: p.suggest_emoji_gap("src", "dst", 0.8, 0.3))


class TestTransportErrors:
    def test_http_error_status_is_unavailable(self):
        handler = _FakeOllama({"error": "model not found"}, status_code=404)
        with pytest.raises(ProviderUnavailable):
            _run(handler, lambda p: p.analyze_sentiment("hello"))

    def test_connection_error_is_unavailable(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnavailable):
            _run(refuse, lambda p: p.analyze_sentiment("hello"))

    def test_invalid_model_json_is_malformed(self):
        handler = _FakeOllama(raw_response="Sure! Here is the JSON: {score: 1}")
        with pytest.raises(MalformedResponse):
            _run(handler, lambda p: p.analyze_sentiment("hello"))

    def test_non_object_json_is_malformed(self):
        handler = _FakeOllama(raw_response="[0.5]")
        with pytest.raises(MalformedResponse):
            _run(handler, lambda p: p.analyze_sentiment("hello"))


def test_owned_client_is_closed():
    async def go():
        provider = OllamaAnalysisProvider("http://ollama:11434", "m")
        async with provider:
            pass
        return provider._client.is_closed

    assert asyncio.run(go())
