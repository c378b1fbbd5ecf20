"""
Integration tests for the HTTP service.

The analysis provider dependency is overridden with the scripted fake.
"""

import pytest
from fastapi.testclient import TestClient

from fakes import FakeProvider, make_translation
from sentiment_translator.errors import ProviderUnavailable
from sentiment_translator.main import app, get_provider
from sentiment_translator.models import SentimentReading
from sentiment_translator.pipeline import GENERIC_FAILURE_MESSAGE


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def client(fake_provider):
    app.dependency_overrides[get_provider] = lambda: fake_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestMeta:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_languages(self, client):
        codes = [lang["code"] for lang in client.get("/languages").json()]
        assert codes == ["en", "ko", "ja", "es", "fr", "de", "th", "zh"]


class TestSentimentEndpoint:
    def test_returns_reading_with_glyph_and_plot_data(self, client, fake_provider):
        fake_provider.sentiments["lovely"] = SentimentReading(0.8, 65.0, 25.0)
        body = client.post("/sentiment", json={"text": "lovely"}).json()

        assert body["valence"] == 0.8
        assert body["glyph"] == "\U0001F604"
        assert body["point"] == {"x": 25.0, "y": 65.0}
        assert body["hue"] == pytest.approx(108.0)

    def test_provider_failure_degrades_to_neutral(self, client, fake_provider):
        fake_provider.sentiment_error = ProviderUnavailable("down")
        resp = client.post("/sentiment", json={"text": "anything"})
        assert resp.status_code == 200
        assert resp.json()["valence"] == 0.0
        assert resp.json()["point"] == {"x": 50.0, "y": 50.0}

    def test_missing_text_is_422(self, client):
        resp = client.post("/sentiment", json={})
        assert resp.status_code == 422
        assert "body_preview" in resp.json()


class TestTranslateEndpoint:
    def test_full_run_with_suggestion(self, client, fake_provider):
        resp = client.post("/translate", json={
            "text": "This new café has wonderful ambiance",
            "source_language": "en",
            "target_language": "ko",
        })
        assert resp.status_code == 200
        body = resp.json()

        assert body["phase"] == "ready"
        assert body["phases"] == ["translating", "analyzing_translation", "suggesting_emoji", "ready"]
        assert body["source_sentiment"]["glyph"] == "\U0001F604"
        assert len(body["suggestion"]["glyphs"]) == 3
        assert body["comparison"]["start"] == {"x": 30.0, "y": 55.0}
        assert body["comparison"]["end"] == {"x": 70.0, "y": 35.0}
        assert body["report"]["steps"]
        (_, _, code, name), = fake_provider.calls_to("translate_and_analyze")
        assert (code, name) == ("en", "Korean")

    def test_small_delta_has_no_suggestion(self, client, fake_provider):
        fake_provider.translation = make_translation(0.4, 0.35)
        body = client.post("/translate", json={"text": "ok", "source_language": "en"}).json()
        assert body["suggestion"] is None
        assert "suggesting_emoji" not in body["phases"]

    def test_failure_is_502_with_generic_message(self, client, fake_provider):
        fake_provider.translation = ProviderUnavailable("upstream said: invalid key abc")
        resp = client.post("/translate", json={"text": "hello", "source_language": "en"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == GENERIC_FAILURE_MESSAGE

    def test_unknown_language_is_400(self, client):
        resp = client.post("/translate", json={"text": "hello", "target_language": "xx"})
        assert resp.status_code == 400

    def test_blank_text_is_400(self, client, fake_provider):
        resp = client.post("/translate", json={"text": "   "})
        assert resp.status_code == 400
        assert fake_provider.calls == []
