import logging
from contextlib import asynccontextmanager
from dataclasses import asdict

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import config
from .errors import ProviderError
from .languages import SUPPORTED_LANGUAGES, find_language
from .models import NEUTRAL_READING, EmojiAnnotatedSentiment, Phase, PipelineState, annotate
from .pipeline import TranslationOrchestrator
from .plot import color_for, comparison_vector, css_color, to_plot_point
from .providers.base import AnalysisProvider
from .providers.ollama import OllamaAnalysisProvider
from .schemas import (
    ComparisonModel,
    PlotPointModel,
    SentimentModel,
    SentimentRequest,
    SuggestionModel,
    TranslateRequest,
    TranslateResponse,
)
from .sinks import LoggingSink, SnapshotRecorder

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger(__name__)

# Shared across requests for connection pooling; created at startup.
_provider: AnalysisProvider | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _provider
    client = httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT)
    _provider = OllamaAnalysisProvider(config.OLLAMA_BASE_URL, config.MODEL_NAME, client=client)
    log.info("Analysis provider: ollama url=%s model=%s particle_languages=%s",
             config.OLLAMA_BASE_URL, config.MODEL_NAME, sorted(config.PARTICLE_LANGUAGES))
    yield
    await client.aclose()
    _provider = None


app = FastAPI(
    title="Sentiment Translator",
    description="Translates text and compares its emotional tone before and after translation",
    lifespan=lifespan,
)


def get_provider() -> AnalysisProvider:
    if _provider is None:
        raise HTTPException(status_code=503, detail="Analysis provider not initialised")
    return _provider


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    body = await request.body()
    log.error("422 validation error on %s %s", request.method, request.url.path)
    log.error("Request body: %s", body.decode(errors="replace")[:2000])
    log.error("Validation errors: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc), "body_preview": body.decode(errors="replace")[:500]},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", "")), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def _sentiment_model(sentiment: EmojiAnnotatedSentiment) -> SentimentModel:
    point = to_plot_point(sentiment)
    return SentimentModel(
        valence=sentiment.valence,
        intimacy=sentiment.intimacy,
        formality=sentiment.formality,
        glyph=sentiment.glyph,
        hue=color_for(sentiment.valence),
        color=css_color(sentiment.valence),
        point=PlotPointModel(x=point.x, y=point.y),
    )


def _translate_response(
    state: PipelineState, recorder: SnapshotRecorder, report: dict,
) -> TranslateResponse:
    vector = comparison_vector(state.source_sentiment, state.target_sentiment)
    suggestion = None
    if state.suggestion is not None:
        suggestion = SuggestionModel(
            explanation=state.suggestion.explanation, glyphs=list(state.suggestion.glyphs),
        )
    hints = state.style_hints
    return TranslateResponse(
        phase=state.phase.value,
        source_text=state.source_text,
        translation=state.translation,
        source_sentiment=_sentiment_model(state.source_sentiment),
        target_sentiment=_sentiment_model(state.target_sentiment),
        comparison=ComparisonModel(
            start=PlotPointModel(x=vector.start.x, y=vector.start.y),
            end=PlotPointModel(x=vector.end.x, y=vector.end.y),
            start_hue=vector.start_hue,
            end_hue=vector.end_hue,
        ),
        suggestion=suggestion,
        nuance=state.nuance,
        source_style=hints.source.value if hints else None,
        target_style=hints.target.value if hints else None,
        ui_labels=asdict(state.ui_labels) if state.ui_labels else None,
        phases=[p.value for p in recorder.phases()],
        report=report,
    )


@app.get("/health")
async def health():
    return {"status": "ok", "model": config.MODEL_NAME}


@app.get("/languages")
async def languages():
    return [{"code": lang.code, "name": lang.name} for lang in SUPPORTED_LANGUAGES]


@app.post("/sentiment", response_model=SentimentModel)
async def sentiment(request: SentimentRequest, provider: AnalysisProvider = Depends(get_provider)):
    log.info("POST /sentiment — text_length=%d", len(request.text))
    try:
        reading = await provider.analyze_sentiment(request.text)
    except ProviderError as e:
        log.warning("Sentiment analysis failed, returning neutral reading: %s", e)
        reading = NEUTRAL_READING
    return _sentiment_model(annotate(reading))


@app.post("/translate", response_model=TranslateResponse)
async def translate(request: TranslateRequest, provider: AnalysisProvider = Depends(get_provider)):
    log.info("POST /translate — %s -> %s text_length=%d",
             request.source_language, request.target_language, len(request.text))
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="text must not be empty")

    source_lang = find_language(request.source_language)
    target_lang = find_language(request.target_language)
    for code, lang in ((request.source_language, source_lang), (request.target_language, target_lang)):
        if lang is None:
            raise HTTPException(status_code=400, detail=f"Unsupported language code {code!r}")

    recorder = SnapshotRecorder()
    orchestrator = TranslationOrchestrator(
        provider,
        [recorder, LoggingSink()],
        initial=PipelineState(
            source_text=request.text,
            source_language=source_lang,
            target_language=target_lang,
        ),
    )
    try:
        final = await orchestrator.translate()
    finally:
        orchestrator.close()

    if final.phase is not Phase.READY:
        raise HTTPException(status_code=502, detail=final.error or "Translation did not complete")

    return _translate_response(final, recorder, orchestrator.last_report or {})
