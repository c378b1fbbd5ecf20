"""Shared Ollama HTTP helper for the analysis provider.

Provides a single async function that handles the HTTP call, error
mapping and JSON parsing common to every provider request.
"""

from __future__ import annotations

import json
import logging

import httpx

from ..errors import MalformedResponse, ProviderUnavailable

log = logging.getLogger(__name__)


async def call_ollama(
    client: httpx.AsyncClient,
    ollama_url: str,
    model_name: str,
    system_prompt: str,
    user_prompt: str,
) -> dict:
    """Send a prompt to Ollama's ``/api/generate`` endpoint and return
    the parsed JSON object the model produced.

    Raises ``ProviderUnavailable`` on transport or HTTP status errors and
    ``MalformedResponse`` when the model output is not a JSON object.
    """
    try:
        resp = await client.post(
            f"{ollama_url}/api/generate",
            json={
                "model": model_name,
                "prompt": user_prompt,
                "system": system_prompt,
                "stream": False,
                "format": "json",
            },
        )
        resp.raise_for_status()
    except httpx.HTTPError as e:
        log.error("Ollama request failed: %s", e)
        raise ProviderUnavailable(f"Ollama request failed: {e}") from e

    try:
        raw = resp.json().get("response", "")
        parsed = json.loads(raw)
    except (ValueError, AttributeError, TypeError) as e:
        log.error("LLM returned invalid JSON: %.500s", resp.text)
        raise MalformedResponse("LLM returned invalid JSON") from e

    if not isinstance(parsed, dict):
        log.error("LLM returned non-object JSON: %.500s", raw)
        raise MalformedResponse("LLM returned a non-object JSON value")

    log.debug("Ollama responded (%d chars)", len(raw))
    return parsed
