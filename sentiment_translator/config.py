"""Environment-driven settings."""

import os

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
MODEL_NAME = os.getenv("MODEL_NAME", "llama3.1:8b")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "60"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Quiet period before a live sentiment request is sent (500 ms).
DEBOUNCE_SECONDS = float(os.getenv("DEBOUNCE_SECONDS", "0.5"))

# Source languages whose discourse particles get a dedicated prompt.
PARTICLE_LANGUAGES: frozenset[str] = frozenset(
    code.strip().lower()
    for code in os.getenv("PARTICLE_LANGUAGES", "de,th").split(",")
    if code.strip()
)
