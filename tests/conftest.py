"""Shared pytest fixtures for all tests."""

import pytest

from fakes import FakeProvider, ManualScheduler
from sentiment_translator.sinks import SnapshotRecorder


@pytest.fixture
def provider():
    """Scripted analysis provider (café example: 0.8 -> 0.3)."""
    return FakeProvider()


@pytest.fixture
def scheduler():
    """Debounce scheduler driven by the test."""
    return ManualScheduler()


@pytest.fixture
def recorder():
    """Sink that keeps every published snapshot."""
    return SnapshotRecorder()
