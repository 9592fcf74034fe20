"""Shared test fixtures."""
from __future__ import annotations

import pytest

from assessgen.config import Settings
from assessgen.models import Difficulty, GenerationRequest


@pytest.fixture
def fast_settings():
    """Default limits, but no backoff sleeps."""
    return Settings(retry_delay=0)


@pytest.fixture
def sample_content():
    return (
        "The Transmission Control Protocol provides reliable, ordered delivery of a byte stream. "
        "Congestion control in TCP uses slow start and additive increase, multiplicative decrease. "
        "The Internet Protocol handles addressing and routing of packets between networks."
    )


@pytest.fixture
def sample_objectives():
    return "Describe how TCP recovers from packet loss.\nExplain the role of IP routing."


@pytest.fixture
def make_request(sample_content, sample_objectives):
    def _make(counts, difficulty=Difficulty.MEDIUM, **kwargs):
        kwargs.setdefault("content", sample_content)
        kwargs.setdefault("objectives", sample_objectives)
        return GenerationRequest(counts=counts, difficulty=difficulty, **kwargs)
    return _make
