"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Mock LLM backend and fake upstream fixtures shared by all tests
"""

from __future__ import annotations

import pytest
from dotenv import load_dotenv

from sitegen.config import PipelineSettings
from sitegen.testing import FakeUpstream, MockLLMBackend

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Common Test Fixtures
# =============================================================================


@pytest.fixture
def mock_llm_backend() -> MockLLMBackend:
    """Mock LLM backend with healthy Sweet Haven responses.

    Returns:
        MockLLMBackend instance.
    """
    return MockLLMBackend()


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    """Healthy fake upstream; adjust `.modes` per test.

    Returns:
        FakeUpstream routing Imagen, Hugging Face and Unsplash hosts.
    """
    return FakeUpstream()


@pytest.fixture
def fast_settings() -> PipelineSettings:
    """Settings with credentials for every provider and no backoff waits.

    Returns:
        PipelineSettings independent of the process environment.
    """
    return PipelineSettings(
        gemini_api_key="test-gemini-key",
        hugging_face_token="test-hf-token",
        provider_timeout=5.0,
        request_deadline=30.0,
        max_retries=2,
        base_delay=0.0,
        max_delay=0.0,
    )
