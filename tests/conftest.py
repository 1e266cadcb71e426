"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging

import pytest

from stylechat.conversations.base import HistoryStore
from stylechat.models.conversation import ConversationHistory
from stylechat.models.errors import StoreUnavailableError

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires PostgreSQL via STYLECHAT_TEST_DATABASE_URL)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Capture all log levels for every test."""
    caplog.set_level(logging.DEBUG)
    yield


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def mock_google_api_key(monkeypatch, tmp_path):
    """
    Provide a Google API key and an isolated history directory.

    Prevents tests from reading a developer .env or writing chat_history/
    into the working tree.
    """
    from stylechat.config import get_settings

    get_settings.cache_clear()

    test_key = "test-google-key-1234567890"
    monkeypatch.setenv("STYLECHAT_ENV_SOURCE", "environment")
    monkeypatch.setenv("LLM_GOOGLE_API_KEY", test_key)
    monkeypatch.setenv("HISTORY_FILE_DIR", str(tmp_path / "chat_history"))
    monkeypatch.delenv("HISTORY_DATABASE_URL", raising=False)
    monkeypatch.delenv("SESSION_MAX_EXCHANGES", raising=False)
    yield test_key

    get_settings.cache_clear()


# ============================================================================
# Fake History Store
# ============================================================================


class InMemoryHistoryStore(HistoryStore):
    """
    Dict-backed store honoring the HistoryStore contract.

    ``fail_reads`` / ``fail_writes`` simulate an unreachable backend.
    """

    kind = "memory"

    def __init__(self):
        self.records: dict[str, dict] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.read_calls = 0
        self.write_calls = 0

    async def _read(self, user_id):
        self.read_calls += 1
        if self.fail_reads:
            raise StoreUnavailableError(self.kind, "read refused")
        record = self.records.get(user_id)
        return ConversationHistory.from_record(record) if record else None

    async def _write(self, history):
        self.write_calls += 1
        if self.fail_writes:
            raise StoreUnavailableError(self.kind, "write refused")
        existing = self.records.get(history.user_id)
        if existing is not None and len(existing["history"]) > history.turn_count:
            return False
        self.records[history.user_id] = history.to_record()
        return True


@pytest.fixture
def memory_store():
    """Fresh in-memory history store."""
    return InMemoryHistoryStore()


# ============================================================================
# Mock LLM Provider
# ============================================================================


@pytest.fixture
def mock_llm_provider():
    """
    Mock LLM provider for pipeline tests.

    Usage:
        def test_flow(mock_llm_provider):
            mock_llm_provider.set_response("Try a linen suit.")
            mock_llm_provider.set_stream(["Try ", "linen."])
    """
    from unittest.mock import AsyncMock

    from stylechat.llm.models import LLMResponse, LLMStreamChunk, LLMUsage

    class MockLLMProvider:
        provider_name = "mock"

        def __init__(self):
            self.generate = AsyncMock()
            self.close = AsyncMock()
            self.stream_chunks: list[str] = []
            self.stream_error: Exception | None = None
            self.stream_requests = []

        def set_response(self, response: str):
            """Set the response that generate() will return."""
            self.generate.return_value = LLMResponse(
                content=response,
                model="mock-model",
                usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
                finish_reason="stop",
                provider="mock",
                metadata={},
            )

        def set_stream(self, chunks: list[str], error: Exception | None = None):
            """Chunks yielded by stream(); ``error`` is raised after them."""
            self.stream_chunks = chunks
            self.stream_error = error

        async def stream(self, request):
            self.stream_requests.append(request)
            for text in self.stream_chunks:
                yield LLMStreamChunk(content=text)
            if self.stream_error is not None:
                raise self.stream_error

    return MockLLMProvider()


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def png_bytes() -> bytes:
    """Small payload standing in for an image upload."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
