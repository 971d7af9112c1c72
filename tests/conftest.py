"""
Shared pytest fixtures for the geminicli test suite.

Provides a mock chat provider, budgets, histories and sessions so individual
test files can focus on behavior, not setup.
"""

import pytest

from geminicli.core.history import HistoryManager
from geminicli.core.llm import BaseChatProvider
from geminicli.core.logger import ConversationLogger
from geminicli.core.session import ChatSession
from geminicli.core.tokens import WordTokenEstimator
from geminicli.core.types import (
    GenerationSettings,
    ModelReply,
    Role,
    TokenBudget,
    Turn,
    default_safety_settings,
)

CONFIG_ENV_VARS = [
    "API_KEY", "MODEL_TYPE", "API_VERSION", "BASE_URL", "TRANSPORT", "HTTP_TIMEOUT",
    "MAX_OUTPUT_TOKENS", "TEMPERATURE", "TOP_K", "TOP_P",
    "HARASSMENT", "HATE_SPEECH", "SEXUALLY_EXPLICIT", "DANGEROUS_CONTENT",
    "TOKEN_LIMIT", "TOKEN_WARNING", "TOKENS_PER_WORD", "EVICT_UNTIL_FITS",
    "CONTEXT_FILE", "OUTPUT_DIR", "HIDE_WELCOME", "DEBUG",
]


class MockChatProvider(BaseChatProvider):
    """Mock provider that returns configurable replies without network calls."""

    def __init__(self, response: str = "Mock model reply", finish_reason: str = "STOP", error: Exception = None):
        self._response = response
        self._finish_reason = finish_reason
        self._error = error
        self.call_count = 0
        self.last_turns = None
        self.api_key = "test-key"

    def generate(self, turns, generation, safety_settings):
        self.call_count += 1
        self.last_turns = list(turns)
        if self._error is not None:
            raise self._error
        return ModelReply(turn=Turn(role=Role.MODEL, text=self._response), finish_reason=self._finish_reason)

    def set_api_key(self, api_key):
        self.api_key = api_key


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the real environment and any local .env out of every test."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def estimator():
    """One token per word, so text sizes are easy to reason about."""
    return WordTokenEstimator(tokens_per_word=1.0)


@pytest.fixture
def budget():
    return TokenBudget(hard_limit=100, warning_limit=80, reserved_output_tokens=10)


@pytest.fixture
def history(budget, estimator):
    return HistoryManager(budget, estimator=estimator)


@pytest.fixture
def generation():
    return GenerationSettings(temperature=0.5, top_k=3, top_p=0.8, max_output_tokens=256)


@pytest.fixture
def mock_provider():
    return MockChatProvider()


@pytest.fixture
def make_provider():
    """Factory for providers with a custom reply or error."""
    return MockChatProvider


@pytest.fixture
def words():
    """words(n) builds text the one-token-per-word estimator counts as n tokens."""
    return lambda n: " ".join(["word"] * n)


@pytest.fixture
def conversation_log(tmp_path):
    return ConversationLogger(str(tmp_path / "logs"))


@pytest.fixture
def session(budget, generation, mock_provider, conversation_log, estimator):
    return ChatSession(
        budget=budget,
        generation=generation,
        safety_settings=default_safety_settings(),
        provider=mock_provider,
        conversation_log=conversation_log,
        estimator=estimator,
    )
