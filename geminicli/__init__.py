"""
geminicli: chat with Gemini from your terminal

Keeps a running conversation, trims the oldest turns when the estimated
token budget is exceeded, and logs every exchange to a markdown file.
"""

__version__ = "0.1.0"

from geminicli.core.config import ChatConfig
from geminicli.core.types import Role, Turn, GenerationSettings, SafetyThreshold, TokenBudget
from geminicli.core.history import HistoryManager
from geminicli.core.validator import validate_context
from geminicli.core.tokens import WordTokenEstimator, CharTokenEstimator
from geminicli.core.llm import BaseChatProvider, GeminiRestProvider, LiteLLMProvider
from geminicli.core.session import ChatSession
from geminicli.core.exceptions import (
    GeminiCLIError,
    ContextTooLargeError,
    BudgetExceededError,
    TransportError,
)

__all__ = [
    "__version__",
    "ChatConfig",
    "Role",
    "Turn",
    "GenerationSettings",
    "SafetyThreshold",
    "TokenBudget",
    "HistoryManager",
    "validate_context",
    "WordTokenEstimator",
    "CharTokenEstimator",
    "BaseChatProvider",
    "GeminiRestProvider",
    "LiteLLMProvider",
    "ChatSession",
    "GeminiCLIError",
    "ContextTooLargeError",
    "BudgetExceededError",
    "TransportError",
]
