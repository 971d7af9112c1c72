"""
geminicli core - conversation history and token-budget management

Re-exports all public interfaces for clean imports:
    from geminicli.core import HistoryManager, TokenBudget, validate_context
"""

# Data structures
from geminicli.core.types import (
    Role,
    Turn,
    GenerationSettings,
    SafetyThreshold,
    HarmCategory,
    SafetySetting,
    TokenBudget,
    GeminiRequest,
    GeminiResponse,
    ModelReply,
    default_safety_settings,
)

# Exceptions
from geminicli.core.exceptions import (
    GeminiCLIError,
    ContextTooLargeError,
    BudgetExceededError,
    InvalidSafetyThresholdError,
    InvalidNumericConfigError,
    ConfigurationError,
    TransportError,
    LogFileError,
)

# Core components
from geminicli.core.tokens import TokenEstimator, WordTokenEstimator, CharTokenEstimator, estimate_tokens
from geminicli.core.validator import ContextCheck, ContextValidator, validate_context
from geminicli.core.history import HistoryManager
from geminicli.core.config import ChatConfig, parse_safety_threshold, parse_number
from geminicli.core.llm import BaseChatProvider, GeminiRestProvider, LiteLLMProvider, build_provider
from geminicli.core.logger import ConversationLogger
from geminicli.core.session import ChatSession, Command, ExchangeResult, parse_command

__all__ = [
    # Types
    "Role", "Turn", "GenerationSettings", "SafetyThreshold", "HarmCategory", "SafetySetting",
    "TokenBudget", "GeminiRequest", "GeminiResponse", "ModelReply", "default_safety_settings",
    # Exceptions
    "GeminiCLIError", "ContextTooLargeError", "BudgetExceededError", "InvalidSafetyThresholdError",
    "InvalidNumericConfigError", "ConfigurationError", "TransportError", "LogFileError",
    # Components
    "TokenEstimator", "WordTokenEstimator", "CharTokenEstimator", "estimate_tokens",
    "ContextCheck", "ContextValidator", "validate_context", "HistoryManager",
    "ChatConfig", "parse_safety_threshold", "parse_number",
    "BaseChatProvider", "GeminiRestProvider", "LiteLLMProvider", "build_provider",
    "ConversationLogger", "ChatSession", "Command", "ExchangeResult", "parse_command",
]
