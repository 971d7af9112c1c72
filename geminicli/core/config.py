"""
geminicli Configuration System.

Uses Pydantic BaseSettings to load configuration from:
  1. Environment variables (API_KEY, TEMPERATURE, TOP_K, HARASSMENT, ...)
  2. .env file
  3. Defaults

Bad values never abort startup: an unknown safety threshold falls back to
BLOCK_NONE, and an unparseable or non-positive number, an unknown flag value
or an unknown transport falls back to the field default, each with a logged
warning.

Usage:
    config = ChatConfig()  # auto-loads from env
    config = ChatConfig(token_limit=8000, debug=True)  # explicit
"""

import logging
from typing import Any, List, Literal, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from geminicli.core.exceptions import InvalidNumericConfigError, InvalidSafetyThresholdError
from geminicli.core.types import (
    GenerationSettings,
    SafetySetting,
    SafetyThreshold,
    TokenBudget,
    default_safety_settings,
)

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = (
    "max_output_tokens",
    "temperature",
    "top_k",
    "top_p",
    "token_limit",
    "token_warning",
    "tokens_per_word",
    "http_timeout",
)
# Zero or negative makes no sense for these
_POSITIVE_FIELDS = (
    "max_output_tokens",
    "token_limit",
    "token_warning",
    "tokens_per_word",
    "http_timeout",
)
_FLAG_FIELDS = ("evict_until_fits", "hide_welcome", "debug")
_TRUE_VALUES = {"1", "true", "yes", "on", "y", "t"}
_FALSE_VALUES = {"0", "false", "no", "off", "n", "f", ""}
_TRANSPORTS = ("rest", "litellm")
_SAFETY_FIELDS = ("harassment", "hate_speech", "sexually_explicit", "dangerous_content")


def parse_safety_threshold(value: Any, category: str = "", strict: bool = False) -> SafetyThreshold:
    """
    Map a user-supplied string onto SafetyThreshold, case-insensitively.

    Unset/empty means BLOCK_NONE. Anything unrecognised raises
    InvalidSafetyThresholdError when strict, otherwise logs a warning and
    returns BLOCK_NONE.
    """
    if isinstance(value, SafetyThreshold):
        return value
    if value is None or not str(value).strip():
        return SafetyThreshold.BLOCK_NONE

    normalized = str(value).strip().upper()
    try:
        return SafetyThreshold(normalized)
    except ValueError:
        if strict:
            raise InvalidSafetyThresholdError(str(value), category)
        logger.warning(
            f"Invalid safety threshold {value!r} for {category or 'category'}, using BLOCK_NONE. "
            f"Valid values: {', '.join(t.value for t in SafetyThreshold)}"
        )
        return SafetyThreshold.BLOCK_NONE


def parse_number(name: str, value: Any, kind: type = int, positive: bool = False):
    """Parse `value` as `kind` (int or float) or raise InvalidNumericConfigError."""
    number = _coerce_number(name, value, kind)
    if positive and number <= 0:
        raise InvalidNumericConfigError(name, value, f"positive {kind.__name__}")
    return number


def _coerce_number(name: str, value: Any, kind: type):
    if isinstance(value, bool):
        raise InvalidNumericConfigError(name, value, kind.__name__)
    if isinstance(value, (int, float)):
        if kind is int and isinstance(value, float) and not value.is_integer():
            raise InvalidNumericConfigError(name, value, kind.__name__)
        return kind(value)
    try:
        return kind(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidNumericConfigError(name, value, kind.__name__)


class ChatConfig(BaseSettings):
    """Master configuration for geminicli."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # API
    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    model_type: str = Field(default="gemini-1.0-pro", description="Model name in the endpoint path")
    api_version: str = Field(default="v1beta", description="API version in the endpoint path")
    base_url: str = Field(default="https://generativelanguage.googleapis.com")
    transport: Literal["rest", "litellm"] = Field(default="rest", description="Backend used to reach the model")
    http_timeout: float = Field(default=60.0, description="Request timeout in seconds")

    # Generation
    max_output_tokens: int = Field(default=2048, description="Max tokens in one reply")
    temperature: float = Field(default=0.9)
    top_k: int = Field(default=1)
    top_p: float = Field(default=1.0)

    # Safety
    harassment: SafetyThreshold = SafetyThreshold.BLOCK_NONE
    hate_speech: SafetyThreshold = SafetyThreshold.BLOCK_NONE
    sexually_explicit: SafetyThreshold = SafetyThreshold.BLOCK_NONE
    dangerous_content: SafetyThreshold = SafetyThreshold.BLOCK_NONE

    # Token budget
    token_limit: int = Field(default=30720, description="Max tokens for the conversation history")
    token_warning: int = Field(default=25000, description="Advisory threshold for the history")
    tokens_per_word: float = Field(default=1.33, description="Estimator ratio")
    evict_until_fits: bool = Field(default=False, description="Evict pairs until under budget")

    # Session & output
    context_file: Optional[str] = Field(default=None, description="Path to the context file")
    output_dir: str = Field(default=".", description="Directory for conversation logs")
    hide_welcome: bool = False
    debug: bool = Field(default=False, description="Enable debug logging")

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _recover_numeric(cls, value: Any, info: ValidationInfo):
        field = cls.model_fields[info.field_name]
        try:
            return parse_number(
                info.field_name, value, field.annotation,
                positive=info.field_name in _POSITIVE_FIELDS,
            )
        except InvalidNumericConfigError as e:
            logger.warning(f"{e}; using default {field.default}")
            return field.default

    @field_validator(*_SAFETY_FIELDS, mode="before")
    @classmethod
    def _recover_threshold(cls, value: Any, info: ValidationInfo):
        return parse_safety_threshold(value, category=info.field_name.upper())

    @field_validator(*_FLAG_FIELDS, mode="before")
    @classmethod
    def _recover_flag(cls, value: Any, info: ValidationInfo):
        if isinstance(value, bool):
            return value
        normalized = str(value).strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        default = cls.model_fields[info.field_name].default
        logger.warning(f"Invalid boolean for {info.field_name}: {value!r}; using default {default}")
        return default

    @field_validator("transport", mode="before")
    @classmethod
    def _recover_transport(cls, value: Any):
        normalized = str(value).strip().lower()
        if normalized in _TRANSPORTS:
            return normalized
        default = cls.model_fields["transport"].default
        logger.warning(
            f"Invalid transport {value!r}, expected one of {', '.join(_TRANSPORTS)}; using default {default}"
        )
        return default

    def generation_settings(self) -> GenerationSettings:
        return GenerationSettings(
            temperature=self.temperature,
            top_k=self.top_k,
            top_p=self.top_p,
            max_output_tokens=self.max_output_tokens,
            stop_sequences=[],
        )

    def token_budget(self) -> TokenBudget:
        return TokenBudget(
            hard_limit=self.token_limit,
            warning_limit=self.token_warning,
            reserved_output_tokens=self.max_output_tokens,
        )

    def safety_settings(self) -> List[SafetySetting]:
        return default_safety_settings(
            harassment=self.harassment,
            hate_speech=self.hate_speech,
            sexually_explicit=self.sexually_explicit,
            dangerous_content=self.dangerous_content,
        )

    def describe(self) -> dict:
        """Config dump safe to log: the API key is masked."""
        data = self.model_dump(mode="json")
        if self.api_key:
            data["api_key"] = f"{self.api_key[:4]}…" if len(self.api_key) > 8 else "****"
        return data

    def setup_logging(self) -> None:
        """Configure Python logging based on the debug flag."""
        level = logging.DEBUG if self.debug else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        # Quiet noisy libraries
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("LiteLLM").setLevel(logging.WARNING)
        logger.debug(f"Logging configured: level={logging.getLevelName(level)}")
        logger.debug(f"Resolved config: {self.describe()}")
