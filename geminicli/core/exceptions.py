"""
geminicli Custom Exception Hierarchy

All geminicli-specific exceptions inherit from GeminiCLIError.
This enables:
  - Catching ALL client errors:     except GeminiCLIError
  - Catching specific categories:   except BudgetExceededError
  - Clean error messages with structured context

Recoverable conditions (ContextTooLargeError, BudgetExceededError) are raised
for the caller to handle interactively. Invalid configuration values are
recovered inside the config layer and never escape it.
"""


class GeminiCLIError(Exception):
    """Base exception for all geminicli errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ContextTooLargeError(GeminiCLIError):
    """Raised when a candidate context does not fit under the hard limit."""

    def __init__(self, estimated_tokens: int, hard_limit: int, reserved_output_tokens: int = 0):
        self.estimated_tokens = estimated_tokens
        self.hard_limit = hard_limit
        self.reserved_output_tokens = reserved_output_tokens
        msg = (
            f"Context is too large: ~{estimated_tokens} tokens "
            f"+ {reserved_output_tokens} reserved for output > {hard_limit} limit."
        )
        super().__init__(msg, details={
            "estimated_tokens": estimated_tokens,
            "hard_limit": hard_limit,
            "reserved_output_tokens": reserved_output_tokens,
        })


class BudgetExceededError(GeminiCLIError):
    """Raised when the accumulated history is over the hard limit."""

    def __init__(self, total_tokens: int, hard_limit: int):
        self.total_tokens = total_tokens
        self.hard_limit = hard_limit
        super().__init__(
            f"Conversation history is ~{total_tokens} tokens, over the {hard_limit} limit.",
            details={"total_tokens": total_tokens, "hard_limit": hard_limit},
        )


class InvalidSafetyThresholdError(GeminiCLIError):
    """Raised by the strict threshold parser for an unknown enum string."""

    def __init__(self, value: str, category: str = ""):
        self.value = value
        self.category = category
        super().__init__(
            f"Invalid safety threshold {value!r}" + (f" for {category}" if category else ""),
            details={"value": value, "category": category},
        )


class InvalidNumericConfigError(GeminiCLIError):
    """Raised when a configuration value is not a valid number."""

    def __init__(self, name: str, value: str, expected: str):
        self.name = name
        self.value = value
        super().__init__(
            f"Invalid {expected} for {name}: {value!r}",
            details={"name": name, "value": str(value)[:100], "expected": expected},
        )


class ConfigurationError(GeminiCLIError):
    """Raised when required configuration (e.g. the API key) is missing."""
    pass


class TransportError(GeminiCLIError):
    """Raised when the API call fails: network, HTTP status, or bad payload."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message, details={
            "status_code": status_code,
            "body": body[:500],
        })


class LogFileError(GeminiCLIError):
    """Raised for an invalid request against the conversation log files."""
    pass
