"""
LLM Provider abstraction layer.

Provides BaseChatProvider (interface) and two real implementations:
- GeminiRestProvider: posts the strict generateContent schema with httpx
- LiteLLMProvider: reaches Gemini (or anything else) through LiteLLM

Every failure (network error, non-2xx status, malformed payload) surfaces as
TransportError. There is no retry: the caller decides what a failure means.
"""

import logging
from typing import List, Optional, Sequence

import httpx
import litellm
from pydantic import ValidationError

from geminicli.core.exceptions import ConfigurationError, TransportError
from geminicli.core.types import (
    GeminiRequest,
    GeminiResponse,
    GenerationSettings,
    ModelReply,
    Role,
    SafetySetting,
    Turn,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"


class BaseChatProvider:
    """Abstract base class for chat providers."""

    def generate(
        self,
        turns: Sequence[Turn],
        generation: GenerationSettings,
        safety_settings: Sequence[SafetySetting],
    ) -> ModelReply:
        """
        Send the whole history and return the model's reply.

        Raises:
            TransportError: network failure, bad status or malformed payload
        """
        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        raise NotImplementedError


class GeminiRestProvider(BaseChatProvider):
    """Calls {base_url}/{api_version}/models/{model_type}:generateContent."""

    def __init__(
        self,
        api_key: Optional[str],
        model_type: str = "gemini-1.0-pro",
        api_version: str = "v1beta",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.model_type = model_type
        self.api_version = api_version
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.api_version}/models/{self.model_type}:generateContent"

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key

    def generate(
        self,
        turns: Sequence[Turn],
        generation: GenerationSettings,
        safety_settings: Sequence[SafetySetting],
    ) -> ModelReply:
        if not self.api_key:
            raise ConfigurationError("API_KEY is not set")

        request = GeminiRequest.build(list(turns), generation, list(safety_settings))
        logger.debug(f"POST {self.url} with {len(request.contents)} turns")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(
                    self.url,
                    params={"key": self.api_key},
                    json=request.to_payload(),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Request to {self.model_type} failed: {e}")
            raise TransportError(f"Failed to send request: {e}") from e

        if resp.status_code != 200:
            raise TransportError(
                f"Gemini returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            output = GeminiResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise TransportError(f"Malformed Gemini response: {e}", status_code=200, body=resp.text) from e

        if not output.candidates:
            block_reason = output.prompt_feedback.block_reason if output.prompt_feedback else None
            if block_reason:
                # The prompt itself was blocked: no candidates, nothing to say
                logger.warning(f"Prompt blocked: {block_reason}")
                return ModelReply(turn=Turn(role=Role.MODEL, text=""), finish_reason=block_reason)
            raise TransportError("Gemini response has no candidates", status_code=200, body=resp.text)

        candidate = output.candidates[0]
        text = candidate.content.to_turn().text if candidate.content else ""
        turn = Turn(role=Role.MODEL, text=text)

        if candidate.finish_reason != "STOP":
            # https://ai.google.dev/api/rest/v1beta/Candidate#finishreason
            logger.warning(f"Unhandled finish reason: {candidate.finish_reason}")

        return ModelReply(turn=turn, finish_reason=candidate.finish_reason)


class LiteLLMProvider(BaseChatProvider):
    """
    Provider using LiteLLM.
    Role "model" is sent as "assistant"; safety settings are passed through.
    """

    def __init__(self, model: str = "gemini/gemini-1.0-pro", api_key: Optional[str] = None, timeout: float = 60.0):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key

    @staticmethod
    def to_messages(turns: Sequence[Turn]) -> List[dict]:
        return [
            {"role": "assistant" if t.role == Role.MODEL else "user", "content": t.text}
            for t in turns
        ]

    def generate(
        self,
        turns: Sequence[Turn],
        generation: GenerationSettings,
        safety_settings: Sequence[SafetySetting],
    ) -> ModelReply:
        kwargs = dict(
            model=self.model,
            messages=self.to_messages(turns),
            temperature=generation.temperature,
            top_p=generation.top_p,
            top_k=generation.top_k,
            max_tokens=generation.max_output_tokens,
            safety_settings=[s.model_dump(mode="json") for s in safety_settings],
            timeout=self.timeout,
        )
        if generation.stop_sequences:
            kwargs["stop"] = list(generation.stop_sequences)
        if self.api_key:
            kwargs["api_key"] = self.api_key

        try:
            response = litellm.completion(**kwargs)
        except Exception as e:
            logger.error(f"LLM call failed: {self.model}: {e}")
            raise TransportError(f"LLM generation failed: {e}") from e

        try:
            choice = response.choices[0]
            text = choice.message.content or ""
        except (AttributeError, IndexError) as e:
            raise TransportError(f"Malformed LiteLLM response: {e}") from e

        finish_reason = (getattr(choice, "finish_reason", None) or "stop").upper()
        if finish_reason != "STOP":
            logger.warning(f"Unhandled finish reason: {finish_reason}")

        return ModelReply(turn=Turn(role=Role.MODEL, text=text), finish_reason=finish_reason)


def build_provider(config) -> BaseChatProvider:
    """Pick the backend named by config.transport."""
    if config.transport == "litellm":
        return LiteLLMProvider(
            model=f"gemini/{config.model_type}",
            api_key=config.api_key,
            timeout=config.http_timeout,
        )
    return GeminiRestProvider(
        api_key=config.api_key,
        model_type=config.model_type,
        api_version=config.api_version,
        base_url=config.base_url,
        timeout=config.http_timeout,
    )
