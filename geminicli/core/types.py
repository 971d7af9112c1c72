from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class Turn(BaseModel):
    """One message in the conversation. Frozen once created."""
    model_config = ConfigDict(frozen=True)

    role: Role
    text: str


class SafetyThreshold(str, Enum):
    # https://ai.google.dev/api/rest/v1beta/SafetySetting#HarmBlockThreshold
    HARM_BLOCK_THRESHOLD_UNSPECIFIED = "HARM_BLOCK_THRESHOLD_UNSPECIFIED"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_NONE = "BLOCK_NONE"


class HarmCategory(str, Enum):
    HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"
    DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"


class SafetySetting(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: HarmCategory
    threshold: SafetyThreshold = SafetyThreshold.BLOCK_NONE


def default_safety_settings(
    harassment: SafetyThreshold = SafetyThreshold.BLOCK_NONE,
    hate_speech: SafetyThreshold = SafetyThreshold.BLOCK_NONE,
    sexually_explicit: SafetyThreshold = SafetyThreshold.BLOCK_NONE,
    dangerous_content: SafetyThreshold = SafetyThreshold.BLOCK_NONE,
) -> List[SafetySetting]:
    """Build the four-category safety list sent with every request."""
    return [
        SafetySetting(category=HarmCategory.HARASSMENT, threshold=harassment),
        SafetySetting(category=HarmCategory.HATE_SPEECH, threshold=hate_speech),
        SafetySetting(category=HarmCategory.SEXUALLY_EXPLICIT, threshold=sexually_explicit),
        SafetySetting(category=HarmCategory.DANGEROUS_CONTENT, threshold=dangerous_content),
    ]


class GenerationSettings(BaseModel):
    """Sampling parameters, fixed for the lifetime of a session."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: float = 0.9
    top_k: int = Field(default=1, alias="topK")
    top_p: float = Field(default=1.0, alias="topP")
    max_output_tokens: int = Field(default=2048, alias="maxOutputTokens")
    stop_sequences: List[str] = Field(default_factory=list, alias="stopSequences")


class TokenBudget(BaseModel):
    model_config = ConfigDict(frozen=True)

    hard_limit: int = 30720
    warning_limit: int = 25000
    reserved_output_tokens: int = 2048


# --- Wire schema for the generateContent endpoint ---

class Part(BaseModel):
    text: str = ""


class Content(BaseModel):
    # Blocked candidates can come back with an empty content object
    parts: List[Part] = Field(default_factory=list)
    role: Role = Role.MODEL

    @classmethod
    def from_turn(cls, turn: Turn) -> "Content":
        return cls(role=turn.role, parts=[Part(text=turn.text)])

    def to_turn(self) -> Turn:
        # The API may split a reply across several parts
        return Turn(role=self.role, text="".join(p.text for p in self.parts))


class GeminiRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contents: List[Content]
    generation_config: GenerationSettings = Field(alias="generationConfig")
    safety_settings: List[SafetySetting] = Field(default_factory=list, alias="safetySettings")

    @classmethod
    def build(
        cls,
        turns: List[Turn],
        generation: GenerationSettings,
        safety_settings: List[SafetySetting],
    ) -> "GeminiRequest":
        return cls(
            contents=[Content.from_turn(t) for t in turns],
            generation_config=generation,
            safety_settings=list(safety_settings),
        )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SafetyRating(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str
    probability: str


class Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    content: Optional[Content] = None
    finish_reason: str = Field(default="FINISH_REASON_UNSPECIFIED", alias="finishReason")
    index: int = 0
    safety_ratings: List[SafetyRating] = Field(default_factory=list, alias="safetyRatings")


class PromptFeedback(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    block_reason: Optional[str] = Field(default=None, alias="blockReason")
    safety_ratings: List[SafetyRating] = Field(default_factory=list, alias="safetyRatings")


class GeminiResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    candidates: List[Candidate] = Field(default_factory=list)
    prompt_feedback: Optional[PromptFeedback] = Field(default=None, alias="promptFeedback")


class ModelReply(BaseModel):
    """What a provider hands back for one request."""
    turn: Turn
    finish_reason: str = "STOP"

    @property
    def text(self) -> str:
        return self.turn.text
