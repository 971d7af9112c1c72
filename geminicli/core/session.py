"""
Chat session — explicit owner of everything one conversation needs.

The session holds the history, budget, generation and safety settings, the
active context and the log sink. Nothing lives at module level, so the CLI
(or a test) can run several sessions side by side.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from geminicli.core.exceptions import BudgetExceededError, GeminiCLIError
from geminicli.core.history import HistoryManager
from geminicli.core.llm import BaseChatProvider
from geminicli.core.logger import ConversationLogger
from geminicli.core.tokens import TokenEstimator
from geminicli.core.types import (
    GenerationSettings,
    ModelReply,
    SafetySetting,
    TokenBudget,
    Turn,
)
from geminicli.core.validator import ContextCheck, validate_context

logger = logging.getLogger(__name__)


class Command(str, Enum):
    RESET_CHAT = "1"
    CHANGE_CONTEXT = "2"
    DELETE_LOG = "3"
    CHANGE_API_KEY = "4"
    EXIT = "5"


COMMAND_LABELS = {
    Command.RESET_CHAT: "Start new chat",
    Command.CHANGE_CONTEXT: "Change context",
    Command.DELETE_LOG: "Delete a conversation log",
    Command.CHANGE_API_KEY: "Change API key",
    Command.EXIT: "Exit",
}


def parse_command(choice: str) -> Optional[Command]:
    try:
        return Command(choice.strip())
    except ValueError:
        return None


@dataclass
class ExchangeResult:
    """Everything the UI needs to report after one request/response cycle."""
    user_turn: Turn
    reply: ModelReply
    evicted: List[Turn] = field(default_factory=list)
    budget_error: Optional[BudgetExceededError] = None
    over_warning: bool = False


class ChatSession:
    def __init__(
        self,
        budget: TokenBudget,
        generation: GenerationSettings,
        safety_settings: Sequence[SafetySetting],
        provider: BaseChatProvider,
        conversation_log: ConversationLogger,
        context: str = "",
        estimator: Optional[TokenEstimator] = None,
        evict_until_fits: bool = False,
    ):
        self.budget = budget
        self.generation = generation
        self.safety_settings = list(safety_settings)
        self.provider = provider
        self.conversation_log = conversation_log
        self.history = HistoryManager(budget, estimator=estimator, evict_until_fits=evict_until_fits)
        self.context = context
        self.first_input = True

    @property
    def estimator(self) -> TokenEstimator:
        return self.history.estimator

    def check_context(self, text: str) -> ContextCheck:
        """Validate without changing the session."""
        return validate_context(self.budget, text, self.estimator)

    def set_context(self, text: str) -> ContextCheck:
        """Validate and install a new context; the conversation starts over."""
        check = self.check_context(text)
        self.context = text
        self.history.reset()
        self.first_input = True
        return check

    def reset(self) -> str:
        """Clear the conversation and start a new log file. Returns its path."""
        self.history.reset()
        self.first_input = True
        return self.conversation_log.rotate()

    def send(self, user_text: str) -> ExchangeResult:
        """
        Run one exchange: append the user turn, call the provider, append the
        reply, log both, then enforce the token budget.

        Raises:
            TransportError, ConfigurationError: the user turn is rolled back
                before re-raising
            OSError: the conversation log could not be written
        """
        text = user_text
        if self.first_input and self.context:
            text = f"{self.context}\n{user_text}"

        user_turn = self.history.append_user_turn(text)
        try:
            reply = self.provider.generate(self.history.turns, self.generation, self.safety_settings)
        except GeminiCLIError:
            self.history.pop_last()
            raise

        self.first_input = False
        model_turn = self.history.append_model_turn(reply.text)
        self.conversation_log.log_exchange(user_turn, model_turn)

        evicted = self.history.enforce_budget()

        return ExchangeResult(
            user_turn=user_turn,
            reply=reply,
            evicted=evicted,
            budget_error=self.history.last_overflow,
            over_warning=self.history.over_warning(),
        )
