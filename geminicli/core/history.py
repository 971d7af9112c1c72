"""
History Manager — owns the conversation and enforces the token budget.

Eviction policy:
  - On overflow the two oldest turns (one user/model pair) are dropped once.
    The next check happens after the next exchange, so a single very large
    turn can leave the history over budget for a while.
  - With evict_until_fits=True, oldest pairs are dropped until the history
    is back under the hard limit.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from geminicli.core.exceptions import BudgetExceededError
from geminicli.core.tokens import DEFAULT_ESTIMATOR, TokenEstimator
from geminicli.core.types import Role, TokenBudget, Turn

logger = logging.getLogger(__name__)

EVICTION_BATCH = 2


class HistoryManager:
    def __init__(
        self,
        budget: TokenBudget,
        estimator: Optional[TokenEstimator] = None,
        evict_until_fits: bool = False,
    ):
        self.budget = budget
        self.estimator = estimator or DEFAULT_ESTIMATOR
        self.evict_until_fits = evict_until_fits
        self._turns: List[Turn] = []
        # Overflow seen by the most recent enforce_budget call, if any
        self.last_overflow: Optional[BudgetExceededError] = None

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def append_user_turn(self, text: str) -> Turn:
        turn = Turn(role=Role.USER, text=text)
        self._turns.append(turn)
        return turn

    def append_model_turn(self, text: str) -> Turn:
        turn = Turn(role=Role.MODEL, text=text)
        self._turns.append(turn)
        return turn

    def pop_last(self) -> Optional[Turn]:
        return self._turns.pop() if self._turns else None

    def total_tokens(self) -> int:
        return sum(self.estimator.estimate(t.text) for t in self._turns)

    def check_budget(self) -> None:
        """Raise BudgetExceededError if the history is over the hard limit."""
        total = self.total_tokens()
        if total > self.budget.hard_limit:
            raise BudgetExceededError(total_tokens=total, hard_limit=self.budget.hard_limit)

    def over_warning(self) -> bool:
        return self.total_tokens() > self.budget.warning_limit

    def truncate_oldest(self, count: int) -> List[Turn]:
        """Drop the `count` oldest turns, returning them in original order."""
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        evicted = self._turns[:count]
        del self._turns[:count]
        return evicted

    def enforce_budget(self) -> List[Turn]:
        """
        Check the budget and evict on overflow. Returns the evicted turns.

        The overflow that triggered eviction is kept in last_overflow.
        """
        self.last_overflow = None
        try:
            self.check_budget()
            return []
        except BudgetExceededError as e:
            logger.warning(str(e))
            self.last_overflow = e

        evicted = self.truncate_oldest(EVICTION_BATCH)
        if self.evict_until_fits:
            while self._turns and self.total_tokens() > self.budget.hard_limit:
                evicted.extend(self.truncate_oldest(EVICTION_BATCH))

        logger.warning(
            f"Evicted {len(evicted)} oldest turns; history is now ~{self.total_tokens()} tokens"
        )
        return evicted

    def reset(self) -> None:
        self._turns.clear()
        self.last_overflow = None
