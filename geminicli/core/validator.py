"""
Context Validator — pre-flight size check for a candidate context.

Runs once before a context is accepted into the session. It is stateless and
never retries: on ContextTooLargeError the caller asks for a replacement and
validates again.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from geminicli.core.exceptions import ContextTooLargeError
from geminicli.core.tokens import DEFAULT_ESTIMATOR, TokenEstimator
from geminicli.core.types import TokenBudget

logger = logging.getLogger(__name__)


class ContextCheck(BaseModel):
    """Outcome of a successful validation."""
    estimated_tokens: int
    hard_limit: int
    warning_limit: int
    over_warning: bool = False


def validate_context(
    budget: TokenBudget,
    candidate: str,
    estimator: Optional[TokenEstimator] = None,
) -> ContextCheck:
    """
    Check that `candidate` plus the reserved output tokens fits the hard limit.

    Raises:
        ContextTooLargeError: estimated + reserved > hard limit
    """
    estimator = estimator or DEFAULT_ESTIMATOR
    estimated = estimator.estimate(candidate)

    if estimated + budget.reserved_output_tokens > budget.hard_limit:
        logger.debug(
            f"Context rejected: {estimated} + {budget.reserved_output_tokens} > {budget.hard_limit}"
        )
        raise ContextTooLargeError(
            estimated_tokens=estimated,
            hard_limit=budget.hard_limit,
            reserved_output_tokens=budget.reserved_output_tokens,
        )

    over_warning = estimated > budget.warning_limit
    if over_warning:
        logger.warning(
            f"Context is ~{estimated} tokens, above the {budget.warning_limit} warning limit"
        )

    return ContextCheck(
        estimated_tokens=estimated,
        hard_limit=budget.hard_limit,
        warning_limit=budget.warning_limit,
        over_warning=over_warning,
    )


class ContextValidator:
    """Binds a budget and estimator so callers can just pass the text."""

    def __init__(self, budget: TokenBudget, estimator: Optional[TokenEstimator] = None):
        self.budget = budget
        self.estimator = estimator or DEFAULT_ESTIMATOR

    def validate(self, candidate: str) -> ContextCheck:
        return validate_context(self.budget, candidate, self.estimator)
