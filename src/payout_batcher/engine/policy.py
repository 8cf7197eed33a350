"""
Retry policy for transaction submission.

Maps submission errors to an outcome through an ordered table of rules.
The first matching rule wins; errors no rule recognizes fall back to a
generic retry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from payout_batcher.config import BatcherConfig, get_config
from payout_batcher.node.interface import LedgerSubmitError


class OutcomeKind(str, Enum):
    """Classification of one submission attempt."""
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class SubmissionOutcome:
    """
    Result of one submission attempt.

    Attributes:
        kind: How the attempt is classified
        reason: Human readable explanation
        backoff_seconds: Wait before the next attempt (retryable only)
        rule: Name of the rule that classified the attempt
    """

    kind: OutcomeKind
    reason: str = ""
    backoff_seconds: float = 0.0
    rule: Optional[str] = None

    @classmethod
    def success(cls) -> "SubmissionOutcome":
        return cls(OutcomeKind.SUCCESS, reason="submitted")

    @property
    def is_terminal(self) -> bool:
        return self.kind != OutcomeKind.RETRYABLE


ErrorMatcher = Callable[[LedgerSubmitError], bool]


@dataclass(frozen=True)
class RetryRule:
    """One row of the classification table."""
    name: str
    matches: ErrorMatcher
    kind: OutcomeKind
    backoff_seconds: float = 0.0
    message: str = ""

    def outcome(self, error: LedgerSubmitError) -> SubmissionOutcome:
        reason = self.message or str(error)
        return SubmissionOutcome(
            kind=self.kind,
            reason=reason,
            backoff_seconds=self.backoff_seconds if self.kind == OutcomeKind.RETRYABLE else 0.0,
            rule=self.name,
        )


def status_is(status_code: int) -> ErrorMatcher:
    """Match errors with the given HTTP status."""
    def _match(error: LedgerSubmitError) -> bool:
        return error.status_code == status_code
    return _match


def result_code_contains(code: str, categories: Sequence[str] = ("operations",)) -> ErrorMatcher:
    """Match errors where a result code of the given categories contains `code`."""
    def _match(error: LedgerSubmitError) -> bool:
        return any(
            code in reported
            for category in categories
            for reported in error.codes(category)
        )
    return _match


def default_rules(config: BatcherConfig) -> Tuple[RetryRule, ...]:
    """The standard Horizon classification table."""
    return (
        RetryRule(
            name="gateway_timeout",
            matches=status_is(504),
            kind=OutcomeKind.RETRYABLE,
            backoff_seconds=config.gateway_timeout_backoff_seconds,
            message="Horizon timeout",
        ),
        RetryRule(
            name="account_missing",
            matches=status_is(404),
            kind=OutcomeKind.TERMINAL,
            message="Account does not exist",
        ),
        # Horizon reports the fee failure as a transaction code
        RetryRule(
            name="insufficient_fee",
            matches=result_code_contains("tx_insufficient_fee", ("operations", "transaction")),
            kind=OutcomeKind.RETRYABLE,
            backoff_seconds=config.insufficient_fee_backoff_seconds,
            message="Tx insufficient fee",
        ),
        RetryRule(
            name="no_destination",
            matches=result_code_contains("op_no_destination"),
            kind=OutcomeKind.TERMINAL,
            message="Destination account does not exist",
        ),
    )


class RetryPolicy:
    """
    Classifies submission errors.

    Usage:
        ```python
        policy = RetryPolicy.from_config(config)
        outcome = policy.classify(error)
        ```
    """

    def __init__(self, rules: Sequence[RetryRule], fallback_backoff_seconds: float = 60.0):
        self.rules: Tuple[RetryRule, ...] = tuple(rules)
        self.fallback = RetryRule(
            name="generic",
            matches=lambda error: True,
            kind=OutcomeKind.RETRYABLE,
            backoff_seconds=fallback_backoff_seconds,
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[BatcherConfig] = None,
        extra_rules: Sequence[RetryRule] = (),
    ) -> "RetryPolicy":
        """
        Build the standard policy.

        Args:
            config: Batcher configuration (backoff durations)
            extra_rules: Rules checked before the standard table
        """
        config = config or get_config()
        return cls(
            rules=tuple(extra_rules) + default_rules(config),
            fallback_backoff_seconds=config.generic_backoff_seconds,
        )

    def classify(self, error: LedgerSubmitError) -> SubmissionOutcome:
        for rule in self.rules:
            if rule.matches(error):
                return rule.outcome(error)
        return self.fallback.outcome(error)
