"""
Submission engine components.

Retry classification and the submission state machine.
"""

from payout_batcher.engine.policy import (
    OutcomeKind,
    RetryPolicy,
    RetryRule,
    SubmissionOutcome,
)
from payout_batcher.engine.submitter import (
    SubmissionCancelledError,
    SubmissionEngine,
    SubmissionResult,
    SubmissionState,
)

__all__ = [
    "OutcomeKind",
    "RetryPolicy",
    "RetryRule",
    "SubmissionOutcome",
    "SubmissionCancelledError",
    "SubmissionEngine",
    "SubmissionResult",
    "SubmissionState",
]
