"""
Stellar Payout Batcher

Signs batches of payout transactions with a single wallet and either writes
them out for later use or submits them to Horizon, retrying each one until
it reaches a terminal outcome.
"""

__version__ = "0.1.0"

from payout_batcher.core.batcher import BatchAbortedError, PayoutBatcher
from payout_batcher.core.report import BatchReport, LineResult, LineStatus
from payout_batcher.engine.submitter import SubmissionEngine, SubmissionResult, SubmissionState

__all__ = [
    "BatchAbortedError",
    "PayoutBatcher",
    "BatchReport",
    "LineResult",
    "LineStatus",
    "SubmissionEngine",
    "SubmissionResult",
    "SubmissionState",
]
