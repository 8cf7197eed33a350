"""
Core batcher components.

The batch driver and the per-line report it produces.
"""

from payout_batcher.core.report import BatchReport, LineResult, LineStatus
from payout_batcher.core.batcher import BatchAbortedError, PayoutBatcher

__all__ = [
    "BatchReport",
    "LineResult",
    "LineStatus",
    "BatchAbortedError",
    "PayoutBatcher",
]
