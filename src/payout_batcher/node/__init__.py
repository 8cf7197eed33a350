"""
Ledger Integration Layer.

Provides abstracted access to transaction submission on the Stellar network.
"""

from payout_batcher.node.interface import (
    LedgerClient,
    LedgerSubmitError,
    NodeConnectionError,
    SubmitReceipt,
)
from payout_batcher.node.horizon import HorizonAdapter

__all__ = [
    "LedgerClient",
    "LedgerSubmitError",
    "NodeConnectionError",
    "SubmitReceipt",
    "HorizonAdapter",
]
