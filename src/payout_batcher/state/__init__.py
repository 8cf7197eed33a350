"""
Batch file handling.

Reads input envelopes and persists signed envelopes.
"""

from payout_batcher.state.files import LineSink, LineSource

__all__ = [
    "LineSink",
    "LineSource",
]
