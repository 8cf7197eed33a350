"""
Transaction module.

Handles envelope decoding, validation, preview and signing.
"""

from payout_batcher.tx.codec import DecodeError, LedgerCodec
from payout_batcher.tx.preview import format_preview
from payout_batcher.tx.signer import SigningError, Wallet, WalletError
from payout_batcher.tx.validator import ValidationError, validate_envelope

__all__ = [
    "DecodeError",
    "LedgerCodec",
    "format_preview",
    "SigningError",
    "Wallet",
    "WalletError",
    "ValidationError",
    "validate_envelope",
]
