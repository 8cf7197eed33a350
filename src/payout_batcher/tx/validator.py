"""
Envelope validation.

A payout envelope must carry a hash or return memo binding it to the
external payout record, and exactly one payment operation.
"""

from stellar_sdk import HashMemo, Payment, ReturnHashMemo, TransactionEnvelope

WRONG_MEMO_TYPE = "missing or wrong memo type"
WRONG_OPERATION_COUNT = "wrong operation count"
WRONG_OPERATION_TYPE = "wrong operation type"


class ValidationError(Exception):
    """Raised when an envelope breaks a structural payout rule."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def validate_envelope(envelope: TransactionEnvelope) -> None:
    """
    Check the structural rules of a payout envelope.

    Args:
        envelope: Decoded transaction envelope

    Raises:
        ValidationError: With the reason of the first rule that fails
    """
    tx = envelope.transaction

    if not isinstance(tx.memo, (HashMemo, ReturnHashMemo)):
        raise ValidationError(WRONG_MEMO_TYPE)

    if len(tx.operations) != 1:
        raise ValidationError(WRONG_OPERATION_COUNT)

    if not isinstance(tx.operations[0], Payment):
        raise ValidationError(WRONG_OPERATION_TYPE)
