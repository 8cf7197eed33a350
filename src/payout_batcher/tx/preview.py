"""
Human-readable preview of a payout envelope.
"""

from stellar_sdk import Asset, HashMemo, Payment, ReturnHashMemo, TransactionEnvelope


def format_asset(asset: Asset) -> str:
    """Render an asset as XLM or CODE:ISSUER."""
    if asset.is_native():
        return "XLM"
    return f"{asset.code}:{asset.issuer}"


def format_preview(envelope: TransactionEnvelope) -> str:
    """
    Format the one-line preview of a validated payout.

    Raises:
        ValueError: If the envelope is not a single payment with a hash
            or return memo
    """
    tx = envelope.transaction
    memo = tx.memo

    if isinstance(memo, HashMemo):
        memo_text = f"memo {memo.memo_hash.hex()}"
    elif isinstance(memo, ReturnHashMemo):
        memo_text = f"return memo {memo.memo_return.hex()}"
    else:
        raise ValueError(f"cannot preview memo of type {type(memo).__name__}")

    if len(tx.operations) != 1 or not isinstance(tx.operations[0], Payment):
        raise ValueError("cannot preview a transaction that is not a single payment")

    payment = tx.operations[0]
    return (
        f"Sending {payment.amount} {format_asset(payment.asset)} "
        f"to {payment.destination.universal_account_id} with {memo_text} "
        f"({len(envelope.signatures)} signatures, {tx.sequence} seqno)"
    )
