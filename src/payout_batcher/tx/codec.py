"""
Envelope codec - converts between base64 XDR lines and transaction envelopes.
"""

import structlog

from stellar_sdk import FeeBumpTransactionEnvelope, TransactionEnvelope

logger = structlog.get_logger(__name__)


class DecodeError(Exception):
    """Raised when a line cannot be decoded into a transaction envelope."""
    pass


class LedgerCodec:
    """
    Decodes and encodes Stellar transaction envelopes.

    The network passphrase is attached to every decoded envelope so that
    its hash (and therefore any signature over it) is network specific.
    """

    def __init__(self, network_passphrase: str):
        self.network_passphrase = network_passphrase

    def decode(self, text: str) -> TransactionEnvelope:
        """
        Decode one base64 XDR envelope.

        Args:
            text: Envelope text, surrounding whitespace is ignored

        Returns:
            The parsed transaction envelope

        Raises:
            DecodeError: If the text is not a regular transaction envelope
        """
        xdr = text.strip()
        if not xdr:
            raise DecodeError("empty envelope")

        try:
            if FeeBumpTransactionEnvelope.is_fee_bump_transaction_envelope(xdr):
                raise DecodeError("fee bump envelopes are not supported")
            envelope = TransactionEnvelope.from_xdr(xdr, self.network_passphrase)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"cannot unmarshal transaction: {e}") from e

        logger.debug("envelope_decoded", sequence=envelope.transaction.sequence)
        return envelope

    def encode(self, envelope: TransactionEnvelope) -> str:
        """Encode an envelope back to base64 XDR."""
        return envelope.to_xdr()
