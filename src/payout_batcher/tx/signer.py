"""
Wallet - holds the payout signing key.

Wraps a single Stellar keypair and signs payout envelopes for one network.
"""

from typing import Optional

import structlog

from stellar_sdk import Keypair, TransactionEnvelope
from stellar_sdk.exceptions import Ed25519SecretSeedInvalidError, SdkError

logger = structlog.get_logger(__name__)


class WalletError(Exception):
    """Raised when a wallet cannot be built from the given secret."""
    pass


class SigningError(Exception):
    """Raised when the signing backend fails to sign an envelope."""
    pass


class Wallet:
    """
    The batcher's single signing key.

    A wallet is built once per run and is read-only afterwards, so it can
    be shared by every component that signs.

    Security note: the secret is kept in memory for the whole run. In
    production, consider using a HSM or secure key management service.
    """

    def __init__(self, keypair: Keypair, network_passphrase: str):
        """
        Initialize the wallet.

        Args:
            keypair: Full keypair (must hold secret material)
            network_passphrase: Passphrase of the network signatures are bound to
        """
        if not keypair.can_sign():
            raise WalletError("keypair has no secret material")
        self._keypair = keypair
        self.network_passphrase = network_passphrase

    @classmethod
    def from_secret(cls, secret: Optional[str], network_passphrase: str) -> "Wallet":
        """
        Build a wallet from a secret seed.

        Raises:
            WalletError: If the secret is missing or not a valid seed
        """
        if not secret:
            raise WalletError("wallet secret is required")

        try:
            keypair = Keypair.from_secret(secret.strip())
        except Ed25519SecretSeedInvalidError as e:
            raise WalletError("could not parse private key") from e

        wallet = cls(keypair, network_passphrase)
        logger.info("wallet_loaded", public_key=wallet.public_key)
        return wallet

    @property
    def public_key(self) -> str:
        """Account id of the wallet."""
        return self._keypair.public_key

    def sign(self, envelope: TransactionEnvelope) -> TransactionEnvelope:
        """
        Sign a copy of an envelope.

        The copy is bound to the wallet's network passphrase and carries
        exactly one more signature than the input, which is left untouched.

        Args:
            envelope: Validated, decoded envelope

        Returns:
            Signed envelope

        Raises:
            SigningError: If signing fails, including when this wallet
                already signed the envelope
        """
        try:
            signed = TransactionEnvelope.from_xdr(envelope.to_xdr(), self.network_passphrase)
            signed.sign(self._keypair)
        except (SdkError, ValueError) as e:
            raise SigningError(f"could not sign transaction: {e}") from e

        logger.debug(
            "transaction_signed",
            tx_hash=signed.hash_hex()[:16] + "...",
            signatures=len(signed.signatures),
        )
        return signed


def generate_test_wallet(network_passphrase: str) -> Wallet:
    """
    Generate a wallet with a new random key for testing.

    WARNING: Do not use in production. The key is not persisted.
    """
    wallet = Wallet(Keypair.random(), network_passphrase)
    logger.warning("test_wallet_generated", public_key=wallet.public_key)
    return wallet
