"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import List, Optional, Sequence, Union

import pytest
from stellar_sdk import (
    Account,
    Asset,
    HashMemo,
    Keypair,
    Memo,
    Network,
    TransactionBuilder,
    TransactionEnvelope,
)

from payout_batcher.config import BatcherConfig, NetworkType
from payout_batcher.node.interface import LedgerClient, LedgerSubmitError, SubmitReceipt
from payout_batcher.tx.codec import LedgerCodec
from payout_batcher.tx.signer import Wallet, generate_test_wallet


TEST_PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE
SOURCE_SEQUENCE = 1000


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config(tmp_path) -> BatcherConfig:
    """Create a test configuration."""
    return BatcherConfig(
        network=NetworkType.TESTNET,
        horizon_url="https://horizon.test",
        input_file=str(tmp_path / "payouts_to_sign.txt"),
        output_file=str(tmp_path / "payouts_signed.txt"),
        gateway_timeout_backoff_seconds=15,
        insufficient_fee_backoff_seconds=30,
        generic_backoff_seconds=60,
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def build_envelope(
    memo: Optional[Memo] = None,
    operations: Sequence[str] = ("payment",),
    sequence: int = SOURCE_SEQUENCE,
    amount: str = "10.5",
    source: Optional[Keypair] = None,
    destination: Optional[str] = None,
    asset: Optional[Asset] = None,
) -> TransactionEnvelope:
    """
    Build an unsigned envelope.

    Args:
        memo: Memo to attach (HashMemo of 0x01 bytes when None)
        operations: Operation kinds in order, "payment" or "create_account"
        sequence: Current sequence of the source account (the envelope uses sequence + 1)
    """
    source = source or Keypair.random()
    destination = destination or Keypair.random().public_key
    builder = TransactionBuilder(
        source_account=Account(source.public_key, sequence),
        network_passphrase=TEST_PASSPHRASE,
        base_fee=100,
    )
    builder.add_memo(memo if memo is not None else HashMemo(b"\x01" * 32))

    for kind in operations:
        if kind == "payment":
            builder.append_payment_op(
                destination=destination,
                asset=asset or Asset.native(),
                amount=amount,
            )
        elif kind == "create_account":
            builder.append_create_account_op(destination=destination, starting_balance="1")
        else:
            raise ValueError(f"unknown operation kind {kind}")

    if not operations:
        # Build with one payment, then drop it
        builder.append_payment_op(destination=destination, asset=Asset.native(), amount=amount)
        envelope = builder.add_time_bounds(0, 0).build()
        envelope.transaction.operations = []
        return envelope

    return builder.add_time_bounds(0, 0).build()


def write_lines(path, lines: List[str]) -> None:
    path.write_text("".join(line + "\n" for line in lines))


@pytest.fixture
def codec() -> LedgerCodec:
    return LedgerCodec(TEST_PASSPHRASE)


@pytest.fixture
def wallet() -> Wallet:
    """Create a wallet with a random key."""
    return generate_test_wallet(TEST_PASSPHRASE)


@pytest.fixture
def payout_envelope() -> TransactionEnvelope:
    """A valid single-payment, hash-memo envelope."""
    return build_envelope()


# ============================================================================
# Mock Ledger Client
# ============================================================================

Response = Union[SubmitReceipt, LedgerSubmitError]


class ScriptedLedgerClient(LedgerClient):
    """
    Ledger client that replays scripted responses.

    Each submission consumes the next response; the last one repeats once
    the script is exhausted.
    """

    def __init__(self, responses: Sequence[Response]):
        self.responses = list(responses)
        self.submitted: List[TransactionEnvelope] = []
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def submit_transaction(self, envelope: TransactionEnvelope) -> SubmitReceipt:
        index = min(len(self.submitted), len(self.responses) - 1)
        self.submitted.append(envelope)
        response = self.responses[index]
        if isinstance(response, LedgerSubmitError):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.submitted)


class RecordingSleep:
    """Backoff wait that returns at once and records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def gateway_timeout() -> LedgerSubmitError:
    return LedgerSubmitError("Timeout (status 504)", status_code=504)


def operation_failure(*codes: str, status_code: int = 400) -> LedgerSubmitError:
    return LedgerSubmitError(
        "Transaction Failed (status 400)",
        status_code=status_code,
        result_codes={"transaction": ["tx_failed"], "operations": list(codes)},
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
