"""
Abstract interface for ledger network access.

Defines the contract for transaction submission that all ledger adapters must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from stellar_sdk import TransactionEnvelope


@dataclass
class SubmitReceipt:
    """Result of an accepted submission."""
    tx_hash: str
    ledger: Optional[int] = None


class LedgerClient(ABC):
    """
    Abstract interface for ledger network access.

    The batcher only needs to submit signed envelopes; everything else
    about the network is the adapter's business.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the network API.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the network API."""
        pass

    @abstractmethod
    async def submit_transaction(self, envelope: TransactionEnvelope) -> SubmitReceipt:
        """
        Submit a signed envelope to the network.

        Args:
            envelope: Signed envelope to submit

        Returns:
            Receipt of the accepted transaction

        Raises:
            LedgerSubmitError: If the network or the transport rejects it
        """
        pass


class NodeConnectionError(Exception):
    """Raised when connection to the network API fails."""
    pass


class LedgerSubmitError(Exception):
    """
    Raised when a submission fails.

    Attributes:
        status_code: HTTP status of the response, None for transport errors
        result_codes: Result codes by category ("transaction", "operations")
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        result_codes: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.result_codes = result_codes or {}

    def codes(self, category: str) -> List[str]:
        """Result codes reported for one category."""
        return list(self.result_codes.get(category, []))
