"""
Horizon API adapter for ledger access.

Submits transactions through a Stellar Horizon server.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from stellar_sdk import TransactionEnvelope

from payout_batcher.config import BatcherConfig, get_config
from payout_batcher.node.interface import (
    LedgerClient,
    LedgerSubmitError,
    NodeConnectionError,
    SubmitReceipt,
)

logger = structlog.get_logger(__name__)


class HorizonAdapter(LedgerClient):
    """
    Horizon API adapter.

    Implements the LedgerClient using Horizon's REST API.
    """

    def __init__(
        self,
        config: Optional[BatcherConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Horizon adapter.

        Args:
            config: Batcher configuration. Uses global config if not provided.
            transport: Custom httpx transport (used by tests)
        """
        self.config = config or get_config()
        self.base_url = self.config.horizon_base_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=self.config.request_timeout_seconds,
            transport=self._transport,
        )

        # Test connection
        try:
            response = await self._client.get("/")
        except httpx.RequestError as e:
            await self.disconnect()
            raise NodeConnectionError(f"Failed to connect to Horizon: {e}")

        if response.status_code != 200:
            await self.disconnect()
            raise NodeConnectionError(f"Horizon health check failed: {response.text}")

        logger.info("horizon_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("horizon_disconnected")

    async def submit_transaction(self, envelope: TransactionEnvelope) -> SubmitReceipt:
        """Submit a signed envelope."""
        if not self._client:
            try:
                await self.connect()
            except NodeConnectionError as e:
                raise LedgerSubmitError(str(e)) from e

        try:
            response = await self._client.post(
                "/transactions",
                data={"tx": envelope.to_xdr()},
            )
        except httpx.RequestError as e:
            logger.error("tx_submit_request_error", error=str(e))
            raise LedgerSubmitError(f"Transaction submission request failed: {e}")

        if response.status_code != 200:
            raise self._problem_to_error(response)

        data = response.json()
        receipt = SubmitReceipt(tx_hash=data.get("hash", envelope.hash_hex()), ledger=data.get("ledger"))
        logger.info("tx_submitted", tx_hash=receipt.tx_hash, ledger=receipt.ledger)
        return receipt

    def _problem_to_error(self, response: httpx.Response) -> LedgerSubmitError:
        """Turn a Horizon problem document into a LedgerSubmitError."""
        try:
            problem = response.json()
        except ValueError:
            problem = {}
        if not isinstance(problem, dict):
            problem = {}

        extras = problem.get("extras") or {}
        result_codes = parse_result_codes(extras.get("result_codes"))
        title = problem.get("title") or response.reason_phrase or "Horizon error"

        logger.error(
            "tx_submit_failed",
            status=response.status_code,
            title=title,
            result_codes=result_codes,
        )
        return LedgerSubmitError(
            f"{title} (status {response.status_code})",
            status_code=response.status_code,
            result_codes=result_codes,
        )


def parse_result_codes(raw: Any) -> Dict[str, List[str]]:
    """
    Normalize Horizon result codes to lists of strings per category.

    Horizon reports the transaction code as a string and operation codes
    as a list.
    """
    if not isinstance(raw, dict):
        return {}

    codes: Dict[str, List[str]] = {}
    for category, value in raw.items():
        if isinstance(value, str):
            codes[category] = [value]
        elif isinstance(value, list):
            codes[category] = [str(v) for v in value]
    return codes
