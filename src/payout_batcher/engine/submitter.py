"""
Submission Engine - drives a signed envelope to a terminal outcome.

Each attempt submits the envelope and classifies the result through the
retry policy. Retryable failures wait for the rule's backoff and try again;
the engine only returns once the transaction succeeded or failed for good.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

import structlog

from stellar_sdk import TransactionEnvelope

from payout_batcher.config import BatcherConfig, get_config
from payout_batcher.engine.policy import OutcomeKind, RetryPolicy, SubmissionOutcome
from payout_batcher.node.interface import LedgerClient, LedgerSubmitError, SubmitReceipt
from payout_batcher.tx.preview import format_preview

logger = structlog.get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class SubmissionState(str, Enum):
    """States of the submission state machine."""
    SUBMITTING = "submitting"
    RETRY_WAIT = "retry_wait"
    SUCCEEDED = "succeeded"                   # Terminal
    TERMINALLY_FAILED = "terminally_failed"   # Terminal


@dataclass
class SubmissionResult:
    """
    Terminal outcome of one transaction.

    Attributes:
        state: SUCCEEDED or TERMINALLY_FAILED
        attempts: Number of submission attempts made
        reason: Why the engine stopped
        receipt: Receipt of the accepted submission, if any
        backoffs: Every backoff waited, in order
    """

    state: SubmissionState
    attempts: int
    reason: str = ""
    receipt: Optional[SubmitReceipt] = None
    backoffs: List[float] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == SubmissionState.SUCCEEDED


class SubmissionCancelledError(Exception):
    """Raised when the engine is cancelled while a transaction is in flight."""

    def __init__(self, tx_hash: str, attempts: int):
        super().__init__(f"submission of {tx_hash} cancelled after {attempts} attempt(s)")
        self.tx_hash = tx_hash
        self.attempts = attempts


class SubmissionEngine:
    """
    Submits one signed envelope at a time until it reaches a terminal state.

    Retries are unbounded unless `max_attempts` or `deadline_seconds` is
    set. `cancel()` interrupts both the attempt loop and a backoff wait.
    """

    def __init__(
        self,
        client: LedgerClient,
        policy: Optional[RetryPolicy] = None,
        max_attempts: Optional[int] = None,
        deadline_seconds: Optional[float] = None,
        echo: Callable[[str], None] = print,
        sleep: Optional[Sleeper] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the engine.

        Args:
            client: Ledger client used for every attempt
            policy: Error classification (standard table if not provided)
            max_attempts: Attempt budget per transaction
            deadline_seconds: Time budget per transaction
            echo: Receives the preview line printed before each attempt
            sleep: Custom backoff wait, raced against cancel() (defaults to a cancellable wait)
            clock: Monotonic clock in seconds (defaults to the event loop clock)
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.client = client
        self.policy = policy or RetryPolicy.from_config()
        self.max_attempts = max_attempts
        self.deadline_seconds = deadline_seconds
        self._echo = echo
        self._sleep = sleep
        self._clock = clock
        self._cancelled = asyncio.Event()

    @classmethod
    def from_config(
        cls,
        client: LedgerClient,
        config: Optional[BatcherConfig] = None,
        **kwargs,
    ) -> "SubmissionEngine":
        """Build an engine with the policy and budgets from configuration."""
        config = config or get_config()
        return cls(
            client=client,
            policy=RetryPolicy.from_config(config),
            max_attempts=config.max_attempts,
            deadline_seconds=config.submit_deadline_seconds,
            **kwargs,
        )

    def cancel(self) -> None:
        """Stop the engine at the next attempt or during the current wait."""
        self._cancelled.set()
        logger.info("submission_cancel_requested")

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def submit(self, envelope: TransactionEnvelope) -> SubmissionResult:
        """
        Submit an envelope, retrying until a terminal outcome.

        Args:
            envelope: Validated and signed envelope

        Returns:
            SubmissionResult in state SUCCEEDED or TERMINALLY_FAILED

        Raises:
            SubmissionCancelledError: If cancel() was called
        """
        tx_hash = envelope.hash_hex()
        log = logger.bind(tx_hash=tx_hash[:16] + "...")
        started = self._now()
        attempts = 0
        backoffs: List[float] = []

        while True:
            self._check_cancelled(tx_hash, attempts)
            log.debug("submission_state", state=SubmissionState.SUBMITTING.value, attempt=attempts + 1)

            self._echo(format_preview(envelope))
            attempts += 1

            try:
                receipt = await self.client.submit_transaction(envelope)
            except LedgerSubmitError as e:
                outcome = self.policy.classify(e)
                log.warning(
                    "submission_attempt_failed",
                    attempt=attempts,
                    status=e.status_code,
                    result_codes=e.result_codes,
                    error=str(e),
                )
            else:
                log.info("submission_succeeded", attempts=attempts)
                return SubmissionResult(
                    state=SubmissionState.SUCCEEDED,
                    attempts=attempts,
                    reason="submitted",
                    receipt=receipt,
                    backoffs=backoffs,
                )

            if outcome.kind == OutcomeKind.TERMINAL:
                return self._terminal(log, outcome.reason, attempts, backoffs, rule=outcome.rule)

            if self.max_attempts is not None and attempts >= self.max_attempts:
                return self._terminal(
                    log,
                    f"retry budget exhausted after {attempts} attempts: {outcome.reason}",
                    attempts,
                    backoffs,
                    rule=outcome.rule,
                )

            if self._past_deadline(started, outcome):
                return self._terminal(
                    log,
                    f"submission deadline exceeded: {outcome.reason}",
                    attempts,
                    backoffs,
                    rule=outcome.rule,
                )

            log.warning(
                "submission_retry_scheduled",
                state=SubmissionState.RETRY_WAIT.value,
                reason=outcome.reason,
                rule=outcome.rule,
                backoff_seconds=outcome.backoff_seconds,
            )
            backoffs.append(outcome.backoff_seconds)
            await self._wait(outcome.backoff_seconds)

    def _terminal(
        self,
        log,
        reason: str,
        attempts: int,
        backoffs: List[float],
        rule: Optional[str] = None,
    ) -> SubmissionResult:
        log.error("submission_failed", reason=reason, rule=rule, attempts=attempts)
        return SubmissionResult(
            state=SubmissionState.TERMINALLY_FAILED,
            attempts=attempts,
            reason=reason,
            backoffs=backoffs,
        )

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    def _past_deadline(self, started: float, outcome: SubmissionOutcome) -> bool:
        if self.deadline_seconds is None:
            return False
        elapsed = self._now() - started
        return elapsed + outcome.backoff_seconds > self.deadline_seconds

    def _check_cancelled(self, tx_hash: str, attempts: int) -> None:
        if self._cancelled.is_set():
            raise SubmissionCancelledError(tx_hash, attempts)

    async def _wait(self, seconds: float) -> None:
        """Wait out a backoff; returns early once the engine is cancelled."""
        if self._sleep is None:
            try:
                await asyncio.wait_for(self._cancelled.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
            return

        sleeper = asyncio.ensure_future(self._sleep(seconds))
        watcher = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, watcher):
                if not task.done():
                    task.cancel()
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()
