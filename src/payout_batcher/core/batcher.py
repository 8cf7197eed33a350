"""
Main Payout Batcher orchestrator.

Runs every input line through decode, validation, signing and then either
the output file or the submission engine, strictly in input order.
"""

import asyncio
from typing import Callable, Iterable, Optional, Tuple

import structlog

from stellar_sdk import TransactionEnvelope

from payout_batcher.config import RunMode
from payout_batcher.core.report import BatchReport, LineResult, LineStatus
from payout_batcher.engine.submitter import SubmissionEngine
from payout_batcher.state.files import LineSink
from payout_batcher.tx.codec import DecodeError, LedgerCodec
from payout_batcher.tx.preview import format_preview
from payout_batcher.tx.signer import SigningError, Wallet
from payout_batcher.tx.validator import ValidationError, validate_envelope

logger = structlog.get_logger(__name__)

LOCAL_ERRORS = (DecodeError, ValidationError, SigningError)


class BatchAbortedError(Exception):
    """Raised in fail-fast mode when a line is rejected."""

    def __init__(self, line_number: int, reason: str, report: BatchReport):
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason
        self.report = report


class PayoutBatcher:
    """
    Sequential payout batch driver.

    One line is fully resolved, including every submission retry, before
    the next one is read.

    Usage:
        ```python
        batcher = PayoutBatcher(codec, wallet, RunMode.SIGN, sink=sink)
        with LineSource("payouts_to_sign.txt") as source:
            report = await batcher.run(source)
        ```
    """

    def __init__(
        self,
        codec: LedgerCodec,
        wallet: Wallet,
        mode: RunMode = RunMode.SIGN,
        engine: Optional[SubmissionEngine] = None,
        sink: Optional[LineSink] = None,
        fail_fast: bool = True,
        echo: Callable[[str], None] = print,
    ):
        """
        Initialize the batcher.

        Args:
            codec: Envelope codec
            wallet: Wallet that signs every envelope
            mode: Preview, sign-to-file or submit
            engine: Submission engine (required in submit mode)
            sink: Output file (required in sign mode)
            fail_fast: Abort on the first rejected line instead of skipping it
            echo: Receives preview lines
        """
        if mode == RunMode.SUBMIT and engine is None:
            raise ValueError("Submit mode requires a submission engine")
        if mode == RunMode.SIGN and sink is None:
            raise ValueError("Sign mode requires an output sink")

        self.codec = codec
        self.wallet = wallet
        self.mode = mode
        self.engine = engine
        self.sink = sink
        self.fail_fast = fail_fast
        self._echo = echo
        self._running = False

    def stop(self) -> None:
        """Stop after the current line and cancel an in-flight submission."""
        self._running = False
        if self.engine is not None:
            self.engine.cancel()
        logger.info("batcher_stopping")

    async def run(self, lines: Iterable[Tuple[int, str]]) -> BatchReport:
        """
        Process every line in order.

        Args:
            lines: (line_number, envelope_text) pairs

        Returns:
            Report with one result per processed line

        Raises:
            BatchAbortedError: In fail-fast mode, on the first rejected line
            SubmissionCancelledError: If stopped during a submission
        """
        report = BatchReport()
        self._running = True
        logger.info("batch_started", mode=self.mode.value, wallet=self.wallet.public_key)

        for line_number, text in lines:
            # Let signal handlers run between lines
            await asyncio.sleep(0)
            if not self._running:
                logger.warning("batch_stopped", next_line=line_number)
                break

            try:
                result = await self._process_line(line_number, text)
            except LOCAL_ERRORS as e:
                reason = getattr(e, "reason", None) or str(e)
                logger.error("line_rejected", line=line_number, error=reason)
                report.add(LineResult(line_number, LineStatus.REJECTED, reason=reason))
                if self.fail_fast:
                    report.finish()
                    raise BatchAbortedError(line_number, reason, report) from e
                continue

            report.add(result)

        self._running = False
        report.finish()
        logger.info("batch_finished", **report.counts())
        return report

    async def _process_line(self, line_number: int, text: str) -> LineResult:
        envelope = self.codec.decode(text)
        validate_envelope(envelope)

        if self.mode == RunMode.PREVIEW:
            self._echo(format_preview(envelope))
            return LineResult(line_number, LineStatus.PREVIEWED)

        signed = self.wallet.sign(envelope)

        if self.mode == RunMode.SUBMIT:
            return await self._submit(line_number, signed)

        self.sink.write(self.codec.encode(signed))
        logger.debug("line_signed", line=line_number)
        return LineResult(line_number, LineStatus.SIGNED, tx_hash=signed.hash_hex())

    async def _submit(self, line_number: int, signed: TransactionEnvelope) -> LineResult:
        outcome = await self.engine.submit(signed)
        status = LineStatus.SUBMITTED if outcome.succeeded else LineStatus.SUBMIT_FAILED
        return LineResult(
            line_number,
            status,
            reason=None if outcome.succeeded else outcome.reason,
            tx_hash=outcome.receipt.tx_hash if outcome.receipt else signed.hash_hex(),
            attempts=outcome.attempts,
        )
