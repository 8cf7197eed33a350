"""
Test suite for the submission state machine.

Covers classification-driven retries, terminal failures, retry budgets
and cancellation.
"""

import asyncio

import pytest

from payout_batcher.engine.policy import RetryPolicy
from payout_batcher.engine.submitter import (
    SubmissionCancelledError,
    SubmissionEngine,
    SubmissionState,
)
from payout_batcher.node.interface import LedgerSubmitError, SubmitReceipt

from conftest import ScriptedLedgerClient, gateway_timeout, operation_failure


RECEIPT = SubmitReceipt(tx_hash="ab" * 32, ledger=42)


@pytest.fixture
def signed_envelope(wallet, payout_envelope):
    return wallet.sign(payout_envelope)


def make_engine(client, test_config, sleep, **kwargs):
    echoed = []
    engine = SubmissionEngine(
        client=client,
        policy=RetryPolicy.from_config(test_config),
        echo=echoed.append,
        sleep=sleep,
        **kwargs,
    )
    return engine, echoed


class TestRetryClassification:
    """Tests for the attempt loop."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([RECEIPT])
        engine, echoed = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.SUCCEEDED
        assert result.succeeded is True
        assert result.attempts == 1
        assert result.receipt == RECEIPT
        assert recording_sleep.delays == []
        assert len(echoed) == 1

    @pytest.mark.asyncio
    async def test_gateway_timeout_then_success(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([gateway_timeout(), RECEIPT])
        engine, echoed = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.SUCCEEDED
        assert result.attempts == 2
        assert client.calls == 2
        assert recording_sleep.delays == [15]
        assert result.backoffs == [15]

    @pytest.mark.asyncio
    async def test_no_destination_fails_without_waiting(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([operation_failure("op_no_destination")])
        engine, _ = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.TERMINALLY_FAILED
        assert result.attempts == 1
        assert client.calls == 1
        assert recording_sleep.delays == []
        assert result.receipt is None

    @pytest.mark.asyncio
    async def test_insufficient_fee_three_times_then_success(
        self, test_config, recording_sleep, signed_envelope
    ):
        fee_error = operation_failure("tx_insufficient_fee")
        client = ScriptedLedgerClient([fee_error, fee_error, fee_error, RECEIPT])
        engine, echoed = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.succeeded is True
        assert result.attempts == 4
        assert recording_sleep.delays == [30, 30, 30]
        assert len(echoed) == 4

    @pytest.mark.asyncio
    async def test_missing_account_is_terminal(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([LedgerSubmitError("Resource Missing", status_code=404)])
        engine, _ = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.TERMINALLY_FAILED
        assert result.reason == "Account does not exist"
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_transport_error_retries_after_generic_backoff(
        self, test_config, recording_sleep, signed_envelope
    ):
        client = ScriptedLedgerClient([LedgerSubmitError("connection reset"), RECEIPT])
        engine, _ = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.succeeded is True
        assert recording_sleep.delays == [60]

    @pytest.mark.asyncio
    async def test_retry_then_terminal_classification(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([gateway_timeout(), operation_failure("op_no_destination")])
        engine, _ = make_engine(client, test_config, recording_sleep)

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.TERMINALLY_FAILED
        assert result.attempts == 2
        assert recording_sleep.delays == [15]

    @pytest.mark.asyncio
    async def test_preview_echoed_before_each_attempt(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([gateway_timeout(), RECEIPT])
        engine, echoed = make_engine(client, test_config, recording_sleep)

        await engine.submit(signed_envelope)

        assert len(echoed) == 2
        assert all(line.startswith("Sending ") for line in echoed)
        assert all("(1 signatures," in line for line in echoed)


class TestRetryBudgets:
    """Tests for the optional attempt and time budgets."""

    @pytest.mark.asyncio
    async def test_max_attempts_stops_retrying(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([gateway_timeout()])
        engine, _ = make_engine(client, test_config, recording_sleep, max_attempts=3)

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.TERMINALLY_FAILED
        assert result.attempts == 3
        assert "retry budget exhausted" in result.reason
        assert recording_sleep.delays == [15, 15]

    @pytest.mark.asyncio
    async def test_deadline_stops_retrying(self, test_config, signed_envelope):
        now = [0.0]

        async def advancing_sleep(seconds):
            now[0] += seconds

        client = ScriptedLedgerClient([gateway_timeout()])
        engine, _ = make_engine(
            client,
            test_config,
            advancing_sleep,
            deadline_seconds=20,
            clock=lambda: now[0],
        )

        result = await engine.submit(signed_envelope)

        assert result.state == SubmissionState.TERMINALLY_FAILED
        assert result.attempts == 2
        assert "deadline exceeded" in result.reason
        assert result.backoffs == [15]

    def test_invalid_max_attempts(self, test_config):
        with pytest.raises(ValueError):
            SubmissionEngine(ScriptedLedgerClient([RECEIPT]), max_attempts=0)

    def test_from_config_uses_budgets(self, test_config):
        test_config.max_attempts = 5
        test_config.submit_deadline_seconds = 120

        engine = SubmissionEngine.from_config(ScriptedLedgerClient([RECEIPT]), test_config)

        assert engine.max_attempts == 5
        assert engine.deadline_seconds == 120


class TestCancellation:
    """Tests for operator cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_before_submit(self, test_config, recording_sleep, signed_envelope):
        client = ScriptedLedgerClient([RECEIPT])
        engine, _ = make_engine(client, test_config, recording_sleep)
        engine.cancel()

        with pytest.raises(SubmissionCancelledError):
            await engine.submit(signed_envelope)

        assert client.calls == 0

    @pytest.mark.asyncio
    async def test_cancel_interrupts_backoff_wait(self, test_config, signed_envelope):
        client = ScriptedLedgerClient([gateway_timeout()])
        engine = SubmissionEngine(
            client=client,
            policy=RetryPolicy.from_config(test_config),
            echo=lambda line: None,
        )

        task = asyncio.create_task(engine.submit(signed_envelope))
        await asyncio.sleep(0.05)
        engine.cancel()

        with pytest.raises(SubmissionCancelledError) as exc_info:
            await asyncio.wait_for(task, timeout=1)

        assert exc_info.value.attempts == 1
        assert client.calls == 1
        assert engine.cancelled is True

    @pytest.mark.asyncio
    async def test_cancel_interrupts_injected_sleep(self, test_config, signed_envelope):
        client = ScriptedLedgerClient([gateway_timeout()])
        requested = []

        async def never_wakes(seconds):
            requested.append(seconds)
            await asyncio.Event().wait()

        engine, _ = make_engine(client, test_config, never_wakes)

        task = asyncio.create_task(engine.submit(signed_envelope))
        await asyncio.sleep(0.05)
        engine.cancel()

        with pytest.raises(SubmissionCancelledError):
            await asyncio.wait_for(task, timeout=1)

        assert requested == [test_config.gateway_timeout_backoff_seconds]
        assert client.calls == 1
