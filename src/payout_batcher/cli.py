"""
Command-line interface for the Payout Batcher.

Signs a file of payout transactions and writes or submits them.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

import structlog

from payout_batcher import __version__
from payout_batcher.config import BatcherConfig, NetworkType, RunMode, set_config
from payout_batcher.core.batcher import BatchAbortedError, PayoutBatcher
from payout_batcher.core.report import BatchReport
from payout_batcher.engine.submitter import SubmissionCancelledError, SubmissionEngine
from payout_batcher.node.horizon import HorizonAdapter
from payout_batcher.state.files import LineSink, LineSource
from payout_batcher.tx.codec import LedgerCodec
from payout_batcher.tx.signer import Wallet, WalletError

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="payout-batcher",
        description="Sign and submit Stellar payout transactions",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--inputfile",
        help="File with transactions to sign (default: payouts_to_sign.txt)",
    )
    parser.add_argument(
        "--outputfile",
        help="File to place signed transactions (default: payouts_signed.txt)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        default=None,
        help="Print transactions before signing",
    )
    parser.add_argument(
        "--submit",
        action="store_true",
        default=None,
        help="Submit transactions to the network after signing",
    )
    parser.add_argument(
        "--wallet-secret",
        help="Secret key of the wallet to sign the transactions with "
             "(or set PAYOUT_WALLET_SECRET)",
    )
    parser.add_argument(
        "--network",
        choices=["public", "testnet"],
        help="Stellar network (default: public)",
    )
    parser.add_argument(
        "--horizon-url",
        help="Custom Horizon URL",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        default=None,
        help="Skip rejected lines instead of aborting the batch",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        help="Maximum submission attempts per transaction (default: unbounded)",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        help="Seconds allowed for submitting one transaction (default: unbounded)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )

    return parser


def build_config(args: argparse.Namespace) -> BatcherConfig:
    """Create configuration from arguments; unset flags fall back to the environment."""
    overrides = {}
    if args.network is not None:
        overrides["network"] = NetworkType(args.network)
    if args.inputfile is not None:
        overrides["input_file"] = args.inputfile
    if args.outputfile is not None:
        overrides["output_file"] = args.outputfile
    if args.preview is not None:
        overrides["preview"] = args.preview
    if args.submit is not None:
        overrides["submit"] = args.submit
    if args.continue_on_error is not None:
        overrides["fail_fast"] = not args.continue_on_error
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.log_json is not None:
        overrides["log_json"] = args.log_json
    if args.wallet_secret:
        overrides["wallet_secret"] = args.wallet_secret
    if args.horizon_url:
        overrides["horizon_url"] = args.horizon_url
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if args.deadline is not None:
        overrides["submit_deadline_seconds"] = args.deadline
    return BatcherConfig(**overrides)


async def run_payouts(config: BatcherConfig) -> BatchReport:
    """
    Run one payout batch.

    Raises:
        WalletError: If the wallet secret is missing or invalid
        OSError: If the input or output file cannot be opened
        BatchAbortedError: If a line is rejected in fail-fast mode
        SubmissionCancelledError: If the run is interrupted during a submission
    """
    wallet = Wallet.from_secret(config.wallet_secret, config.network_passphrase)
    codec = LedgerCodec(config.network_passphrase)
    mode = config.run_mode

    if config.preview and config.submit:
        logger.warning("submit_ignored_in_preview_mode")

    client: Optional[HorizonAdapter] = None
    engine: Optional[SubmissionEngine] = None
    sink: Optional[LineSink] = None

    if mode == RunMode.SUBMIT:
        client = HorizonAdapter(config)
        engine = SubmissionEngine.from_config(client, config)
    elif mode == RunMode.SIGN:
        sink = LineSink(config.output_file)

    with LineSource(config.input_file) as source:
        if sink is not None:
            sink.open()
        try:
            batcher = PayoutBatcher(
                codec=codec,
                wallet=wallet,
                mode=mode,
                engine=engine,
                sink=sink,
                fail_fast=config.fail_fast,
            )
            _install_signal_handlers(batcher)
            return await batcher.run(source)
        finally:
            if sink is not None:
                sink.close()
            if client is not None:
                await client.disconnect()


def _install_signal_handlers(batcher: PayoutBatcher) -> None:
    loop = asyncio.get_running_loop()

    def signal_handler():
        print("\nShutting down...")
        batcher.stop()

    try:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)
    except NotImplementedError:
        pass  # Signals not available on Windows


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    config = build_config(args)
    set_config(config)

    setup_logging(config.log_level, config.log_json)

    try:
        report = asyncio.run(run_payouts(config))
    except WalletError as e:
        logger.error("wallet_invalid", error=str(e))
        sys.exit(1)
    except OSError as e:
        logger.error("batch_file_error", error=str(e))
        sys.exit(1)
    except BatchAbortedError as e:
        logger.error("batch_aborted", line=e.line_number, error=e.reason)
        print(e.report.summary())
        sys.exit(1)
    except SubmissionCancelledError as e:
        logger.error("batch_cancelled", error=str(e))
        sys.exit(1)

    print(report.summary())
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
