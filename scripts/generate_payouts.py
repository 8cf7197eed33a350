#!/usr/bin/env python3
"""
Generate a file of unsigned payout transactions for dry runs.

Each line is a base64 XDR envelope with a single native payment and a
hash memo derived from the payout id. Destinations are read from a CSV
file (destination,amount) or generated at random.
"""

import argparse
import csv
import hashlib
from pathlib import Path
from typing import List, Tuple

from stellar_sdk import Account, Asset, HashMemo, Keypair, Network, TransactionBuilder


def load_payouts(csv_path: str) -> List[Tuple[str, str]]:
    """Read (destination, amount) rows."""
    with open(csv_path, newline="") as f:
        return [(row[0].strip(), row[1].strip()) for row in csv.reader(f) if row]


def random_payouts(count: int, amount: str) -> List[Tuple[str, str]]:
    return [(Keypair.random().public_key, amount) for _ in range(count)]


def build_payout_envelopes(
    source_account: str,
    start_sequence: int,
    payouts: List[Tuple[str, str]],
    network_passphrase: str,
    base_fee: int = 100,
) -> List[str]:
    """
    Build one unsigned envelope per payout with consecutive sequence numbers.

    Args:
        source_account: Account id paying out
        start_sequence: Current sequence number of the source account
        payouts: (destination, amount) pairs
        network_passphrase: Network the envelopes are built for
        base_fee: Fee per operation in stroops

    Returns:
        Base64 XDR envelopes in payout order
    """
    account = Account(source_account, start_sequence)
    envelopes = []

    for index, (destination, amount) in enumerate(payouts):
        payout_id = f"{source_account}:{start_sequence + index + 1}:{destination}"
        memo_hash = hashlib.sha256(payout_id.encode()).digest()

        envelope = (
            TransactionBuilder(
                source_account=account,
                network_passphrase=network_passphrase,
                base_fee=base_fee,
            )
            .add_memo(HashMemo(memo_hash))
            .append_payment_op(destination=destination, asset=Asset.native(), amount=amount)
            .add_time_bounds(0, 0)
            .build()
        )
        envelopes.append(envelope.to_xdr())

    return envelopes


def main():
    parser = argparse.ArgumentParser(description="Generate unsigned payout transactions")
    parser.add_argument("--source", required=True, help="Source account id")
    parser.add_argument("--sequence", type=int, required=True, help="Current source account sequence")
    parser.add_argument("--csv", help="CSV file with destination,amount rows")
    parser.add_argument("--count", type=int, default=3, help="Random payouts to create without --csv")
    parser.add_argument("--amount", default="1", help="Amount for random payouts (default: 1)")
    parser.add_argument(
        "--network",
        choices=["public", "testnet"],
        default="testnet",
        help="Network (default: testnet)",
    )
    parser.add_argument(
        "--output", "-o",
        default="payouts_to_sign.txt",
        help="Output file (default: payouts_to_sign.txt)",
    )

    args = parser.parse_args()

    passphrase = (
        Network.PUBLIC_NETWORK_PASSPHRASE
        if args.network == "public"
        else Network.TESTNET_NETWORK_PASSPHRASE
    )
    payouts = load_payouts(args.csv) if args.csv else random_payouts(args.count, args.amount)

    envelopes = build_payout_envelopes(args.source, args.sequence, payouts, passphrase)
    Path(args.output).write_text("".join(line + "\n" for line in envelopes))

    print(f"✅ Wrote {len(envelopes)} unsigned payout(s) to {args.output}")


if __name__ == "__main__":
    main()
