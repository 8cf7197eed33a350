#!/usr/bin/env python3
"""
Generate a Stellar keypair for the payout wallet.

This script generates:
- A secret seed (wallet.secret)
- A key info file with the public account id
"""

import argparse
import json
from pathlib import Path

from stellar_sdk import Keypair


def generate_keys(output_dir: str = "./keys") -> dict:
    """
    Generate a new keypair.

    Args:
        output_dir: Directory to save keys

    Returns:
        Dictionary with key info
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    keypair = Keypair.random()

    secret_path = output_path / "wallet.secret"
    secret_path.write_text(keypair.secret + "\n")
    secret_path.chmod(0o600)

    info = {
        "secret_path": str(secret_path),
        "public_key": keypair.public_key,
    }

    info_path = output_path / "key_info.json"
    with open(info_path, "w") as f:
        json.dump(info, f, indent=2)

    return info


def main():
    parser = argparse.ArgumentParser(description="Generate a Stellar payout wallet")
    parser.add_argument(
        "--output-dir", "-o",
        default="./keys",
        help="Output directory for keys (default: ./keys)"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite existing keys"
    )

    args = parser.parse_args()

    output_path = Path(args.output_dir)
    secret_path = output_path / "wallet.secret"

    if secret_path.exists() and not args.force:
        print(f"⚠️  Keys already exist at {args.output_dir}")
        print("   Use --force to overwrite")

        info_path = output_path / "key_info.json"
        if info_path.exists():
            with open(info_path) as f:
                info = json.load(f)
            print("\n📋 Existing Key Info:")
            print(f"   Public Key: {info['public_key']}")
        return

    print("🔑 Generating new Stellar keypair...")
    info = generate_keys(args.output_dir)

    print("\n✅ Keys generated successfully!")
    print(f"\n📁 Keys saved to: {args.output_dir}/")
    print(f"   - wallet.secret (KEEP SECRET!)")
    print(f"   - key_info.json")

    print(f"\n📬 Public Key: {info['public_key']}")

    print("\n💰 To fund on testnet:")
    print(f"   curl 'https://friendbot.stellar.org/?addr={info['public_key']}'")

    print("\n⚠️  IMPORTANT: Keep your wallet.secret file secure!")
    print("   Pass it with: PAYOUT_WALLET_SECRET=$(cat wallet.secret) payout-batcher ...")


if __name__ == "__main__":
    main()
