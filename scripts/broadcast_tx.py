#!/usr/bin/env python3
"""Simulate or broadcast an already signed transaction.

Signing happens inside the agent, so this script only takes the base64 TxRaw
bytes an agent produced and hands them to the REST gateway.

Usage:
    python scripts/broadcast_tx.py <tx_base64 | @file> [--simulate] [--mode SYNC]

Options:
    --endpoint  REST gateway URL (default: REST_ENDPOINT setting)
    --mode      SYNC, BLOCK or ASYNC (default: BROADCAST_MODE setting)
    --simulate  Only estimate gas, do not broadcast
"""

import argparse
import asyncio
import base64
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv
load_dotenv()

from unisign.client import RestClient
from unisign.config import configure_logging, get_settings
from unisign.errors import WalletError
from unisign.tx.types import BroadcastMode, SignedEnvelope

logger = logging.getLogger("broadcast_tx")


def read_tx(value: str) -> SignedEnvelope:
    if value.startswith("@"):
        value = Path(value[1:]).read_text().strip()
    return SignedEnvelope.from_bytes(base64.b64decode(value))


async def main():
    settings = get_settings()
    configure_logging(settings)

    parser = argparse.ArgumentParser(description="Simulate or broadcast a signed Cosmos transaction")
    parser.add_argument("tx", type=str, help="Base64 TxRaw bytes, or @path to a file holding them")
    parser.add_argument("--endpoint", type=str, default=settings.rest_endpoint, help="REST gateway URL")
    parser.add_argument("--mode", type=str, default=settings.broadcast_mode, help="Broadcast mode")
    parser.add_argument("--simulate", action="store_true", help="Only estimate gas")

    args = parser.parse_args()

    mode = args.mode.upper()
    if not mode.startswith("BROADCAST_MODE_"):
        mode = f"BROADCAST_MODE_{mode}"

    envelope = read_tx(args.tx)
    client = RestClient(timeout=settings.http_timeout)

    try:
        if args.simulate:
            gas = await client.simulate(args.endpoint, envelope, BroadcastMode(mode))
            print(f"Gas used: {gas}")
        else:
            result = await client.broadcast(args.endpoint, envelope, BroadcastMode(mode))
            print(json.dumps(result, indent=2))
    except WalletError as e:
        logger.error(f"Failed: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
