#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

from earn_agent.account_state import AccountState
from earn_agent.settings import Settings
from earn_agent.signer import EthAccountSigner
from earn_agent.stakekit_client import StakeKitClient


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Print the filtered yield catalog, positions and idle balances.")
    p.add_argument("--address", default=None, help="Address to inspect (default: derived from MNEMONIC).")
    p.add_argument("--network", default=None)
    p.add_argument("--summary", action="store_true", help="Print the text summary given to the reasoning service.")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    root = Path(__file__).resolve().parent.parent
    load_dotenv(root / ".env")

    settings = Settings()
    address = args.address or EthAccountSigner.from_mnemonic(settings.mnemonic).address
    network = args.network or settings.network

    state = AccountState(StakeKitClient.from_settings(settings), network, address, settings.position_batch_size)
    snapshot = state.refresh()

    if args.summary:
        print(state.summary())
        return

    out = {
        "address": address,
        "network": network,
        "yields": [asdict(y) for y in snapshot.yields],
        "positions": [asdict(p) for p in snapshot.positions],
        "idle_balances": dict(snapshot.idle_balances),
    }
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
