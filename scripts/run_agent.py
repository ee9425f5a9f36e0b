#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from earn_agent.account_state import AccountState
from earn_agent.agent import EarnAgent
from earn_agent.amounts import AmountResolver
from earn_agent.executor import StepExecutor
from earn_agent.lifecycle import TransactionLifecycleDriver
from earn_agent.reasoning import ReasoningClient
from earn_agent.scheduler import AgentScheduler
from earn_agent.settings import Settings
from earn_agent.signer import EthAccountSigner
from earn_agent.stakekit_client import StakeKitClient

logger = logging.getLogger("earn_agent")

EXIT_WORDS = {"exit", "quit"}


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Autonomous StakeKit yield agent with an operator prompt.")
    p.add_argument("--interval", type=float, default=None, help="Seconds between periodic checks (default from settings).")
    p.add_argument("--no-initial-check", action="store_true", help="Skip the check that runs right after startup.")
    p.add_argument("--verbose", action="store_true", help="Also print request-level debug lines.")
    return p.parse_args()


def build_agent(settings: Settings, signer: EthAccountSigner) -> EarnAgent:
    client = StakeKitClient.from_settings(settings)
    state = AccountState(client, settings.network, signer.address, batch_size=settings.position_batch_size)
    driver = TransactionLifecycleDriver(
        client,
        signer,
        construct_attempts=settings.construct_attempts,
        construct_retry_delay=settings.construct_retry_delay_seconds,
        poll_interval=settings.status_poll_interval_seconds,
    )
    executor = StepExecutor(
        client,
        AmountResolver(client, settings.network, signer.address),
        driver,
        signer.address,
        refresh=state.refresh,
    )
    return EarnAgent(state, ReasoningClient.from_settings(settings), executor)


def main() -> None:
    args = parse_args()
    root = Path(__file__).resolve().parent.parent
    load_dotenv(root / ".env")
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    settings = Settings()
    try:
        signer = EthAccountSigner.from_mnemonic(settings.mnemonic)
    except ValueError as exc:
        logger.error("Earn Agent stopped => %s", exc)
        sys.exit(1)

    logger.info("Earn Agent started.")
    logger.info("Earn Agent => using address: %s", signer.address)

    agent = build_agent(settings, signer)
    scheduler = AgentScheduler(
        check=agent.interval_check,
        chat=agent.handle_chat,
        interval_seconds=args.interval or settings.check_interval_seconds,
    )

    if not args.no_initial_check:
        scheduler.tick()
    scheduler.start()

    try:
        while True:
            message = input("You: ").strip()
            if not message:
                continue
            if message.lower() in EXIT_WORDS:
                break
            scheduler.submit_message(message)
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        scheduler.stop(timeout=1.0)
        logger.info("Earn Agent stopped.")


if __name__ == "__main__":
    main()
