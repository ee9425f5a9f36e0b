from __future__ import annotations

import logging
from typing import Iterable

from .amounts import is_positive_amount
from .stakekit_client import MAX_INTEGRATIONS_PER_REQUEST, StakeKitClient
from .types import NATIVE_TOKEN, AccountSnapshot, EarningPosition, YieldOpportunity

logger = logging.getLogger(__name__)


def filter_sort_yields(yields: Iterable[YieldOpportunity]) -> tuple[YieldOpportunity, ...]:
    """Keep enterable and exitable yields without lock periods, best apy first."""
    kept = [y for y in yields if y.can_enter and y.can_exit and not y.has_lock_period]
    return tuple(sorted(kept, key=lambda y: y.apy, reverse=True))


class AccountState:
    """Holds the latest snapshot; ``refresh`` replaces it wholesale."""

    def __init__(
        self,
        client: StakeKitClient,
        network: str,
        address: str,
        batch_size: int = MAX_INTEGRATIONS_PER_REQUEST,
    ) -> None:
        self.client = client
        self.network = network
        self.address = address
        self.batch_size = max(1, min(batch_size, MAX_INTEGRATIONS_PER_REQUEST))
        self.snapshot = AccountSnapshot()

    def refresh(self) -> AccountSnapshot:
        logger.info("Refreshing account data...")
        yields = filter_sort_yields(y.to_domain() for y in self.client.list_yields(self.network))
        positions = self._fetch_positions(yields)
        idle = self._fetch_idle_balances(yields)
        self.snapshot = AccountSnapshot(yields=yields, positions=positions, idle_balances=idle)
        logger.info(
            "Data refreshed: %d yields, %d positions, %d idle tokens.",
            len(yields),
            len(positions),
            len(idle),
        )
        return self.snapshot

    def _fetch_positions(self, yields: tuple[YieldOpportunity, ...]) -> tuple[EarningPosition, ...]:
        positions: list[EarningPosition] = []
        for i in range(0, len(yields), self.batch_size):
            chunk = [y.id for y in yields[i : i + self.batch_size]]
            for item in self.client.get_position_balances(self.address, chunk):
                staked = next((b for b in item.balances if b.type == "staked"), None)
                if staked is not None and is_positive_amount(staked.amount):
                    positions.append(EarningPosition(integration_id=item.integration_id, amount=staked.amount))
        return tuple(positions)

    def _fetch_idle_balances(self, yields: tuple[YieldOpportunity, ...]) -> dict[str, str]:
        tokens: dict[str, str | None] = {}
        for y in yields:
            tokens.setdefault(y.token_key, y.token_address.lower() if y.token_address else None)
        if not tokens:
            return {}

        balances: dict[str, str] = {}
        for b in self.client.get_idle_balances(self.network, self.address, tokens.values()):
            if not is_positive_amount(b.amount):
                continue
            key = b.token.address.lower() if b.token.address else NATIVE_TOKEN
            balances[key] = b.amount
        return balances

    def summary(self) -> str:
        snap = self.snapshot
        lines = ["Yields:"]
        for y in snap.yields:
            lines.append(
                f" - ID: {y.id}, name: {y.name}, token: {y.token_symbol}, APY: {y.apy * 100:.2f}%, "
                f"canEnter: {str(y.can_enter).lower()}, canExit: {str(y.can_exit).lower()}"
            )
        lines.append("")
        lines.append("Positions:")
        for p in snap.positions:
            lines.append(f" - integrationId: {p.integration_id}, staked: {p.amount}")
        lines.append("")
        lines.append("Idle Token Balances:")
        for token, amount in snap.idle_balances.items():
            lines.append(f" - token: {token}, amount: {amount}")
        return "\n".join(lines) + "\n"
