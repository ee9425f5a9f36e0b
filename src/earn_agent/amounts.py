from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .stakekit_client import StakeKitClient
from .types import NATIVE_TOKEN, Step

logger = logging.getLogger(__name__)


def is_positive_amount(value: object) -> bool:
    if value is None:
        return False
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return False
    return amount.is_finite() and amount > 0


@dataclass(frozen=True)
class ResolvedAmount:
    amount: str | None
    reason: str = ""

    @property
    def is_noop(self) -> bool:
        return self.amount is None


class AmountResolver:
    """Default amounts for steps without one: full stake on EXIT, full idle balance on ENTER."""

    def __init__(self, client: StakeKitClient, network: str, address: str) -> None:
        self.client = client
        self.network = network
        self.address = address

    def resolve(self, step: Step) -> ResolvedAmount:
        if step.amount:
            return ResolvedAmount(step.amount)
        if step.direction == "EXIT":
            return self._staked_amount(step.integration_id)
        return self._idle_amount(step.integration_id)

    def _staked_amount(self, integration_id: str) -> ResolvedAmount:
        balances = self.client.get_yield_balances(integration_id, self.address)
        staked = next((b for b in balances if b.type == "staked"), None)
        if staked is None or not is_positive_amount(staked.amount):
            return ResolvedAmount(None, "No staked balance")
        return ResolvedAmount(staked.amount)

    def _idle_amount(self, integration_id: str) -> ResolvedAmount:
        detail = self.client.get_yield_detail(integration_id)
        token_address = detail.token.address or None
        token_key = token_address.lower() if token_address else NATIVE_TOKEN
        balances = self.client.get_idle_balances(self.network, self.address, [token_address])
        amount = balances[0].amount if balances else "0"
        if not is_positive_amount(amount):
            return ResolvedAmount(None, f"No idle balance of {detail.token.symbol or token_key}")
        logger.debug("Idle %s balance for %s: %s", token_key, integration_id, amount)
        return ResolvedAmount(amount)
