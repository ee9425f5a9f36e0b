from __future__ import annotations

import json
from typing import Any

import pytest

from earn_agent.errors import RequestError
from earn_agent.schemas import (
    ActionSessionDto,
    BalanceDto,
    ConstructedTransactionDto,
    SubmitResultDto,
    TokenBalanceDto,
    TransactionStatusDto,
    YieldBalancesDto,
    YieldDto,
)

ADDRESS = "0x000000000000000000000000000000000000dEaD"
TOKEN_T = "0xaf88d065e77c8cc2239327c5edb3a432268e5831"

UNSIGNED = json.dumps({"to": TOKEN_T, "data": "0x", "value": "0", "chainId": 42161})

WRITE_CALLS = {"create_action_session", "construct_transaction", "submit_transaction"}


def make_yield(
    yield_id: str,
    apy: float = 0.10,
    token_address: str | None = TOKEN_T,
    symbol: str = "T",
    enter: bool = True,
    exit: bool = True,
    **metadata: Any,
) -> YieldDto:
    return YieldDto.model_validate(
        {
            "id": yield_id,
            "apy": apy,
            "token": {"address": token_address, "symbol": symbol},
            "metadata": {"name": yield_id.upper(), **metadata},
            "status": {"enter": enter, "exit": exit},
        }
    )


class FakeStakeKit:
    """In-memory aggregator that records every call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.yields: list[YieldDto] = []
        self.staked: dict[str, str] = {}
        self.idle: dict[str | None, str] = {}
        self.sessions: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.construct_results: dict[str, list[Any]] = {}
        self.statuses: dict[str, list[Any]] = {}
        self.submit_failures: set[str] = set()

    @property
    def writes(self) -> list[tuple[str, tuple[Any, ...]]]:
        return [c for c in self.calls if c[0] in WRITE_CALLS]

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def list_yields(self, network: str) -> list[YieldDto]:
        self.calls.append(("list_yields", (network,)))
        return list(self.yields)

    def get_yield_detail(self, integration_id: str) -> YieldDto:
        self.calls.append(("get_yield_detail", (integration_id,)))
        for y in self.yields:
            if y.id == integration_id:
                return y
        raise RequestError("GET", f"/v2/yields/{integration_id}", 404)

    def get_yield_balances(self, integration_id: str, address: str) -> list[BalanceDto]:
        self.calls.append(("get_yield_balances", (integration_id, address)))
        if integration_id not in self.staked:
            return []
        return [BalanceDto(type="staked", amount=self.staked[integration_id])]

    def get_position_balances(self, address: str, integration_ids: list[str]) -> list[YieldBalancesDto]:
        ids = list(integration_ids)
        self.calls.append(("get_position_balances", (address, tuple(ids))))
        return [
            YieldBalancesDto.model_validate(
                {"integrationId": i, "balances": [{"type": "staked", "amount": self.staked.get(i, "0")}]}
            )
            for i in ids
        ]

    def get_idle_balances(self, network: str, address: str, token_addresses: Any) -> list[TokenBalanceDto]:
        tokens = tuple(token_addresses)
        self.calls.append(("get_idle_balances", (network, address, tokens)))
        return [
            TokenBalanceDto.model_validate({"token": {"address": t}, "amount": self.idle.get(t and t.lower(), "0")})
            for t in tokens
        ]

    def create_action_session(self, direction: str, integration_id: str, address: str, amount: str) -> ActionSessionDto:
        self.calls.append(("create_action_session", (direction, integration_id, address, amount)))
        txs = self.sessions.get((direction, integration_id), [{"id": f"{integration_id}-tx", "type": "STAKE"}])
        return ActionSessionDto.model_validate({"transactions": txs})

    def construct_transaction(self, tx_id: str) -> ConstructedTransactionDto:
        self.calls.append(("construct_transaction", (tx_id,)))
        queue = self.construct_results.get(tx_id)
        result = queue.pop(0) if queue else UNSIGNED
        if isinstance(result, Exception):
            raise result
        return ConstructedTransactionDto(id=tx_id, unsigned_transaction=result)

    def submit_transaction(self, tx_id: str, signed: str) -> SubmitResultDto:
        self.calls.append(("submit_transaction", (tx_id, signed)))
        if tx_id in self.submit_failures:
            raise RequestError("POST", f"/v1/transactions/{tx_id}/submit", 400)
        return SubmitResultDto(transaction_hash=f"0xhash-{tx_id}")

    def get_transaction_status(self, tx_id: str) -> TransactionStatusDto:
        self.calls.append(("get_transaction_status", (tx_id,)))
        queue = self.statuses.get(tx_id)
        result = queue.pop(0) if queue else "CONFIRMED"
        if isinstance(result, Exception):
            raise result
        return TransactionStatusDto(status=result, url=f"https://explorer/{tx_id}" if result == "CONFIRMED" else None)


class FakeSigner:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.signed: list[dict[str, Any]] = []
        self.fail_on = fail_on or set()

    def sign(self, unsigned_transaction: dict[str, Any]) -> str:
        if unsigned_transaction.get("to") in self.fail_on:
            raise RuntimeError("signer rejected transaction")
        self.signed.append(unsigned_transaction)
        return "0xsigned"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def aggregator() -> FakeStakeKit:
    return FakeStakeKit()


@pytest.fixture()
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture()
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def yield_factory():
    return make_yield
