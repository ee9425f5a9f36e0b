from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Mapping

Direction = Literal["ENTER", "EXIT"]

NATIVE_TOKEN = "native"


@dataclass(frozen=True)
class YieldOpportunity:
    id: str
    apy: float
    token_address: str | None
    token_symbol: str
    name: str
    can_enter: bool
    can_exit: bool
    cooldown_days: int | None = None
    warmup_days: int | None = None
    withdraw_days: int | None = None

    @property
    def token_key(self) -> str:
        return self.token_address.lower() if self.token_address else NATIVE_TOKEN

    @property
    def has_lock_period(self) -> bool:
        return any(days for days in (self.cooldown_days, self.warmup_days, self.withdraw_days))


@dataclass(frozen=True)
class EarningPosition:
    integration_id: str
    amount: str


@dataclass(frozen=True)
class AccountSnapshot:
    yields: tuple[YieldOpportunity, ...] = ()
    positions: tuple[EarningPosition, ...] = ()
    idle_balances: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Step:
    direction: Direction
    integration_id: str
    amount: str | None = None

    @property
    def verb(self) -> str:
        return "deposit" if self.direction == "ENTER" else "withdraw"


@dataclass(frozen=True)
class Operation:
    steps: tuple[Step, ...]


class TxState(str, Enum):
    PENDING_CONSTRUCTION = "PENDING_CONSTRUCTION"
    CONSTRUCTED = "CONSTRUCTED"
    SIGNED = "SIGNED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"
    ABANDONED = "ABANDONED"


@dataclass
class TransactionOutcome:
    tx_id: str
    tx_type: str
    state: TxState = TxState.PENDING_CONSTRUCTION
    construct_attempts: int = 0
    explorer_url: str | None = None
    error: str | None = None


@dataclass
class StepResult:
    step: Step
    amount: str | None = None
    skip_reason: str | None = None
    outcomes: list[TransactionOutcome] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None
