"""Response schemas for the StakeKit endpoints the agent talks to."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import YieldOpportunity


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class PeriodDto(_Wire):
    days: int = 0


class TokenDto(_Wire):
    address: str | None = None
    symbol: str = ""
    network: str | None = None


class YieldMetadataDto(_Wire):
    name: str = ""
    cooldown_period: PeriodDto | None = Field(default=None, alias="cooldownPeriod")
    warmup_period: PeriodDto | None = Field(default=None, alias="warmupPeriod")
    withdraw_period: PeriodDto | None = Field(default=None, alias="withdrawPeriod")


class YieldStatusDto(_Wire):
    enter: bool = False
    exit: bool = False


class YieldDto(_Wire):
    id: str
    apy: float = 0.0
    token: TokenDto = Field(default_factory=TokenDto)
    metadata: YieldMetadataDto = Field(default_factory=YieldMetadataDto)
    status: YieldStatusDto = Field(default_factory=YieldStatusDto)

    def to_domain(self) -> YieldOpportunity:
        meta = self.metadata
        return YieldOpportunity(
            id=self.id,
            apy=self.apy,
            token_address=self.token.address or None,
            token_symbol=self.token.symbol,
            name=meta.name,
            can_enter=self.status.enter,
            can_exit=self.status.exit,
            cooldown_days=meta.cooldown_period.days if meta.cooldown_period else None,
            warmup_days=meta.warmup_period.days if meta.warmup_period else None,
            withdraw_days=meta.withdraw_period.days if meta.withdraw_period else None,
        )


class YieldListDto(_Wire):
    data: list[YieldDto] = Field(default_factory=list)


class BalanceDto(_Wire):
    type: str
    amount: str = "0"


class YieldBalancesDto(_Wire):
    integration_id: str = Field(alias="integrationId")
    balances: list[BalanceDto] = Field(default_factory=list)


class TokenBalanceDto(_Wire):
    token: TokenDto = Field(default_factory=TokenDto)
    amount: str = "0"


class ActionTransactionDto(_Wire):
    id: str
    type: str = ""
    status: str = ""


class ActionSessionDto(_Wire):
    id: str | None = None
    status: str | None = None
    transactions: list[ActionTransactionDto] = Field(default_factory=list)


class ConstructedTransactionDto(_Wire):
    id: str | None = None
    status: str | None = None
    unsigned_transaction: str | None = Field(default=None, alias="unsignedTransaction")


class SubmitResultDto(_Wire):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    transaction_hash: str | None = Field(default=None, alias="transactionHash")
    link: str | None = None


class TransactionStatusDto(_Wire):
    status: str
    url: str | None = None
    hash: str | None = None
