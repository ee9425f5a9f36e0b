from __future__ import annotations

import logging
from typing import Any, Iterable, TypeVar

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import RequestError, ResponseSchemaError
from .schemas import (
    ActionSessionDto,
    BalanceDto,
    ConstructedTransactionDto,
    SubmitResultDto,
    TokenBalanceDto,
    TransactionStatusDto,
    YieldBalancesDto,
    YieldDto,
    YieldListDto,
)
from .settings import Settings
from .types import Direction

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_INTEGRATIONS_PER_REQUEST = 15

_BALANCE_LIST = TypeAdapter(list[BalanceDto])
_YIELD_BALANCES_LIST = TypeAdapter(list[YieldBalancesDto])
_TOKEN_BALANCE_LIST = TypeAdapter(list[TokenBalanceDto])


class StakeKitClient:
    """Typed wrapper over the StakeKit read/write endpoints.

    Every non-2xx response raises ``RequestError``. Retrying is left to callers.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.stakek.it",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "X-API-KEY": api_key})

    @classmethod
    def from_settings(cls, settings: Settings) -> "StakeKitClient":
        return cls(
            api_key=settings.stakekit_api_key,
            base_url=settings.stakekit_base_url,
            timeout=settings.http_timeout_seconds,
        )

    # reads

    def list_yields(self, network: str) -> list[YieldDto]:
        path = "/v2/yields"
        data = self._request("GET", path, params={"network": network})
        return self._parse(YieldListDto, data, "GET", path).data

    def get_yield_detail(self, integration_id: str) -> YieldDto:
        path = f"/v2/yields/{integration_id}"
        return self._parse(YieldDto, self._request("GET", path), "GET", path)

    def get_yield_balances(self, integration_id: str, address: str) -> list[BalanceDto]:
        path = f"/v1/yields/{integration_id}/balances"
        data = self._request("POST", path, json={"addresses": {"address": address}})
        return self._parse_list(_BALANCE_LIST, data, "POST", path)

    def get_position_balances(self, address: str, integration_ids: Iterable[str]) -> list[YieldBalancesDto]:
        ids = list(integration_ids)
        if len(ids) > MAX_INTEGRATIONS_PER_REQUEST:
            raise ValueError(f"At most {MAX_INTEGRATIONS_PER_REQUEST} integrations per balances request, got {len(ids)}")
        path = "/v1/yields/balances"
        payload = [{"addresses": {"address": address}, "integrationId": integration_id} for integration_id in ids]
        return self._parse_list(_YIELD_BALANCES_LIST, self._request("POST", path, json=payload), "POST", path)

    def get_idle_balances(
        self,
        network: str,
        address: str,
        token_addresses: Iterable[str | None],
    ) -> list[TokenBalanceDto]:
        """Query token balances; ``None`` in ``token_addresses`` means the native asset."""
        entries: list[dict[str, str]] = []
        for token_address in token_addresses:
            entry = {"network": network, "address": address}
            if token_address:
                entry["tokenAddress"] = token_address.lower()
            entries.append(entry)
        path = "/v1/tokens/balances"
        data = self._request("POST", path, json={"addresses": entries})
        return self._parse_list(_TOKEN_BALANCE_LIST, data, "POST", path)

    def get_transaction_status(self, tx_id: str) -> TransactionStatusDto:
        path = f"/v1/transactions/{tx_id}/status"
        return self._parse(TransactionStatusDto, self._request("GET", path), "GET", path)

    # writes

    def create_action_session(
        self,
        direction: Direction,
        integration_id: str,
        address: str,
        amount: str,
    ) -> ActionSessionDto:
        path = f"/v1/actions/{'enter' if direction == 'ENTER' else 'exit'}"
        payload = {
            "integrationId": integration_id,
            "addresses": {"address": address},
            "args": {"amount": amount},
        }
        return self._parse(ActionSessionDto, self._request("POST", path, json=payload), "POST", path)

    def construct_transaction(self, tx_id: str) -> ConstructedTransactionDto:
        path = f"/v1/transactions/{tx_id}"
        return self._parse(ConstructedTransactionDto, self._request("PATCH", path, json={}), "PATCH", path)

    def submit_transaction(self, tx_id: str, signed_transaction: str) -> SubmitResultDto:
        path = f"/v1/transactions/{tx_id}/submit"
        data = self._request("POST", path, json={"signedTransaction": signed_transaction})
        return self._parse(SubmitResultDto, data, "POST", path)

    # transport

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, path)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise RequestError(method, path, None, str(exc)) from exc

        if not resp.ok:
            raise RequestError(method, path, resp.status_code, resp.text[:200])

        try:
            return resp.json()
        except ValueError as exc:
            raise ResponseSchemaError(method, path, "response is not JSON") from exc

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, method: str, path: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ResponseSchemaError(method, path, f"{exc.error_count()} validation errors") from exc

    @staticmethod
    def _parse_list(adapter: TypeAdapter[list[T]], data: Any, method: str, path: str) -> list[T]:
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise ResponseSchemaError(method, path, f"{exc.error_count()} validation errors") from exc
