from unittest.mock import MagicMock

import pytest
import requests

from earn_agent.errors import RequestError, ResponseSchemaError
from earn_agent.stakekit_client import StakeKitClient


def response(status: int, body=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.text = "error body"
    resp.json.return_value = body
    return resp


def make_client(*responses) -> tuple[StakeKitClient, MagicMock]:
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return StakeKitClient("key-123", base_url="https://api.example/", timeout=5, session=session), session


def test_api_key_header_is_set() -> None:
    _, session = make_client()
    assert session.headers["X-API-KEY"] == "key-123"


def test_list_yields_parses_catalog() -> None:
    body = {
        "data": [
            {
                "id": "arbitrum-usdc-aave",
                "apy": 0.051,
                "token": {"address": "0xAF88", "symbol": "USDC"},
                "metadata": {"name": "Aave USDC", "cooldownPeriod": {"days": 0}},
                "status": {"enter": True, "exit": True},
            }
        ]
    }
    client, session = make_client(response(200, body))
    [y] = client.list_yields("arbitrum")

    session.request.assert_called_once_with(
        "GET", "https://api.example/v2/yields", timeout=5, params={"network": "arbitrum"}
    )
    domain = y.to_domain()
    assert domain.apy == 0.051
    assert domain.token_key == "0xaf88"
    assert not domain.has_lock_period


def test_non_2xx_raises_request_error_with_path_and_status() -> None:
    client, _ = make_client(response(429))
    with pytest.raises(RequestError) as exc_info:
        client.get_transaction_status("tx-1")
    assert exc_info.value.status_code == 429
    assert exc_info.value.path == "/v1/transactions/tx-1/status"


def test_transport_error_raises_request_error() -> None:
    client, session = make_client()
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(RequestError) as exc_info:
        client.construct_transaction("tx-1")
    assert exc_info.value.status_code is None


def test_unexpected_body_raises_schema_error() -> None:
    client, _ = make_client(response(200, {"url": "x"}))
    with pytest.raises(ResponseSchemaError):
        client.get_transaction_status("tx-1")


def test_action_session_payload() -> None:
    body = {"id": "s1", "transactions": [{"id": "t1", "type": "APPROVAL", "status": "SKIPPED"}, {"id": "t2", "type": "STAKE"}]}
    client, session = make_client(response(200, body))
    out = client.create_action_session("EXIT", "y1", "0xabc", "50")

    args, kwargs = session.request.call_args
    assert args == ("POST", "https://api.example/v1/actions/exit")
    assert kwargs["json"] == {"integrationId": "y1", "addresses": {"address": "0xabc"}, "args": {"amount": "50"}}
    assert [t.id for t in out.transactions] == ["t1", "t2"]
    assert out.transactions[0].status == "SKIPPED"


def test_construct_and_submit_paths() -> None:
    client, session = make_client(
        response(200, {"id": "t1", "unsignedTransaction": '{"to": "0x1"}'}),
        response(200, {"transactionHash": "0xfeed"}),
    )
    constructed = client.construct_transaction("t1")
    submitted = client.submit_transaction("t1", "0xsigned")

    calls = session.request.call_args_list
    assert calls[0].args == ("PATCH", "https://api.example/v1/transactions/t1")
    assert calls[0].kwargs["json"] == {}
    assert calls[1].args == ("POST", "https://api.example/v1/transactions/t1/submit")
    assert calls[1].kwargs["json"] == {"signedTransaction": "0xsigned"}
    assert constructed.unsigned_transaction == '{"to": "0x1"}'
    assert submitted.transaction_hash == "0xfeed"


def test_idle_balances_native_entry_has_no_token_address() -> None:
    client, session = make_client(response(200, [{"token": {"symbol": "ETH"}, "amount": "1"}]))
    [bal] = client.get_idle_balances("arbitrum", "0xabc", [None, "0xABC"])

    assert session.request.call_args.kwargs["json"] == {
        "addresses": [
            {"network": "arbitrum", "address": "0xabc"},
            {"network": "arbitrum", "address": "0xabc", "tokenAddress": "0xabc"},
        ]
    }
    assert bal.token.address is None
    assert bal.amount == "1"


def test_position_balances_reject_oversized_batch() -> None:
    client, _ = make_client()
    with pytest.raises(ValueError):
        client.get_position_balances("0xabc", [f"y{i}" for i in range(16)])


def test_position_balances_payload() -> None:
    body = [{"integrationId": "y1", "balances": [{"type": "staked", "amount": 50}]}]
    client, session = make_client(response(200, body))
    [item] = client.get_position_balances("0xabc", ["y1"])

    assert session.request.call_args.kwargs["json"] == [{"addresses": {"address": "0xabc"}, "integrationId": "y1"}]
    assert item.balances[0].amount == "50"
