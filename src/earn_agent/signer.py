from __future__ import annotations

from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"

_INT_FIELDS = ("chainId", "nonce", "gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "value", "type")
_DROPPED_FIELDS = ("from", "customData", "ccipReadEnabled", "blockTag", "enableCcipRead")

Account.enable_unaudited_hdwallet_features()


class EthAccountSigner:
    """Signs aggregator-built EVM transactions with a locally held key."""

    def __init__(self, account: LocalAccount) -> None:
        self.account = account

    @classmethod
    def from_mnemonic(cls, mnemonic: str, derivation_path: str = DEFAULT_DERIVATION_PATH) -> "EthAccountSigner":
        phrase = " ".join(mnemonic.split())
        if not phrase:
            raise ValueError("MNEMONIC is empty. Set it in the environment or .env file.")
        try:
            account = Account.from_mnemonic(phrase, account_path=derivation_path)
        except Exception as exc:
            raise ValueError("MNEMONIC is not a valid BIP39 phrase.") from exc
        return cls(account)

    @property
    def address(self) -> str:
        return self.account.address

    def sign(self, unsigned_transaction: dict[str, Any]) -> str:
        tx = normalize_transaction(unsigned_transaction)
        signed = self.account.sign_transaction(tx)
        return "0x" + bytes(signed.raw_transaction).hex()


def normalize_transaction(unsigned: dict[str, Any]) -> dict[str, Any]:
    """Map an ethers-style transaction object onto eth_account field names."""
    tx = {k: v for k, v in unsigned.items() if v is not None and k not in _DROPPED_FIELDS}
    if "gasLimit" in tx:
        tx["gas"] = tx.pop("gasLimit")
    if tx.get("to"):
        tx["to"] = to_checksum_address(tx["to"])
    if tx.get("data") in ("", "0x"):
        tx.pop("data")
    for key in _INT_FIELDS:
        if key in tx:
            tx[key] = _to_int(tx[key])
    if tx.get("type") == 2:
        tx.pop("gasPrice", None)
    if tx.get("type") == 0:
        tx.pop("type")
    return tx


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, dict) and "hex" in value:
        value = value["hex"]
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)
