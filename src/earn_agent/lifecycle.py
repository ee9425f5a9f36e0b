"""Drives aggregator transactions through construct, sign, submit and confirm."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Iterable, Protocol

from .errors import (
    ConstructionExhausted,
    RequestError,
    SigningFailed,
    StatusUnknown,
    SubmissionFailed,
)
from .schemas import ActionTransactionDto
from .stakekit_client import StakeKitClient
from .types import TransactionOutcome, TxState

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {"CONFIRMED": TxState.CONFIRMED, "FAILED": TxState.FAILED}


class TransactionSigner(Protocol):
    def sign(self, unsigned_transaction: dict[str, Any]) -> str:
        ...


class TransactionLifecycleDriver:
    """Processes one step's transaction batch strictly in order.

    Construction is retried up to ``construct_attempts`` times; an exhausted
    transaction is marked ABANDONED and the batch moves on. Signing and
    submission failures raise and stop the rest of the batch. Status is polled
    until CONFIRMED or FAILED; a failing status query ends polling as UNKNOWN.
    ``max_polls`` caps the number of status queries (``None`` polls until a
    terminal status).
    """

    def __init__(
        self,
        client: StakeKitClient,
        signer: TransactionSigner,
        construct_attempts: int = 3,
        construct_retry_delay: float = 1.0,
        poll_interval: float = 2.0,
        max_polls: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if construct_attempts < 1:
            raise ValueError("construct_attempts must be >= 1")
        self.client = client
        self.signer = signer
        self.construct_attempts = construct_attempts
        self.construct_retry_delay = construct_retry_delay
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.sleep = sleep

    def process_batch(self, transactions: Iterable[ActionTransactionDto]) -> list[TransactionOutcome]:
        outcomes: list[TransactionOutcome] = []
        for tx in transactions:
            if tx.status == "SKIPPED":
                logger.info("TX %s (%s) skipped by aggregator", tx.id, tx.type)
                continue
            outcomes.append(self.process(tx))
        return outcomes

    def process(self, tx: ActionTransactionDto) -> TransactionOutcome:
        outcome = TransactionOutcome(tx_id=tx.id, tx_type=tx.type)
        logger.info("TX => %s", tx.type or tx.id)

        try:
            unsigned = self._construct(outcome)
        except ConstructionExhausted as exc:
            outcome.state = TxState.ABANDONED
            outcome.error = str(exc)
            logger.warning("Cannot construct TX %s => skip", tx.id)
            return outcome

        try:
            signed = self.signer.sign(unsigned)
        except Exception as exc:
            outcome.error = str(exc)
            raise SigningFailed(tx.id) from exc
        outcome.state = TxState.SIGNED

        try:
            result = self.client.submit_transaction(tx.id, signed)
        except RequestError as exc:
            outcome.error = str(exc)
            raise SubmissionFailed(tx.id) from exc
        outcome.state = TxState.SUBMITTED
        logger.info("TX submitted => %s", result.transaction_hash or tx.id)

        try:
            self._await_terminal(outcome)
        except StatusUnknown as exc:
            outcome.state = TxState.UNKNOWN
            outcome.error = exc.reason
            logger.warning("No TX status for %s => %s", tx.id, exc.reason)
        return outcome

    def _construct(self, outcome: TransactionOutcome) -> dict[str, Any]:
        for attempt in range(1, self.construct_attempts + 1):
            outcome.construct_attempts = attempt
            try:
                constructed = self.client.construct_transaction(outcome.tx_id)
                unsigned = _decode_unsigned(constructed.unsigned_transaction)
            except (RequestError, ValueError) as exc:
                logger.info("Construct attempt %d for %s failed: %s", attempt, outcome.tx_id, exc)
                if attempt < self.construct_attempts:
                    self.sleep(self.construct_retry_delay)
                continue
            outcome.state = TxState.CONSTRUCTED
            return unsigned
        raise ConstructionExhausted(outcome.tx_id, self.construct_attempts)

    def _await_terminal(self, outcome: TransactionOutcome) -> None:
        polls = 0
        while True:
            if self.max_polls is not None and polls >= self.max_polls:
                raise StatusUnknown(outcome.tx_id, f"no terminal status after {polls} polls")
            polls += 1
            try:
                status = self.client.get_transaction_status(outcome.tx_id)
            except RequestError as exc:
                raise StatusUnknown(outcome.tx_id, str(exc)) from exc

            terminal = TERMINAL_STATUSES.get(status.status)
            if terminal is TxState.CONFIRMED:
                outcome.state = terminal
                outcome.explorer_url = status.url
                logger.info("TX confirmed => %s", status.url or outcome.tx_id)
                return
            if terminal is TxState.FAILED:
                outcome.state = terminal
                logger.warning("TX failed => %s", outcome.tx_id)
                return

            logger.info("TX pending...")
            self.sleep(self.poll_interval)


def _decode_unsigned(raw: str | None) -> dict[str, Any]:
    if not raw:
        raise ValueError("constructed transaction has no unsigned payload")
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("unsigned payload is not an object")
    return payload
