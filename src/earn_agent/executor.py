from __future__ import annotations

import logging
from typing import Callable

from .amounts import AmountResolver
from .lifecycle import TransactionLifecycleDriver
from .stakekit_client import StakeKitClient
from .types import Operation, Step, StepResult

logger = logging.getLogger(__name__)


class StepExecutor:
    """Runs an operation's steps one after another.

    Each executed step is followed by ``refresh`` so the next step sees the
    balances the previous one left behind. Signing and submission failures
    propagate and stop the remaining steps.
    """

    def __init__(
        self,
        client: StakeKitClient,
        resolver: AmountResolver,
        driver: TransactionLifecycleDriver,
        address: str,
        refresh: Callable[[], object],
    ) -> None:
        self.client = client
        self.resolver = resolver
        self.driver = driver
        self.address = address
        self.refresh = refresh

    def execute(self, operation: Operation) -> list[StepResult]:
        results: list[StepResult] = []
        for step in operation.steps:
            results.append(self.run_step(step))
        return results

    def run_step(self, step: Step) -> StepResult:
        logger.info("[%s] yield %s, %s %s", step.direction, step.integration_id, step.verb, step.amount or "???")
        result = StepResult(step=step)

        resolved = self.resolver.resolve(step)
        if resolved.is_noop:
            result.skip_reason = resolved.reason
            logger.info("%s => skip %s", resolved.reason, step.direction)
            return result
        result.amount = resolved.amount

        session = self.client.create_action_session(
            step.direction,
            step.integration_id,
            self.address,
            resolved.amount,
        )
        result.outcomes = self.driver.process_batch(session.transactions)

        logger.info("%s done => yield %s", step.direction, step.integration_id)
        self.refresh()
        return result
