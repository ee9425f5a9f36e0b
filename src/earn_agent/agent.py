from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .account_state import AccountState
from .executor import StepExecutor
from .intake import extract_operation
from .reasoning import (
    CHAT_INSTRUCTIONS,
    INTERVAL_CHECK_INSTRUCTIONS,
    INTERVAL_CHECK_MESSAGE,
    ReasoningClient,
    build_system_prompt,
)
from .types import Operation, StepResult

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    reply: str
    operation: Operation | None = None
    results: list[StepResult] = field(default_factory=list)

    @property
    def acted(self) -> bool:
        return self.operation is not None


class EarnAgent:
    """One refresh-and-decide cycle: refresh, ask, narrate, validate, execute."""

    def __init__(self, state: AccountState, reasoning: ReasoningClient, executor: StepExecutor) -> None:
        self.state = state
        self.reasoning = reasoning
        self.executor = executor

    def interval_check(self) -> CycleReport:
        logger.info("\nInterval check => scanning for single scenario improvement...")
        return self.run_scenario(INTERVAL_CHECK_INSTRUCTIONS, INTERVAL_CHECK_MESSAGE)

    def handle_chat(self, message: str) -> CycleReport:
        return self.run_scenario(CHAT_INSTRUCTIONS, message)

    def run_scenario(self, instructions: str, message: str) -> CycleReport:
        self.state.refresh()
        system_prompt = build_system_prompt(instructions, self.state.summary())
        reply = self.reasoning.complete(system_prompt, message)

        logger.info("\nEarn Agent:\n\n%s\n", reply.strip())

        report = CycleReport(reply=reply, operation=extract_operation(reply))
        if report.operation is None:
            return report
        report.results = self.executor.execute(report.operation)
        return report
