"""Turns reasoning-service replies into validated operations."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .amounts import is_positive_amount
from .errors import MalformedOperation
from .types import Operation, Step

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"```json(.*?)```", re.DOTALL)


class _StepPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, str_strip_whitespace=True)

    type: Literal["ENTER", "EXIT"]
    integration_id: str = Field(alias="integrationId", min_length=1)
    amount: str | None = None

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, value: str | None) -> str | None:
        if value is None or value.strip() == "":
            return None
        if not is_positive_amount(value):
            raise ValueError(f"amount must be a positive decimal, got {value!r}")
        return value.strip()


class _OperationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    steps: list[_StepPayload]


def parse_operation(obj: Any) -> Operation | None:
    """Validate a decoded operation object.

    Returns ``None`` for the explicit no-action signals (``{}`` or an empty
    ``steps`` list) and raises ``MalformedOperation`` for anything else that
    is not a well-formed operation.
    """
    if not isinstance(obj, dict):
        raise MalformedOperation(f"Scenario JSON must be an object, got {type(obj).__name__}")
    if not obj:
        return None
    if not isinstance(obj.get("steps"), list):
        raise MalformedOperation("Scenario JSON is missing 'steps'")
    try:
        payload = _OperationPayload.model_validate(obj)
    except ValidationError as exc:
        raise MalformedOperation(f"Invalid scenario steps: {exc.error_count()} errors") from exc
    if not payload.steps:
        return None
    return Operation(
        steps=tuple(
            Step(direction=s.type, integration_id=s.integration_id, amount=s.amount) for s in payload.steps
        )
    )


def extract_operation(text: str) -> Operation | None:
    """Pull the closing ```json block out of a reply. ``None`` means do nothing."""
    matches = list(_JSON_BLOCK.finditer(text or ""))
    if not matches:
        logger.info("No scenario block in reply => no action")
        return None

    last = matches[-1]
    if text[last.end() :].strip():
        logger.info("Reply continues after the scenario block => no action")
        return None

    try:
        obj = json.loads(last.group(1).strip())
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse scenario => %s", exc)
        return None

    try:
        operation = parse_operation(obj)
    except MalformedOperation as exc:
        logger.warning("%s => skip scenario", exc)
        return None

    if operation is None:
        logger.info("Scenario is empty => no action")
    return operation
