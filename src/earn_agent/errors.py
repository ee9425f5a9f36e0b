from __future__ import annotations


class EarnAgentError(RuntimeError):
    """Base class for failures raised by the earn agent."""


class RequestError(EarnAgentError):
    """Raised when an aggregator call does not return a 2xx response."""

    def __init__(self, method: str, path: str, status_code: int | None, detail: str = "") -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        self.detail = detail
        status = status_code if status_code is not None else "no response"
        message = f"{method} {path} failed: {status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ResponseSchemaError(RequestError):
    """Raised when a 2xx response body does not match the expected shape."""

    def __init__(self, method: str, path: str, detail: str) -> None:
        super().__init__(method, path, None, detail)
        self.args = (f"{method} {path} returned an unexpected body: {detail}",)


class ConstructionExhausted(EarnAgentError):
    def __init__(self, tx_id: str, attempts: int) -> None:
        self.tx_id = tx_id
        self.attempts = attempts
        super().__init__(f"Could not construct transaction {tx_id} after {attempts} attempts")


class SigningFailed(EarnAgentError):
    def __init__(self, tx_id: str) -> None:
        self.tx_id = tx_id
        super().__init__(f"Signing failed for transaction {tx_id}")


class SubmissionFailed(EarnAgentError):
    def __init__(self, tx_id: str) -> None:
        self.tx_id = tx_id
        super().__init__(f"Submission failed for transaction {tx_id}")


class StatusUnknown(EarnAgentError):
    def __init__(self, tx_id: str, reason: str) -> None:
        self.tx_id = tx_id
        self.reason = reason
        super().__init__(f"Status of transaction {tx_id} unknown: {reason}")


class MalformedOperation(EarnAgentError, ValueError):
    """Raised when a proposed operation fails structural validation."""
