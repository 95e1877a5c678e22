"""Exception hierarchy for the sync worker."""

from typing import Optional


class SheetRiskError(Exception):
    """Base class for all errors raised by sheet_risk."""


class ConfigurationError(SheetRiskError):
    """Required settings are missing or malformed. Fatal at startup."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class ValidationError(SheetRiskError):
    """Inbound queue message does not match the expected shape. Never retried."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class NormalizationError(SheetRiskError):
    """Model reply could not be repaired into a valid prediction."""


class LLMTransportError(SheetRiskError):
    """The chat endpoint could not be reached or returned an error status."""


class StoreError(SheetRiskError):
    """Document store rejected a call or could not be reached."""


class RetryExhaustedError(SheetRiskError):
    """Every attempt allowed by a RetryPolicy failed."""

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{description}: all {attempts} attempts failed. Last error: {last_error}"
        )


class _StageError(SheetRiskError):
    """Terminal failure of one pipeline stage, carrying the underlying cause."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        self.last_error = last_error
        if last_error is not None:
            message = f"{message}. Last error: {last_error}"
        super().__init__(message)


class PredictionError(_StageError):
    """No valid prediction after all attempts."""


class PersistenceError(_StageError):
    """Record could not be written after all attempts."""


class DependencyUnavailableError(_StageError):
    """Document store unreachable at batch start; the whole batch is failed."""
