"""Prediction client: model call + reply repair under a retry policy."""

import logging
from typing import TYPE_CHECKING, Any

from sheet_risk.errors import LLMTransportError, NormalizationError, PredictionError, RetryExhaustedError
from sheet_risk.models.prediction import PredictionResult
from sheet_risk.prediction.backends import ChatBackend, OllamaChatBackend, OpenAIChatBackend
from sheet_risk.prediction.heuristic import HeuristicChatBackend
from sheet_risk.prediction.normalize import normalize_prediction
from sheet_risk.prediction.prompt import SYSTEM_PROMPT, build_user_message
from sheet_risk.retry import RetryPolicy

if TYPE_CHECKING:
    from sheet_risk.config import Settings

logger = logging.getLogger(__name__)


class PredictionClient:
    """
    Obtain a PredictionResult for one row.
    Transport errors and unrepairable replies are both retried, sequentially,
    up to the policy's attempt budget.
    """

    def __init__(self, backend: ChatBackend, retry_policy: RetryPolicy | None = None):
        self.backend = backend
        self.retry_policy = (retry_policy or RetryPolicy()).with_retry_on(
            LLMTransportError, NormalizationError
        )

    async def _attempt(self, user_message: str) -> PredictionResult:
        reply = await self.backend.complete(SYSTEM_PROMPT, user_message)
        return normalize_prediction(reply)

    async def predict(self, input_data: dict[str, Any]) -> PredictionResult:
        """Raises PredictionError once every attempt has failed."""
        user_message = build_user_message(input_data)
        try:
            prediction = await self.retry_policy.run(
                lambda: self._attempt(user_message),
                description=f"{self.backend.name} prediction",
            )
        except RetryExhaustedError as e:
            raise PredictionError("all attempts failed", e.last_error) from e.last_error
        logger.debug("Prediction: %s", prediction.model_dump())
        return prediction

    async def close(self) -> None:
        await self.backend.close()


def build_backend(settings: "Settings") -> ChatBackend:
    """Chat backend for settings.llm_provider."""
    if settings.llm_provider == "ollama":
        return OllamaChatBackend(
            settings.llm_model,
            base_url=settings.ollama_base_url,
            timeout=settings.llm_timeout_seconds,
        )
    if settings.llm_provider == "heuristic":
        return HeuristicChatBackend()
    return OpenAIChatBackend(
        settings.llm_model,
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout_seconds,
    )
