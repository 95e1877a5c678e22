"""AI risk prediction for sheet rows."""

from .backends import ChatBackend, OllamaChatBackend, OpenAIChatBackend
from .client import PredictionClient, build_backend
from .heuristic import HeuristicChatBackend, predict_from_rules
from .normalize import normalize_prediction

__all__ = [
    "ChatBackend",
    "HeuristicChatBackend",
    "OllamaChatBackend",
    "OpenAIChatBackend",
    "PredictionClient",
    "build_backend",
    "normalize_prediction",
    "predict_from_rules",
]
