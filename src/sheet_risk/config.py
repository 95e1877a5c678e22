"""Worker settings loaded from environment variables or a YAML file."""

import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from sheet_risk.errors import ConfigurationError

# Setting name -> environment variables checked in order.
_ENV_VARS: dict[str, tuple[str, ...]] = {
    "llm_provider": ("LLM_PROVIDER",),
    "llm_api_key": ("LLM_API_KEY", "GROQ_API_KEY", "OPENAI_API_KEY"),
    "llm_model": ("LLM_MODEL",),
    "llm_base_url": ("LLM_BASE_URL",),
    "llm_timeout_seconds": ("LLM_TIMEOUT_SECONDS",),
    "ollama_base_url": ("OLLAMA_BASE_URL",),
    "mongo_uri": ("MONGO_URI",),
    "db_name": ("DB_NAME",),
    "collection_name": ("PROCESSED_DATA_COLLECTION",),
    "store_timeout_ms": ("STORE_TIMEOUT_MS",),
    "max_retries": ("MAX_RETRIES",),
    "retry_base_delay": ("RETRY_BASE_DELAY", "RETRY_BASE_DELAY_SECONDS"),
}

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# Models served by Groq; with no base URL these go to GROQ_BASE_URL.
_GROQ_MODELS = frozenset(
    {
        "llama-3.1-8b-instant",
        "llama-3.3-70b-versatile",
        "gemma2-9b-it",
        "openai/gpt-oss-20b",
        "openai/gpt-oss-120b",
    }
)

# Nested YAML sections: section -> {key in section: setting name}
_YAML_SECTIONS: dict[str, dict[str, str]] = {
    "llm": {
        "provider": "llm_provider",
        "api_key": "llm_api_key",
        "model": "llm_model",
        "base_url": "llm_base_url",
        "timeout_seconds": "llm_timeout_seconds",
        "ollama_base_url": "ollama_base_url",
    },
    "store": {
        "uri": "mongo_uri",
        "db_name": "db_name",
        "collection": "collection_name",
        "timeout_ms": "store_timeout_ms",
    },
    "retry": {
        "max_retries": "max_retries",
        "base_delay": "retry_base_delay",
    },
}


class Settings(BaseModel):
    """Runtime configuration for the worker, CLI and queue handler."""

    llm_provider: Literal["openai", "ollama", "heuristic"] = "openai"
    llm_api_key: Optional[str] = None
    llm_model: str = "llama-3.1-8b-instant"
    llm_base_url: Optional[str] = None
    llm_timeout_seconds: float = Field(default=30.0, gt=0)
    ollama_base_url: str = "http://localhost:11434"

    mongo_uri: str = Field(..., min_length=1)
    db_name: Optional[str] = None
    collection_name: str = "GoogleSheet"
    store_timeout_ms: int = Field(default=5000, gt=0)

    max_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)

    @property
    def uses_mongo(self) -> bool:
        return self.mongo_uri.startswith(("mongodb://", "mongodb+srv://"))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables. Raises ConfigurationError."""
        env = os.environ if environ is None else environ
        return cls._build(_values_from_env(env), groq_key=_api_key_var(env) == "GROQ_API_KEY")

    @classmethod
    def from_yaml(cls, path: str | Path, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Load settings from YAML (flat keys or nested llm/store/retry sections).
        Environment variables override file values.
        """
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError([f"cannot read {path}: {e}"]) from e
        if not isinstance(data, dict):
            raise ConfigurationError([f"{path} must contain a mapping"])
        values: dict[str, Any] = {k: v for k, v in data.items() if k in cls.model_fields}
        for section, keys in _YAML_SECTIONS.items():
            nested = data.get(section) or {}
            for key, name in keys.items():
                if key in nested:
                    values[name] = nested[key]
        env = os.environ if environ is None else environ
        values.update(_values_from_env(env))
        return cls._build(values, groq_key=_api_key_var(env) == "GROQ_API_KEY")

    @classmethod
    def _build(cls, values: dict[str, Any], *, groq_key: bool = False) -> "Settings":
        problems: list[str] = []
        try:
            settings = cls.model_validate(values)
        except PydanticValidationError as e:
            for err in e.errors(include_url=False):
                name = ".".join(str(p) for p in err["loc"])
                problems.append(f"{_env_name(name)}: {err['msg']}")
            raise ConfigurationError(problems) from e
        if settings.uses_mongo and not settings.db_name:
            problems.append("DB_NAME: required for a MongoDB connection string")
        elif not settings.uses_mongo and not settings.mongo_uri.startswith("sqlite:///"):
            problems.append("MONGO_URI: expected mongodb://, mongodb+srv:// or sqlite:///")
        if settings.llm_provider == "openai" and not settings.llm_api_key:
            problems.append("LLM_API_KEY: required for the openai provider")
        if problems:
            raise ConfigurationError(problems)
        if (
            settings.llm_provider == "openai"
            and not settings.llm_base_url
            and (groq_key or settings.llm_model in _GROQ_MODELS)
        ):
            settings = settings.model_copy(update={"llm_base_url": GROQ_BASE_URL})
        return settings


def _values_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, candidates in _ENV_VARS.items():
        for var in candidates:
            raw = env.get(var)
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip().lower() if name == "llm_provider" else raw.strip()
                break
    return values


def _api_key_var(env: Mapping[str, str]) -> Optional[str]:
    """Environment variable the API key is read from, if any."""
    for var in _ENV_VARS["llm_api_key"]:
        if (env.get(var) or "").strip():
            return var
    return None


def _env_name(setting: str) -> str:
    candidates = _ENV_VARS.get(setting)
    return candidates[0] if candidates else setting
