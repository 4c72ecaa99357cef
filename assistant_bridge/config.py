from __future__ import annotations
import os
from pathlib import Path
from typing import List
import yaml
from pydantic import BaseModel, Field, ValidationError
from assistant_bridge.errors import ConfigurationError

def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"

# Assistant backend Configuration
OPENAI_API_URL: str = _with_trailing_slash(os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/"))
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
OPENAI_BETA_HEADER: str = os.getenv("OPENAI_BETA_HEADER", "assistants=v2")
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# Assistant profile and pre-provisioned resources
ASSISTANT_PROFILE_PATH: str = os.getenv("ASSISTANT_PROFILE_PATH", "config.yaml")
ASSISTANT_ID: str | None = os.getenv("ASSISTANT_ID")
VECTOR_STORE_ID: str | None = os.getenv("VECTOR_STORE_ID")

# Telegram Configuration
TELEGRAM_BOT_TOKEN: str | None = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_API_URL: str = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
TELEGRAM_POLL_TIMEOUT: int = int(os.getenv("TELEGRAM_POLL_TIMEOUT", "60"))

# Query dispatch Configuration
MAX_CONCURRENT_QUERIES: int = int(os.getenv("MAX_CONCURRENT_QUERIES", "16"))
QUERY_TIMEOUT_SECONDS: float = float(os.getenv("QUERY_TIMEOUT_SECONDS", "120"))
ERROR_REPLY_TEXT: str = os.getenv("ERROR_REPLY_TEXT", "Sorry, your request could not be processed.")
NO_ANSWER_REPLY_TEXT: str = os.getenv("NO_ANSWER_REPLY_TEXT", "The assistant could not provide an answer.")

# Logging Configuration
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_STRUCTURED: bool = os.getenv("LOG_STRUCTURED", "true").lower() == "true"

# OpenTelemetry Configuration
OTEL_EXPORTER_OTLP_ENDPOINT: str | None = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
OTEL_SERVICE_NAME: str = os.getenv("OTEL_SERVICE_NAME", "assistant-bridge")
OTEL_SAMPLE_RATE: float = float(os.getenv("OTEL_SAMPLE_RATE", "1.0"))
OTEL_CONSOLE_EXPORT: bool = os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

# Ops HTTP server
HTTP_HOST: str = os.getenv("HTTP_HOST", "0.0.0.0")
HTTP_PORT: int = int(os.getenv("HTTP_PORT", "8080"))


class AssistantProfile(BaseModel):
    """Assistant definition and the directory of reference files to index."""

    name: str
    instructions: str = ""
    model: str
    tools: List[str] = Field(default_factory=lambda: ["file_search"])
    files_path: str = "files"


def load_assistant_profile(path: str | Path = ASSISTANT_PROFILE_PATH) -> AssistantProfile:
    """Load the assistant profile YAML.

    Only the keys of the profile are read, so the same file may also carry
    deployment notes or other sections without breaking startup.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read assistant profile {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in assistant profile {path}: {e}") from e

    try:
        return AssistantProfile.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid assistant profile {path}: {e}") from e


def require_settings() -> None:
    """Fail fast when credentials needed at startup are missing."""
    missing = [
        name for name, value in (
            ("OPENAI_API_KEY", OPENAI_API_KEY),
            ("TELEGRAM_BOT_TOKEN", TELEGRAM_BOT_TOKEN),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
    if MAX_CONCURRENT_QUERIES < 1:
        raise ConfigurationError("MAX_CONCURRENT_QUERIES must be at least 1")
