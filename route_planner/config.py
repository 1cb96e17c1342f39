import os
from pydantic import BaseModel
from dotenv import load_dotenv

from route_planner.errors import MissingCredentialError

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    ENV: str = os.getenv("ENV", "development")

    # OpenRouter
    OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
    OPENROUTER_API_URL: str = os.getenv(
        "OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions"
    )
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "anthropic/claude-3-haiku")
    OPENROUTER_REFERER: str = os.getenv("OPENROUTER_REFERER", "http://localhost:8080")
    OPENROUTER_TITLE: str = os.getenv("OPENROUTER_TITLE", "Route Planner")

    # Timeouts (seconds)
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "60"))
    STREAM_DEADLINE_SECONDS: float = float(os.getenv("STREAM_DEADLINE_SECONDS", "300"))

    # Outbound connection pool
    HTTP_MAX_CONNECTIONS: int = int(os.getenv("HTTP_MAX_CONNECTIONS", "100"))
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = int(os.getenv("HTTP_MAX_KEEPALIVE_CONNECTIONS", "10"))
    HTTP_KEEPALIVE_EXPIRY_SECONDS: float = float(os.getenv("HTTP_KEEPALIVE_EXPIRY_SECONDS", "90"))

    # Set false behind proxies that buffer responses
    STREAMING_ENABLED: bool = _env_bool("STREAMING_ENABLED", "true")

    # Server
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Allow extra .env variables without throwing validation errors
    model_config = {"extra": "allow", "frozen": True}


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment (plus explicit overrides).
    Refuses to return without a provider credential, so the app never
    starts half-configured.
    """
    settings = Settings(**overrides)
    if not settings.OPENROUTER_API_KEY.strip():
        raise MissingCredentialError(
            "OPENROUTER_API_KEY is not set. Please set it in your .env file or environment."
        )
    return settings
