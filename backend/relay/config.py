"""
Application settings loaded from environment variables at startup.
Import `settings` and use it instead of reading os.environ elsewhere.
Every variable has a default; malformed numbers raise RuntimeError.
"""
import os

from dotenv import load_dotenv


def _optional(key: str, default: str | None = None) -> str | None:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _int(key: str, default: int) -> int:
    s = _optional(key)
    if s is None:
        return default
    try:
        return int(s)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be an integer: {s!r}") from e


def _float(key: str, default: float) -> float:
    s = _optional(key)
    if s is None:
        return default
    try:
        return float(s)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be a number: {s!r}") from e


class Settings:
    """All environment-derived configuration. Loaded once at import."""

    def __init__(self) -> None:
        load_dotenv()
        # Server
        self.host = _optional("HOST", "0.0.0.0")
        self.port = _int("PORT", 5000)
        self.cors_origins = [o.strip() for o in _optional("CORS_ORIGINS", "*").split(",") if o.strip()]

        # Logging; empty LOG_FILE disables the file handler
        self.log_level = _optional("LOG_LEVEL", "INFO").upper()
        self.log_file = os.environ.get("LOG_FILE", "app.log").strip() or None

        # Rate limit: RATE_LIMIT_MAX requests per RATE_LIMIT_WINDOW seconds per client address
        self.rate_limit_window = _int("RATE_LIMIT_WINDOW", 15 * 60)
        self.rate_limit_max = _int("RATE_LIMIT_MAX", 100)

        # Language model (OpenAI-compatible API, Groq by default)
        self.llm_api_key = _optional("GROQ_API_KEY")
        self.llm_base_url = _optional("LLM_BASE_URL", "https://api.groq.com/openai/v1").rstrip("/")
        self.chat_model = _optional("CHAT_MODEL", "llama-3.3-70b-versatile")
        self.llm_timeout = _float("LLM_TIMEOUT", 30.0)

        # Live search (Tavily); no key disables live lookups
        self.search_api_key = _optional("TAVILY_API_KEY")
        self.search_api_url = _optional("SEARCH_API_URL", "https://api.tavily.com/search")
        self.search_timeout = _float("SEARCH_TIMEOUT", 10.0)

        # Time service (WorldTimeAPI)
        self.timezone = _optional("TIMEZONE", "Etc/UTC")
        self.time_api_url = _optional("TIME_API_URL", "http://worldtimeapi.org/api/timezone").rstrip("/")
        self.time_api_timeout = _float("TIME_API_TIMEOUT", 5.0)

    @property
    def rate_limit(self) -> str:
        """Limit string understood by slowapi, e.g. '100/900 seconds'."""
        return f"{self.rate_limit_max}/{self.rate_limit_window} seconds"


# Single instance loaded at import
settings = Settings()
