"""
Frontend settings loaded from environment variables at startup.
Import `settings` and use it instead of reading os.environ elsewhere.
"""
import os

from dotenv import load_dotenv


def _optional(key: str, default: str) -> str:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _int(key: str, default: int) -> int:
    s = _optional(key, str(default))
    try:
        return int(s)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be an integer: {s!r}") from e


def _float(key: str, default: float) -> float:
    s = _optional(key, str(default))
    try:
        return float(s)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be a number: {s!r}") from e


class Settings:
    """All environment-derived configuration. Loaded once at import."""

    def __init__(self) -> None:
        load_dotenv()
        base = _optional("API_BASE", "http://localhost:5000").rstrip("/")
        self.api_base = base
        self.chat_api = f"{base}/chat"
        self.ui_port = _int("UI_PORT", 8080)
        self.chat_timeout = _float("CHAT_TIMEOUT", 60.0)
        # NiceGUI signs the per-browser storage with this secret
        self.storage_secret = _optional("STORAGE_SECRET", "chat-relay-dev-secret")


# Single instance loaded at import
settings = Settings()
