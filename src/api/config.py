"""Configuration for the design board API server."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Attributes
    ----------
    host : str
        The host address to bind the server to (default: ``"0.0.0.0"``).
    port : int
        The port to bind the server to (default: ``8080``).
    debug : bool
        Whether to run the server in debug mode (default: ``False``).
    allowed_origins : str
        Comma-separated list of origins allowed by CORS, or ``"*"``.
    jwt_secret : str
        Secret used to sign access tokens.
    jwt_algorithm : str
        JWT signing algorithm (default: ``"HS256"``).
    jwt_expire_days : int
        Access token lifetime in days (default: ``7``).
    use_local_storage : bool
        Store documents as JSON files instead of in memory (default: ``True``).
    local_storage_path : str
        Root directory of the JSON document store.
    upload_dir : str
        Directory question images are saved to and served from ``/uploads``.
    claude_api_key : str
        Anthropic API key; enables Claude-backed AI evaluation when set.
    ai_evaluator_url : str
        Remote AI evaluator used when no Claude key is configured.
    ai_timeout_seconds : float
        Timeout for remote AI evaluation calls.
    rename_debounce_seconds : float
        Quiet period before the editor persists a rename.

    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    debug: bool = False
    allowed_origins: str = "*"
    jwt_secret: str = "change-me"  # noqa: S105
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7
    use_local_storage: bool = True
    local_storage_path: str = "/tmp/designboard"  # noqa: S108
    upload_dir: str = "uploads"
    claude_api_key: str = ""
    ai_evaluator_url: str = ""
    ai_timeout_seconds: float = 60.0
    rename_debounce_seconds: float = 1.0

    def origins(self) -> list[str]:
        """Return the CORS origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the application settings instance (cached).

    Returns
    -------
    Settings
        The application settings.

    """
    s = Settings()
    logger.info(
        "Settings loaded: claude_api_key=%s, ai_evaluator_url=%s, use_local_storage=%s",
        "SET" if s.claude_api_key else "NOT SET",
        s.ai_evaluator_url or "NOT SET",
        s.use_local_storage,
    )
    if s.jwt_secret == "change-me":  # noqa: S105
        logger.warning("JWT_SECRET is not set; using the insecure development default")
    return s
