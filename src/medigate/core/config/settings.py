"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

# Base URL sentinel that selects the bundled fixture dataset.
LOCAL_API_URL = "local"


class Settings(BaseSettings):
    """MediGate client configuration.

    Read once at startup; the session does not pick up changes made
    after ``create_session()`` has run.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # API
    # Empty or "local" serves every request from the fixture dataset.
    medigate_api_url: str = LOCAL_API_URL
    medigate_api_timeout: float = 10.0
    medigate_api_logging: bool = False
    medigate_log_level: str = "info"

    # Fixture mode
    medigate_fixture_path: str = ""
    medigate_fixture_latency: float = 0.3

    # Storage (credentials + offline feedback)
    db_path: str = "~/.medigate/medigate.db"

    # Encryption
    encryption_key: str = ""

    # Feedback collector
    feedback_sync_url: str = ""

    # Entry point sign-in when there is no session to restore
    medigate_demo_email: str = ""
    medigate_demo_password: str = ""

    @property
    def uses_fixture_backend(self) -> bool:
        url = self.medigate_api_url.strip()
        return not url or url == LOCAL_API_URL


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
