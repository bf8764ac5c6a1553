from pathlib import Path

from pydantic_settings import BaseSettings

# Value shipped in the sample .env; treated the same as an unset key.
PLACEHOLDER_API_KEY = "YOUR_GEMINI_API_KEY_HERE"


def is_usable_api_key(key: str) -> bool:
    key = key.strip()
    return bool(key) and key != PLACEHOLDER_API_KEY


class Settings(BaseSettings):
    app_name: str = "StillWaters"
    debug: bool = False

    # Paths
    db_path: Path = Path(__file__).resolve().parent.parent.parent / "stillwaters.db"

    # LLM
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    upstream_timeout_seconds: float = 30.0
    mock_delay_seconds: float = 1.5

    # Abuse control
    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: int = 60 * 60

    # Client
    proxy_url: str = "http://localhost:3000"
    proxy_timeout_seconds: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent.parent / ".env"),
        "env_prefix": "STILLWATERS_",
    }

    @property
    def has_gemini_credential(self) -> bool:
        return is_usable_api_key(self.gemini_api_key)


settings = Settings()
