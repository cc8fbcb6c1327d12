import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PINVAULT_", extra="ignore")

    db_url: str = "sqlite:///pinvault.db"

    store_backend: str = "sqlalchemy"

    max_attempts: int = 5
    lockout_minutes: int = 30
    reject_weak_pins: bool = True

    reset_api_url: str = "http://localhost:3000/api"
    reset_api_token: str = ""
    reset_api_timeout: float = 15.0

    # Bypasses every PIN check; keep off outside recovery tooling.
    allow_emergency_reset: bool = False

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def lockout_duration_ms(self) -> int:
        return self.lockout_minutes * 60 * 1000


settings = Settings()
