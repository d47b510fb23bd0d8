from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> str:
    env_file = ".env" if Path("/.dockerenv").exists() else ".env.local"

    current_path = Path.cwd()

    for path in [current_path] + list(current_path.parents):
        env_path = path / env_file
        if env_path.exists():
            return str(env_path)

    return env_file


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+psycopg2://app:app@db:5432/motorent"
    auto_create_tables: bool = True

    # Rental policy
    timezone: str = "Asia/Jakarta"
    hourly_overdue_rate: int = 15_000  # rupiah per extra hour
    return_cooldown_min: int = 60  # unit is not bookable right after a return
    default_rental_time: str = "08:00"

    # WhatsApp gateway (empty url disables sending)
    whatsapp_gateway_url: str = ""
    whatsapp_api_key: str = ""
    http_timeout_sec: float = 3.0

    # Circuit Breaker settings
    cb_whatsapp_fail_max: int = 5
    cb_whatsapp_reset_timeout: int = 60  # seconds

    # Overdue worker
    overdue_check_interval_sec: int = 300
    worker_metrics_port: int = 8001

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
