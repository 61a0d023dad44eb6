"""Runtime settings, read from ``ORDERLIFE_*`` environment variables or ``.env``."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Repo-root ``data/`` when running from an editable install
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ORDERLIFE_", env_file=".env", extra="ignore"
    )

    data_dir: Path = _DEFAULT_DATA_DIR
    log_level: str = "INFO"
    commit_max_retries: int = 3  # extra read-validate-write cycles after a conflict
    commit_retry_backoff_seconds: float = 0.05  # doubled on every retry
    store_lock_timeout_seconds: float = 10.0  # max wait for another writer's file lock
    strict_transitions: bool = False  # reject out-of-graph transitions instead of warning
    mail_from: str = "Orders <orders@localhost>"
    mail_queue_size: int = 100


settings = Settings()
