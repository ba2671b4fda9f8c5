import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/pagecraft"
    if environment == "test":
        return "sqlite+pysqlite:///:memory:"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND",
        os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
    )

    # Publishing
    scheduler_tick_seconds: int = int(os.getenv("CMS_SCHEDULER_TICK_SECONDS", "60"))
    # Applies only to pages without a publishing workflow row.
    require_approval_default: bool = _env_bool("CMS_REQUIRE_APPROVAL_DEFAULT", "false")
    version_list_max: int = int(os.getenv("CMS_VERSION_LIST_MAX", "200"))
    diff_strategy_default: str = os.getenv("CMS_DIFF_STRATEGY", "positional")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
