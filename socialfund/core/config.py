"""Environment driven configuration for the contribution service."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_FALSE_VALUES = {"0", "false", "False", "no"}


@dataclass(frozen=True, slots=True)
class DatabaseSettings:
    """Connection details for the relational database."""

    driver: str = "mysql+pymysql"
    host: str = "127.0.0.1"
    port: int = 3306
    user: str = "socialfund"
    password: str = "socialfund"
    name: str = "socialfund"
    url_override: str | None = None

    @property
    def sqlalchemy_url(self) -> str:
        """Build a SQLAlchemy compatible URL."""

        if self.url_override:
            return self.url_override
        if self.password:
            credentials = f"{self.user}:{self.password}"
        else:
            credentials = self.user
        return f"{self.driver}://{credentials}@{self.host}:{self.port}/{self.name}"

    @property
    def masked_url(self) -> str:
        """Return the URL with the password hidden, suitable for logs."""

        if self.url_override:
            return self.url_override.split("@")[-1]
        pwd = "***" if self.password else ""
        return f"{self.driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"


@dataclass(frozen=True, slots=True)
class CalculationSettings:
    """Tuning knobs for the background calculation worker."""

    max_workers: int = 4
    default_city: str = "Foshan"


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    """Where and how verbosely the service logs."""

    level: str = "INFO"
    log_dir: Path | None = Path("logs")


@dataclass(frozen=True, slots=True)
class Settings:
    """Top-level application configuration container."""

    database: DatabaseSettings
    calculation: CalculationSettings
    logging: LoggingSettings
    sqlalchemy_echo: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Load configuration values from environment variables."""

        def _get_env(name: str, default: str) -> str:
            return os.getenv(name, default)

        db_defaults = DatabaseSettings()
        db = DatabaseSettings(
            driver=_get_env("DB_DRIVER", db_defaults.driver),
            host=_get_env("DB_HOST", db_defaults.host),
            port=int(_get_env("DB_PORT", str(db_defaults.port))),
            user=_get_env("DB_USER", db_defaults.user),
            password=_get_env("DB_PASSWORD", db_defaults.password),
            name=_get_env("DB_NAME", db_defaults.name),
            url_override=os.getenv("DATABASE_URL") or None,
        )

        max_workers = int(_get_env("CALC_MAX_WORKERS", "4"))
        if max_workers < 1:
            raise ValueError("CALC_MAX_WORKERS must be a positive integer.")
        calculation = CalculationSettings(
            max_workers=max_workers,
            default_city=_get_env("CALC_DEFAULT_CITY", "Foshan").strip() or "Foshan",
        )

        raw_log_dir = _get_env("LOG_DIR", "logs").strip()
        logging_settings = LoggingSettings(
            level=_get_env("LOG_LEVEL", "INFO"),
            log_dir=Path(raw_log_dir) if raw_log_dir else None,
        )

        echo_flag = _get_env("SQLALCHEMY_ECHO", "0")
        return cls(
            database=db,
            calculation=calculation,
            logging=logging_settings,
            sqlalchemy_echo=echo_flag not in _FALSE_VALUES,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    settings = Settings.from_env()

    # Import locally to avoid circular dependencies during module import time.
    from .logger import get_logger

    logger = get_logger(__name__)
    logger.debug(
        "Settings initialised",
        extra={
            "sqlalchemy_echo": settings.sqlalchemy_echo,
            "database": settings.database.masked_url,
            "calculation": {
                "max_workers": settings.calculation.max_workers,
                "default_city": settings.calculation.default_city,
            },
        },
    )
    return settings
