"""DocGate settings, read once from the environment (and ``.env``)."""

from enum import Enum
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Settings are unsafe for the current environment."""


_DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOCAL_HOSTS = ("localhost", "127.0.0.1")


class Settings(BaseSettings):
    """
    Service configuration.

    Every field maps to an upper-case environment variable of the same name
    (``DATABASE_URL``, ``DB_STATEMENT_TIMEOUT_MS``, ...). Unknown variables
    are ignored.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development or production; production refuses unsafe defaults"
    )

    # Browser origins allowed to call the API, comma-separated.
    cors_allowed_origins: str = Field(default="http://localhost:3000")

    # --- Stores ---
    database_url: str = Field(
        default="sqlite:///./docgate.db",
        description="SQLAlchemy URL of the database holding documents and grants"
    )
    # Pool settings apply to PostgreSQL only.
    db_pool_size: int = Field(default=5, description="Persistent connections kept open")
    db_max_overflow: int = Field(default=10, description="Connections allowed above the pool size")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a free connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is replaced")
    db_statement_timeout_ms: int = Field(
        default=5000,
        description="Bound on every grant-store read in milliseconds (PostgreSQL; 0 disables)"
    )
    create_tables_on_startup: bool = Field(
        default=False,
        description="Run create_all at startup; grant tables are normally created by migrations"
    )

    # --- Identity ---
    jwt_secret_key: str = Field(
        default=_DEFAULT_JWT_SECRET,
        description="Secret shared with the identity provider for HS256 bearer tokens"
    )
    jwt_algorithm: str = Field(default="HS256")

    # --- Logging ---
    log_level: str = Field(default="INFO", description=" / ".join(_LOG_LEVELS))
    log_format: str = Field(default="json", description="json (structured) or text")

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("db_statement_timeout_ms")
    @classmethod
    def _non_negative_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError("DB_STATEMENT_TIMEOUT_MS cannot be negative")
        return v

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret_key == _DEFAULT_JWT_SECRET

    def get_cors_origins(self) -> List[str]:
        """Split ``cors_allowed_origins``. A wildcard is rejected with ValueError."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS must list explicit origins, not '*'")
        return origins

    def production_problems(self) -> List[str]:
        """Settings that are acceptable in development but not in production."""
        problems: List[str] = []
        if self.uses_default_secret:
            problems.append("JWT_SECRET_KEY is the built-in default (generate one: openssl rand -hex 32)")
        if self.db_statement_timeout_ms == 0:
            problems.append("DB_STATEMENT_TIMEOUT_MS is 0, so grant-store reads are unbounded")
        local = [o for o in self.get_cors_origins() if any(h in o for h in _LOCAL_HOSTS)]
        if local:
            problems.append(f"CORS_ALLOWED_ORIGINS contains local origins: {local}")
        return problems

    def validate_production_config(self) -> None:
        """Raise ConfigurationError in production if any unsafe setting remains.

        In development this is a no-op; ``main`` logs the default-secret warning.
        """
        if self.environment != Environment.PRODUCTION:
            return
        problems = self.production_problems()
        if problems:
            raise ConfigurationError(
                "Refusing to start with unsafe production settings:\n  - " + "\n  - ".join(problems)
            )


settings = Settings()
