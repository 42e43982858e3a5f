"""
Runtime settings for gsql.

Values come from the environment (``GSQL_`` prefix) or a local ``.env`` file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GSQL_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Diagnostics sink target; created empty on first use, never truncated.
    LOG_FILE: str = "gsql_logs.txt"

    DB_DEFAULT_PORT: int = 3306
    DB_CONNECT_TIMEOUT: int = 10  # seconds
    DB_CHARSET: str = "utf8mb4"
    DB_AUTOCOMMIT: bool = True


settings = Settings()
