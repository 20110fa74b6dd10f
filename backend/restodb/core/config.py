"""Application configuration."""

from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Database driver
    db_driver: Literal["mssql", "postgresql"] = "mssql"
    db_connect_timeout: int = 30  # seconds
    query_timeout: int = 30  # seconds, enforced by the driver

    # SQL Server (ODBC)
    mssql_odbc_driver: str = "ODBC Driver 18 for SQL Server"
    mssql_encrypt: bool = False
    mssql_trust_server_certificate: bool = True

    # Query limits
    max_query_length: int = 1000000  # characters

    # Result paging and export
    default_page_size: int = 10
    max_page_size: int = 1000
    export_filename: str = "query_results.csv"

    # Observability
    metrics_enabled: bool = True


settings = Settings()
