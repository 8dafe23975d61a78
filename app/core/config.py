from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Store for configs and query history
    DATABASE_URL: str
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # SQL generation
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_TEMPERATURE: float = 0.1
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Query requests
    MAX_QUERY_LENGTH: int = 500
    HISTORY_DEFAULT_LIMIT: int = 50
    INCLUDE_SCHEMA_CONTEXT: bool = True

    # Target database backends
    BACKEND_CONNECT_TIMEOUT_SECONDS: float = 30.0
    BACKEND_QUERY_TIMEOUT_SECONDS: float = 30.0
    POSTGRES_POOL_MAX: int = 10
    POSTGRES_POOL_IDLE_SECONDS: int = 30
    MSSQL_ODBC_DRIVER: str = "ODBC Driver 18 for SQL Server"
    MSSQL_TRUST_SERVER_CERTIFICATE: bool = False

    # Seeded as the active target on first start when no configs exist
    DEFAULT_TARGET_DATABASE_URL: Optional[str] = None

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()
