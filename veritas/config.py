from typing import List, Optional
from pydantic import PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Veritas Backend"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/v1"
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "veritas"
    POSTGRES_PORT: int = 5432
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # Oracle (OpenAI-compatible chat completions, Mistral by default)
    MISTRAL_API_KEY: Optional[str] = None
    ORACLE_BASE_URL: str = "https://api.mistral.ai/v1"
    ORACLE_MODEL: str = "mistral-small-latest"
    ORACLE_TIMEOUT_SECONDS: float = 30.0

    # Ledger
    CHAIN_APPEND_MAX_RETRIES: int = 3

    # Retrieval
    RETRIEVAL_LIMIT: int = 5
    ORACLE_SELECTION_ENABLED: bool = False
    ORACLE_SELECTION_SNAPSHOT: int = 50

    # Chat log
    CHAT_HISTORY_LIMIT: int = 100

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()
