from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    SERVICE_NAME: str = "backoffice-service"
    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "backoffice"
    POSTGRES_USER: str = "backoffice"
    POSTGRES_PASSWORD: str = "backoffice"
    # Full SQLAlchemy URL; takes precedence over the POSTGRES_* parts
    DATABASE_URL: Optional[str] = None

    CUSTOMER_CACHE_TTL_SECONDS: float = 60.0
    CUSTOMER_CACHE_MAXSIZE: int = 1024

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

@lru_cache
def get_settings() -> Settings:
    return Settings()
