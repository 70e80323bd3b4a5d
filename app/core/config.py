from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache
from urllib.parse import quote_plus


class Settings(BaseSettings):
    PROJECT_NAME: str = "ExpenseAlly Insights Service"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    ALGORITHM: str = "HS256"
    JWT_KEY: str = "dev-jwt-key-change-in-production"
    JWT_ISSUER: str = "https://localhost:44329"
    JWT_AUDIENCE: str = "http://localhost:7008"

    # Full SQLAlchemy URL; when unset the SQL Server pieces below are used
    DATABASE_URL: Optional[str] = None
    DB_SERVER: str = "."
    DB_NAME: str = "ExpenseAllyDatabase"
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_DRIVER: str = "ODBC Driver 17 for SQL Server"
    DB_TRUSTED_CONNECTION: bool = True
    DB_TRUST_SERVER_CERTIFICATE: bool = True

    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:7008,https://localhost:44329"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL

        driver = self.DB_DRIVER.replace(' ', '+')
        trust_cert = 'yes' if self.DB_TRUST_SERVER_CERTIFICATE else 'no'
        if self.DB_USER and self.DB_PASSWORD:
            # SQL Authentication (Cloud)
            password = quote_plus(self.DB_PASSWORD)
            return (
                f"mssql+aioodbc://{self.DB_USER}:{password}@{self.DB_SERVER}/{self.DB_NAME}"
                f"?driver={driver}&TrustServerCertificate={trust_cert}"
            )
        # Windows Authentication (Local)
        return (
            f"mssql+aioodbc://?driver={driver}"
            f"&server={self.DB_SERVER}"
            f"&database={self.DB_NAME}"
            f"&trusted_connection={'yes' if self.DB_TRUSTED_CONNECTION else 'no'}"
            f"&TrustServerCertificate={trust_cert}"
        )

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Text generation capability ("none" or "openai")
    GENERATION_PROVIDER: str = "none"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    GENERATION_MAX_TOKENS: int = 512
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_TIMEOUT_SECONDS: float = 20.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
