from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    PGHOST: Optional[str] = None
    PGDATABASE: Optional[str] = None
    PGUSER: Optional[str] = None
    PGPASSWORD: Optional[str] = None
    PGSSLMODE: str = "require"

    # Cache
    REDIS_URL: Optional[str] = None

    # Security
    SECRET_KEY: str = "fallback-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    AUTH_COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = False
    ADMIN_API_KEY: Optional[str] = None

    # Chat assistant
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    CHAT_MODEL: str = "qwen/qwen-2.5-72b-instruct"
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 1000
    CHAT_TIMEOUT_SECONDS: float = 30.0
    REFUND_POLICY_PATH: str = "docs/REFUND_POLICY.md"

    # Application
    PROJECT_NAME: str = "TrustRoute"
    API_V1_STR: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.PGHOST:
            return f"postgresql://{self.PGUSER}:{self.PGPASSWORD}@{self.PGHOST}/{self.PGDATABASE}?sslmode={self.PGSSLMODE}"
        return "sqlite:///./trustroute.db"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
