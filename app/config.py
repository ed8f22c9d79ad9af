from datetime import timedelta
from typing import List

from pydantic_settings import BaseSettings

from app.utils.tokens import TokenConfig


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Session Auth Service"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT ───────────────────────────────────────────────────────────────────
    # Access and refresh tokens are signed with independent secrets.
    ACCESS_TOKEN_SECRET:           str
    REFRESH_TOKEN_SECRET:          str
    ALGORITHM:                     str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES:   int = 15
    REFRESH_TOKEN_EXPIRE_DAYS:     int = 7

    # ─── Refresh Cookie ────────────────────────────────────────────────────────
    REFRESH_COOKIE_NAME: str = "refreshToken"

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    def token_config(self) -> TokenConfig:
        """Build the explicit token configuration handed to the TokenCodec."""
        return TokenConfig(
            access_secret=self.ACCESS_TOKEN_SECRET,
            refresh_secret=self.REFRESH_TOKEN_SECRET,
            access_expiry=timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_expiry=timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=self.ALGORITHM,
        )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
