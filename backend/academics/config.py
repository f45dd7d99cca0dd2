"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    TOKEN_EXPIRE_HOURS: int
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    HOST: str
    PORT: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DEBUG = os.getenv("DEBUG", "false").lower() == "true"
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.TOKEN_EXPIRE_HOURS = int(os.getenv("TOKEN_EXPIRE_HOURS", "24"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.HOST = os.getenv("HOST", "127.0.0.1")
        self.PORT = int(os.getenv("PORT", "8000"))
        self._validate()

    def _validate(self):
        if self.TOKEN_EXPIRE_HOURS <= 0:
            raise RuntimeError("TOKEN_EXPIRE_HOURS must be a positive number of hours")
        if self.ENV == "prod" and self.DEBUG:
            raise RuntimeError("DEBUG must be disabled in prod; it leaks database errors to clients")


settings = Settings()
