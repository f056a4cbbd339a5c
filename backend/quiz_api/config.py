"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent

QUESTION_STORE_BACKENDS = ("database", "file", "memory")


class Settings:
    ENV: str
    DATABASE_URL: str
    QUESTION_STORE: str
    QUESTION_STORE_PATH: Path
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    ADMIN_USERNAME: str
    ADMIN_PASSWORD: str
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'quiz.db'}")
        self.QUESTION_STORE = os.getenv("QUESTION_STORE", "database").lower()
        self.QUESTION_STORE_PATH = Path(os.getenv("QUESTION_STORE_PATH", str(BASE / "questions.json")))
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    def _validate(self):
        if self.QUESTION_STORE not in QUESTION_STORE_BACKENDS:
            raise RuntimeError(
                f"QUESTION_STORE must be one of {', '.join(QUESTION_STORE_BACKENDS)}, got {self.QUESTION_STORE!r}"
            )
        if self.ENV == "dev":
            return
        if self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.ADMIN_PASSWORD == "admin":
            raise RuntimeError("ADMIN_PASSWORD must be changed in non-dev environments")


settings = Settings()
