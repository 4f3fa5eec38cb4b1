from typing import List
import os


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Storage (empty keeps notebooks in memory only)
        self.STORAGE_PATH = os.getenv("CALCNOTES_STORAGE_PATH", "")

        # Server
        self.HOST = os.getenv("CALCNOTES_HOST", "127.0.0.1")
        self.PORT = int(os.getenv("CALCNOTES_PORT", "8000"))
        self.RELOAD = os.getenv("CALCNOTES_RELOAD", "false").lower() == "true"
        self.LOG_LEVEL = os.getenv("CALCNOTES_LOG_LEVEL", "info").lower()

        # CORS
        self.ALLOWED_ORIGINS = os.getenv("CALCNOTES_ALLOWED_ORIGINS", "*")

        # Application
        self.APP_TITLE = "calcnotes API"
        self.VERSION = "1.0.0"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()
