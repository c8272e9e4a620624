"""
Configuration settings for the application
"""

import os
from typing import Dict, List
from pydantic_settings import BaseSettings

# Web SDK config keys that must be present when Firebase is the backing store
FIREBASE_WEB_FIELDS = [
    "FIREBASE_API_KEY",
    "FIREBASE_AUTH_DOMAIN",
    "FIREBASE_PROJECT_ID",
    "FIREBASE_STORAGE_BUCKET",
    "FIREBASE_MESSAGING_SENDER_ID",
    "FIREBASE_APP_ID",
]

class Settings(BaseSettings):
    """Application settings"""

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./table_tamer.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Firebase web SDK config, handed to the browser client
    FIREBASE_API_KEY: str | None = os.getenv("FIREBASE_API_KEY")
    FIREBASE_AUTH_DOMAIN: str | None = os.getenv("FIREBASE_AUTH_DOMAIN")
    FIREBASE_PROJECT_ID: str | None = os.getenv("FIREBASE_PROJECT_ID")
    FIREBASE_STORAGE_BUCKET: str | None = os.getenv("FIREBASE_STORAGE_BUCKET")
    FIREBASE_MESSAGING_SENDER_ID: str | None = os.getenv("FIREBASE_MESSAGING_SENDER_ID")
    FIREBASE_APP_ID: str | None = os.getenv("FIREBASE_APP_ID")

    # Language model used for spreadsheet column detection
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Import pipeline
    IMPORT_SAMPLE_ROWS: int = 5
    IMPORT_BATCH_SIZE: int = 25

    # Rate limiting (public endpoints)
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"

    def missing_firebase_config(self) -> List[str]:
        """Names of web SDK settings that are unset"""
        return [name for name in FIREBASE_WEB_FIELDS if not getattr(self, name)]

    def firebase_web_config(self) -> Dict[str, str | None]:
        return {
            "apiKey": self.FIREBASE_API_KEY,
            "authDomain": self.FIREBASE_AUTH_DOMAIN,
            "projectId": self.FIREBASE_PROJECT_ID,
            "storageBucket": self.FIREBASE_STORAGE_BUCKET,
            "messagingSenderId": self.FIREBASE_MESSAGING_SENDER_ID,
            "appId": self.FIREBASE_APP_ID,
        }

settings = Settings()
