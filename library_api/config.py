"""
Application settings.

Values are read from environment variables once, at import time. A ``.env``
file in the working directory is loaded first so local overrides do not
need to be exported by hand.
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv


load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    """Settings for the API server, the database and logging."""

    project_name: str = os.getenv("PROJECT_NAME", "Library Management API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    api_prefix: str = os.getenv("API_PREFIX", "/api")

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./library.db")

    # "development" exposes exception text in 500 responses.
    environment: str = os.getenv("ENVIRONMENT", "production")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "5000"))
    cors_origins: List[str] = field(
        default_factory=lambda: _split_origins(
            os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost")
        )
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


settings = Settings()
