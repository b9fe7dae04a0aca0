"""
Configuration Management

Loads environment variables and provides settings for the ETL pipeline.
Uses python-dotenv for local development and environment variables for production.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()


def _get_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Application settings loaded from environment variables.

    Ensures no hardcoded credentials in code.
    """

    def __init__(self):
        """Read settings from the environment and validate them."""
        # Database Configuration
        self.DB_HOST: str = os.getenv("DB_HOST", "localhost")
        self.DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
        self.DB_NAME: str = os.getenv("DB_NAME", "carelogs")
        self.DB_USER: Optional[str] = os.getenv("DB_USER")
        self.DB_PASSWORD: Optional[str] = os.getenv("DB_PASSWORD")
        self.DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
        self.DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "20"))

        # Source files
        self.CAREGIVERS_CSV: str = os.getenv("CAREGIVERS_CSV", os.path.join("data", "caregivers.csv"))
        self.CARELOGS_CSV: str = os.getenv("CARELOGS_CSV", os.path.join("data", "carelogs.csv"))

        # ETL Configuration
        self.BATCH_SIZE: int = int(os.getenv("BATCH_SIZE", "1000"))
        self.RUN_ANALYTICS: bool = _get_bool("RUN_ANALYTICS")

        # Logging Configuration
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FILE: str = os.getenv("LOG_FILE", os.path.join("logs", "etl.log"))

        self._validate_settings()

    def _validate_settings(self) -> None:
        """
        Validate that all required settings are provided.

        Raises:
            ValueError: If required settings are missing or out of range
        """
        required_fields = ["DB_USER", "DB_PASSWORD"]

        missing_fields = [
            field for field in required_fields
            if not getattr(self, field, None)
        ]

        if missing_fields:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing_fields)}. "
                f"Please check your .env file."
            )

        if self.BATCH_SIZE < 1:
            raise ValueError(f"BATCH_SIZE must be at least 1, got: {self.BATCH_SIZE}")

        if self.DB_POOL_MIN < 1 or self.DB_POOL_MAX < self.DB_POOL_MIN:
            raise ValueError(
                f"Invalid pool bounds: DB_POOL_MIN={self.DB_POOL_MIN}, DB_POOL_MAX={self.DB_POOL_MAX}"
            )

    def __repr__(self) -> str:
        """Return string representation (excluding sensitive data)."""
        return (
            f"Settings("
            f"DB_HOST={self.DB_HOST}, "
            f"DB_NAME={self.DB_NAME}, "
            f"CAREGIVERS_CSV={self.CAREGIVERS_CSV}, "
            f"CARELOGS_CSV={self.CARELOGS_CSV}, "
            f"BATCH_SIZE={self.BATCH_SIZE}"
            f")"
        )
