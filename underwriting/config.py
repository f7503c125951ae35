"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "CRE Underwriting Engine"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # IRR solver
    irr_initial_guess: float = 0.10
    irr_max_iterations: int = 100
    irr_tolerance: float = 0.0001

    # Expense default rate tables (JSON); bundled tables when unset
    expense_rates_file: Optional[str] = None

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    def irr_options(self) -> Dict[str, Any]:
        """Solver options in the form calculate_irr accepts."""
        return {
            "guess": self.irr_initial_guess,
            "max_iterations": self.irr_max_iterations,
            "tolerance": self.irr_tolerance,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
