"""Configuration module for the RSAMS backend.

This module provides centralized configuration management, including directory
paths, API server settings, database location and authentication parameters.
All configuration values can be overridden via environment variables.
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from rsams.core.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# --- Application Configuration ---

# One of "development", "test" or "production"
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Database Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/rsams.db")

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses of the dashboard frontend.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Authentication Configuration ---

DEFAULT_JWT_SECRET_KEY = "development-secret-key-change-in-production"

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET_KEY)
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))  # 7 days
)

# Consecutive failed logins before the account is locked
MAX_LOGIN_ATTEMPTS: int = int(os.getenv("MAX_LOGIN_ATTEMPTS", "5"))
LOCK_TIME_MINUTES: int = int(os.getenv("LOCK_TIME_MINUTES", "30"))

MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "8"))


@dataclass(frozen=True)
class AuthSettings:
    """Parameters consumed by the authentication subsystem."""

    bcrypt_rounds: int = 12
    jwt_secret_key: str = DEFAULT_JWT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    token_ttl: timedelta = timedelta(days=7)
    max_login_attempts: int = 5
    lock_duration: timedelta = timedelta(minutes=30)
    min_password_length: int = 8


def load_auth_settings() -> AuthSettings:
    """Build AuthSettings from the environment-derived constants.

    Returns:
        AuthSettings instance.
    """
    return AuthSettings(
        bcrypt_rounds=BCRYPT_ROUNDS,
        jwt_secret_key=JWT_SECRET_KEY,
        jwt_algorithm=JWT_ALGORITHM,
        token_ttl=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        max_login_attempts=MAX_LOGIN_ATTEMPTS,
        lock_duration=timedelta(minutes=LOCK_TIME_MINUTES),
        min_password_length=MIN_PASSWORD_LENGTH,
    )


def validate_settings() -> None:
    """Validate security-relevant settings.

    Raises:
        ConfigurationError: If the development JWT secret is used in production.
    """
    if ENVIRONMENT == "production" and JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY:
        raise ConfigurationError(
            "JWT_SECRET_KEY must be set to a secure value in production."
        )
    if len(JWT_SECRET_KEY) < 32:
        logger.warning("JWT_SECRET_KEY should be at least 32 characters for security")
