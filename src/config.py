"""Configuration module for the Coachbook API.

This module provides centralized configuration management, including directory
paths, API server settings, token and hashing parameters, and booking defaults.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# Uploaded video files, served under /uploads
UPLOAD_DIR_NAME = "uploads"
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(DATA_DIR / UPLOAD_DIR_NAME)))

# --- Environment ---

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
IS_DEVELOPMENT: bool = ENVIRONMENT == "development"

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses (Expo web, Metro, Vite). For
# production, set via CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:8081,http://127.0.0.1:8081,http://localhost:19006,"
    "http://localhost:3000,http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/coachbook.db"
)

# --- Authentication Configuration ---

# Access and refresh tokens are signed with distinct secrets
JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-access-secret-change-me")
JWT_REFRESH_SECRET_KEY: str = os.getenv(
    "JWT_REFRESH_SECRET_KEY", "dev-refresh-secret-change-me"
)
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
)
REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# When set, self-registration with the coach role must present this token
COACH_REGISTRATION_TOKEN: Optional[str] = os.getenv("COACH_REGISTRATION_TOKEN")

SOCIAL_PROVIDERS: List[str] = [
    p.strip()
    for p in os.getenv("SOCIAL_PROVIDERS", "google,facebook,apple").split(",")
    if p.strip()
]

# --- Booking Configuration ---

# Used when a coach has not listed a price
DEFAULT_SESSION_PRICE: float = float(os.getenv("DEFAULT_SESSION_PRICE", "50"))

# Session length in minutes
DEFAULT_SESSION_DURATION: int = int(os.getenv("DEFAULT_SESSION_DURATION", "60"))
MIN_SESSION_DURATION: int = 15

MIN_GROUP_PARTICIPANTS: int = 2

# Number of sessions shown in the coach dashboard "recent" list
RECENT_SESSIONS_LIMIT: int = 10

# --- Payment Configuration ---

SUPPORTED_CURRENCIES: List[str] = [
    c.strip().upper()
    for c in os.getenv("SUPPORTED_CURRENCIES", "USD,EUR,GBP").split(",")
    if c.strip()
]
DEFAULT_CURRENCY: str = "USD"

# --- Video Upload Configuration ---

MAX_VIDEO_SIZE = int(os.getenv("MAX_VIDEO_SIZE_MB", "100")) * 1024 * 1024
ALLOWED_VIDEO_EXTENSIONS = [".mp4", ".mov", ".m4v", ".avi", ".webm", ".mkv", ".3gp"]
