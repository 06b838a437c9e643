"""Configuration module for the TaskMaster API.

This module provides centralized configuration management: database and cache
connections, token signing, rate limiting, CORS and logging settings.
All configuration values can be overridden via environment variables.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "5000"))

# Every REST route lives under this versioned prefix
API_PREFIX: str = "/api/v1"

API_TITLE: str = "TaskMaster API"
API_VERSION: str = "1.0.0"

# CORS allowed origins (comma-separated list, "*" allows any origin)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Database Configuration ---

# Required. The process exits at startup when this is missing.
DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")

# --- Cache Configuration ---

# An empty REDIS_URL disables response caching entirely
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "60"))

# How long the cache stays bypassed after a backend failure
CACHE_RETRY_SECONDS: float = float(os.getenv("CACHE_RETRY_SECONDS", "3"))

# Socket timeout for every Redis call, keeps a dead cache from stalling requests
CACHE_SOCKET_TIMEOUT: float = float(os.getenv("CACHE_SOCKET_TIMEOUT", "0.5"))

# --- Authentication Configuration ---

DEFAULT_JWT_SECRET_KEY = "your-secret-key-change-in-production"
JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET_KEY)
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Bcrypt cost factor (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

# --- Rate Limiting Configuration ---

RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# When set, logs are also written to <LOG_DIR>/taskmaster.log
LOG_DIR: str = os.getenv("LOG_DIR", "")

# --- Client Configuration ---

# Fixed timeout (seconds) for every call made by the API client
CLIENT_TIMEOUT_SECONDS: float = 10.0
CLIENT_BASE_URL: str = os.getenv("TASKMASTER_API_URL", f"http://localhost:{API_PORT}{API_PREFIX}")
