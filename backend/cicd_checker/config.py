"""
Application configuration using environment variables.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Load .env file
load_dotenv()

@dataclass
class Settings:
    """Application settings."""
    APP_NAME: str = "CI/CD Maturity Checker"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # GitHub API
    GITHUB_TOKEN: Optional[str] = os.getenv("GITHUB_TOKEN") or None
    GITHUB_API_BASE: str = os.getenv("GITHUB_API_BASE", "https://api.github.com")

    # HTTP client settings
    HTTP_TIMEOUT: int = int(os.getenv("HTTP_TIMEOUT", "15"))
    HTTP_MAX_RETRIES: int = int(os.getenv("HTTP_MAX_RETRIES", "2"))
    RATE_LIMIT_MAX_WAIT: int = int(os.getenv("RATE_LIMIT_MAX_WAIT", "10"))  # Cap on Retry-After sleeps

    # Check engine
    CHECK_TIMEOUT: float = float(os.getenv("CHECK_TIMEOUT", "20"))
    MAX_CONCURRENT_CHECKS: int = int(os.getenv("MAX_CONCURRENT_CHECKS", "8"))
    COMMIT_SAMPLE_SIZE: int = int(os.getenv("COMMIT_SAMPLE_SIZE", "20"))

    # Rate-limit circuit breaker
    CIRCUIT_FAILURE_THRESHOLD: int = int(os.getenv("CIRCUIT_FAILURE_THRESHOLD", "5"))
    CIRCUIT_COOLDOWN_SECONDS: int = int(os.getenv("CIRCUIT_COOLDOWN_SECONDS", "60"))

    # CORS
    CORS_ORIGINS: List[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
            if origin.strip()
        ]
    )

settings = Settings()
