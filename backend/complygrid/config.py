"""
ComplyGrid Application Configuration
Security settings and environment configuration
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "ComplyGrid"
    app_version: str = "1.0.0"
    debug: bool = False

    # Security
    secret_key: str
    algorithm: str = "RS256"
    access_token_expire_minutes: int = 30
    jwt_keys_dir: str = "/app/security/keys"

    # Database
    database_url: str
    database_ssl_mode: Optional[str] = None
    database_pool_size: int = 10
    database_max_overflow: int = 20

    # Redis cache
    redis_url: str = "redis://localhost:6379"
    redis_db: int = 0

    # Gap analysis
    gap_analysis_cache_ttl: int = 300  # 5 minutes
    gap_analysis_max_frameworks: int = 10
    sankey_min_frameworks: int = 2
    sankey_max_frameworks: int = 6

    # Supply chain
    supply_chain_propagation_factor: float = Field(default=0.7, gt=0, le=1)

    # Peer benchmarking
    benchmark_salt: str = "benchmark-salt-2026"  # pragma: allowlist secret
    benchmark_min_sample_size: int = 10

    # Allowed hosts for CORS
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Logging
    log_level: str = "INFO"

    @validator("secret_key")
    def secret_key_must_be_strong(cls, v):
        if len(v) < 32:
            raise ValueError("Secret key must be at least 32 characters long")
        return v

    @validator("allowed_origins")
    def validate_origins(cls, v):
        for origin in v:
            if not origin.startswith(("https://", "http://localhost")):
                raise ValueError("All origins must use HTTPS (except localhost)")
        return v

    class Config:
        env_file = ".env"
        env_prefix = "COMPLYGRID_"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()


# Security middleware configuration
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'; object-src 'none'",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}
