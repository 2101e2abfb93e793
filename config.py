"""Configuration management with environment variable support."""

import logging
import os
import secrets
from dataclasses import dataclass, field

from solitaire.rules import RuleSet


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_max_redeals() -> int | None:
    """Parse SOLITAIRE_MAX_REDEALS; empty or 'none' means unlimited."""
    value = os.getenv("SOLITAIRE_MAX_REDEALS", "").strip().lower()
    if value in ("", "none", "unlimited"):
        return None
    return int(value)


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    def configure(self, level: str | None = None) -> None:
        """Configure the root logger, optionally overriding the level."""
        logging.basicConfig(level=level or self.level, format=self.format)


@dataclass(frozen=True)
class GameConfig:
    """Default game configuration."""

    draw_count: int = field(
        default_factory=lambda: int(os.getenv("SOLITAIRE_DRAW_COUNT", "1"))
    )
    max_redeals: int | None = field(default_factory=_parse_max_redeals)
    allow_foundation_to_tableau: bool = field(
        default_factory=lambda: os.getenv("SOLITAIRE_FOUNDATION_TO_TABLEAU", "true").lower()
        == "true"
    )

    def to_rules(self, draw_count: int | None = None) -> RuleSet:
        """
        Build the engine rule set.

        Args:
            draw_count: Overrides the configured draw count when given

        Raises:
            ValueError: If the configured values are not a valid rule set
        """
        return RuleSet(
            draw_count=draw_count or self.draw_count,
            max_redeals=self.max_redeals,
            allow_foundation_to_tableau=self.allow_foundation_to_tableau,
        )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds
    max_sessions: int = 1000

    game: GameConfig = field(default_factory=GameConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
