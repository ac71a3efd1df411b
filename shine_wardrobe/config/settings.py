"""
Settings Module (v1.2.0)
Centralized configuration from environment variables.
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings from environment variables."""

    # Runtime
    environment: str = "production"
    cors_origin: str = "http://localhost:3000"

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "shine_wardrobe"

    # Auth
    jwt_secret: str = "fallback-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 10

    # Weather
    weather_api_key: Optional[str] = None
    weather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            environment=os.getenv("SHINE_ENV", "production").lower(),
            cors_origin=os.getenv("CORS_ORIGIN", "http://localhost:3000"),

            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            mongo_db_name=os.getenv("MONGO_DB_NAME", "shine_wardrobe"),

            jwt_secret=os.getenv("JWT_SECRET", "fallback-secret-key"),
            jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 7))),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),

            weather_api_key=os.getenv("WEATHER_API_KEY") or None,
            weather_base_url=os.getenv("WEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"),
            weather_timeout=float(os.getenv("WEATHER_TIMEOUT", "10")),
        )

    def is_development(self) -> bool:
        return self.environment == "development"

    def has_weather(self) -> bool:
        """Check if the weather provider key is configured."""
        return bool(self.weather_api_key)

    def to_dict(self) -> dict:
        """Export settings as dict (without sensitive keys)."""
        return {
            "environment": self.environment,
            "cors_origin": self.cors_origin,
            "mongo_db_name": self.mongo_db_name,
            "jwt_expire_minutes": self.jwt_expire_minutes,
            "weather_configured": self.has_weather(),
            "weather_timeout": self.weather_timeout,
        }


def get_settings() -> Settings:
    """Get application settings (cached singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(f"Settings loaded: {_settings.to_dict()}")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings.from_env()
    logger.info(f"Settings reloaded: {_settings.to_dict()}")
    return _settings


# Singleton instance
_settings: Optional[Settings] = None
