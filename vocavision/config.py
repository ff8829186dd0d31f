import os
import logging

from dotenv import load_dotenv

# Environment variables (.env is optional)
load_dotenv()

logger = logging.getLogger(__name__)


def _split(value):
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings:
    def __init__(self):
        self.DATABASE_URL = os.getenv("DATABASE_URL")
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL not set in environment variables")

        self.JWT_SECRET = os.getenv("JWT_SECRET")
        if not self.JWT_SECRET:
            raise ValueError("JWT_SECRET not set in environment variables")
        self.JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
        self.BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

        self.CORS_ORIGINS = _split(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
        self.ADMIN_EMAILS = [e.lower() for e in _split(os.getenv("ADMIN_EMAILS", "admin@vocavision.ai"))]
        self.TRIAL_DAYS = int(os.getenv("TRIAL_DAYS", "7"))

        # AI content generation
        self.ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
        self.ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")

        # Image generation / hosting
        self.STABILITY_API_KEY = os.getenv("STABILITY_API_KEY", "")
        self.CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME", "")
        self.CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY", "")
        self.CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET", "")

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)

    def warn_missing(self):
        """Logs the optional integrations that are switched off."""
        if not self.ANTHROPIC_API_KEY:
            logger.warning("ANTHROPIC_API_KEY not set - content generation disabled")
        if not self.STABILITY_API_KEY:
            logger.warning("STABILITY_API_KEY not set - image generation disabled")
        if not self.cloudinary_configured:
            logger.warning("Cloudinary credentials not set - image upload disabled")


_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
