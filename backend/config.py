# Environment configuration
import logging
import os

from dotenv import load_dotenv

load_dotenv()  # Load .env so DEMO_MODE=true works for local reviewers


class Config:
    """Application configuration read from the environment."""

    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    SEED_ON_STARTUP: bool = os.getenv("SEED_ON_STARTUP", "true").lower() == "true"

    @staticmethod
    def is_demo_mode() -> bool:
        """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive). Read per call."""
        return os.environ.get("DEMO_MODE", "").lower() == "true"

    @classmethod
    def allowed_origins(cls) -> list:
        origins = [
            "http://localhost:3000",
            "http://localhost:5173",
        ]
        if cls.FRONTEND_URL:
            origins.append(cls.FRONTEND_URL)
        return origins


config = Config()


def configure_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, level or config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
