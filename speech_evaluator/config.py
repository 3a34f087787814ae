"""Settings + logging for the speech evaluation engine."""

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load .env file from package directory
PACKAGE_DIR = Path(__file__).resolve().parent
load_dotenv(dotenv_path=PACKAGE_DIR / ".env")


class Settings(BaseSettings):
    """Essential settings for the evaluation engine and logging."""

    # Environment + logging
    log_level: str = "INFO"
    # Entry points that own the process set this to install the structlog setup
    configure_logging: bool = False

    # Model configuration
    evaluation_model: str = "gpt-4o"
    evaluation_temperature: float = 0.7
    embedding_model: str = "text-embedding-3-small"

    # Falls back to the SDK's own OPENAI_API_KEY lookup when empty
    openai_api_key: str | None = None

    model_config = {"env_prefix": "SPEECH_EVALUATOR_"}


settings = Settings()


def configure_structlog() -> None:
    """Simple logging setup."""
    import logging
    import sys

    import structlog

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        stream=sys.stdout,
        format="%(message)s",
    )

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
