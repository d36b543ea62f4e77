"""
core/logging.py

Centralized logging configuration for the application.
- Uses RotatingFileHandler for file logs (1MB max, 5 backups)
- Logs to both console and <LOG_DIR>/app.log
- Separate <LOG_DIR>/error.log for ERROR and above
- Colored console logs through colorlog
- Log level controlled via environment variable (LOG_LEVEL)

Should be initialized once early in app startup (e.g., in main.py)
"""

from logging.config import dictConfig
from typing import Any

from sosauto.core.config import settings


def build_logging_config() -> dict[str, Any]:
    """Builds the dictConfig mapping, creating the log directory on the way."""
    log_dir = settings.log_path
    log_dir.mkdir(parents=True, exist_ok=True)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "[%(asctime)s] %(levelname)s [%(name)s] in %(module)s: %(message)s",
            },
            "color": {
                "()": "colorlog.ColoredFormatter",
                "format": "%(log_color)s[%(asctime)s] %(levelname)s [%(name)s] in %(module)s: %(message)s",
                "log_colors": {
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "bold_red",
                },
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "color",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_dir / "app.log"),
                "maxBytes": 1 * 1024 * 1024,  # 1MB
                "backupCount": 5,
                "formatter": "default",
                "encoding": "utf-8",
            },
            "error_file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / "error.log"),
                "level": "ERROR",
                "formatter": "default",
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "uvicorn": {"level": "WARNING"},
            "sqlalchemy": {"level": "WARNING"},
            "aiosqlite": {"level": "WARNING"},
        },
        "root": {
            "level": settings.LOG_LEVEL.upper(),
            "handlers": ["console", "file", "error_file"],
        },
    }


def init_logging() -> None:
    """Initializes logging using the application logging config."""
    dictConfig(build_logging_config())
