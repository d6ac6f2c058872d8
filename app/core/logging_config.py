# app/core/logging_config.py

from logging.config import dictConfig

from app.core.config import settings


def build_logging_config(level: str) -> dict:
    """
    Конфигурация логов сервиса баллов. Уровень для `app.*` задается LOG_LEVEL;
    сгорание баллов и обмены пишутся в отдельный логгер задач, чтобы их
    можно было поднять до DEBUG, не включая DEBUG для всего API.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn.access": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "app": {"handlers": ["console"], "level": level, "propagate": False},
            "app.services.points_expiration": {"level": settings.JOBS_LOG_LEVEL},
            # SQL и внутренние события планировщика нужны только при отладке
            "sqlalchemy.engine": {"level": "WARNING"},
            "apscheduler": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
    }


def setup_logging():
    """Применяет конфигурацию логирования."""
    dictConfig(build_logging_config(settings.LOG_LEVEL))
