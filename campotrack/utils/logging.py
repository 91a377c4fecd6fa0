# utils/logging.py
import logging
import os
import sys
from typing import Any

from loguru import logger


class InterceptHandler(logging.Handler):
    """
    Redirige los logs de logging estándar a loguru.
    """
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        # sube en la pila hasta salir de logging/__init__.py
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(
            depth=depth,
            exception=record.exc_info,
        ).log(level, record.getMessage())


def setup_logging(
    *,
    level: str = "INFO",
    json_logs: bool = False,
    log_file: bool = False,
    log_dir: str = "logs",
) -> None:
    """
    Config global:
    - Intercepta logging estándar (uvicorn, fastapi, sqlalchemy)
    - Consola: desde `level`
    - Ficheros opcionales:
        - app_YYYY-MM-DD.log   → hasta WARNING
        - error_YYYY-MM-DD.log → ERROR y superiores
    """
    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False

    logger.remove()

    if json_logs:
        sink_options = {"serialize": True}
        fmt = "{message}"
    else:
        sink_options = {}
        fmt = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level> {extra}"
        )

    logger.add(sys.stdout, format=fmt, level=level, backtrace=True, diagnose=False, **sink_options)

    if log_file:
        os.makedirs(log_dir, exist_ok=True)

        logger.add(
            os.path.join(log_dir, "app_{time:YYYY-MM-DD}.log"),
            format=fmt,
            level=level,
            filter=lambda record: record["level"].no < 40,  # < ERROR (40)
            rotation="00:00",
            retention="7 days",
            compression="zip",
            enqueue=True,
            **sink_options,
        )
        logger.add(
            os.path.join(log_dir, "error_{time:YYYY-MM-DD}.log"),
            format=fmt,
            level="ERROR",
            rotation="00:00",
            retention="30 days",
            compression="zip",
            enqueue=True,
            **sink_options,
        )


def get_logger(**binds: Any):
    """
    Helper para obtener un logger con contexto extra.
    Ej: logger = get_logger(module="lifecycle_service")
    """
    return logger.bind(**binds)
