import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER_NAME = "studyhub"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(funcName)-18s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# PUBLIC_INTERFACE
def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the package logger with a console handler and, when log_file is
    given, a rotating file handler. Safe to call more than once; previous
    handlers are replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug("Logging configured | level=%s | file=%s", log_level, log_file or "-")
    return logger


def log_request_start(method: str, path: str, client_ip: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Log the start of a request and return the context needed to log its end."""
    endpoint = f"{method} {path}"
    logging.getLogger(LOGGER_NAME).info(
        "REQUEST START | %s | User: %s | IP: %s", endpoint, user_id or "anonymous", client_ip
    )
    return {"endpoint": endpoint, "user_id": user_id or "anonymous"}


def log_request_end(request_info: Dict[str, Any], duration_ms: float, status_code: int) -> None:
    """Log the end of a request with its duration and status."""
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.INFO if status_code < 500 else logging.ERROR
    logger.log(
        level,
        "REQUEST END | %s | User: %s | Duration: %.2fms | Status: %d",
        request_info["endpoint"],
        request_info["user_id"],
        duration_ms,
        status_code,
    )


def log_error(error: Exception, endpoint: str, user_id: Optional[str] = None) -> None:
    """Log an unexpected error with traceback."""
    logging.getLogger(LOGGER_NAME).error(
        "ERROR | %s | %s: %s | User: %s",
        endpoint,
        type(error).__name__,
        error,
        user_id or "anonymous",
        exc_info=error,
    )
