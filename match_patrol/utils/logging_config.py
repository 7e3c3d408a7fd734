"""
Centralized Logging Configuration for the Match Patrol API
"""
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(request_id)-36s | %(name)s:%(lineno)d | %(message)s",
}

# level=None means LOG_LEVEL decides
ENVIRONMENT_PROFILES = {
    "production": {"level": None, "enable_file": True, "format_style": "detailed"},
    "development": {"level": "DEBUG", "enable_file": True, "format_style": "detailed"},
    "testing": {"level": "WARNING", "enable_file": False, "format_style": "simple"},
}

# Driver and HTTP client chatter stays out of DEBUG output
NOISY_LOGGERS = ("pymongo", "urllib3", "asyncio")

MAX_LOG_BYTES = 10 * 1024 * 1024


class RequestIdFilter(logging.Filter):
    """Guarantees every record has ``request_id`` for the detailed format"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def _rotating_handler(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filters": ["request_id"],
        "filename": str(filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
        "encoding": "utf8",
    }


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed"
) -> None:
    """
    Configure the root and uvicorn loggers

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (defaults to LOG_DIR or ./logs)
        enable_console: Log to stdout
        enable_file: Log to daily rotating files, plus a separate errors-only file
        format_style: Console format ('simple', 'detailed')
    """
    handlers: Dict[str, Any] = {}

    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style if format_style in FORMATS else "detailed",
            "filters": ["request_id"],
            "stream": "ext://sys.stdout",
        }

    log_path = Path(log_dir or os.getenv("LOG_DIR", "logs"))
    if enable_file:
        log_path.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_handler(log_path / f"match_patrol_{stamp}.log", level)
        handlers["error_file"] = _rotating_handler(log_path / f"match_patrol_errors_{stamp}.log", "ERROR")

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            name: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for name, fmt in FORMATS.items()
        },
        "handlers": handlers,
        "loggers": {
            "": {"level": level, "handlers": list(handlers), "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": [h for h in handlers if h != "error_file"],
                        "propagate": False},
            **{name: {"level": "WARNING"} for name in NOISY_LOGGERS},
        },
    }

    logging.config.dictConfig(config)

    logger = get_logger("logging")
    logger.info(f"Logging configured - Level: {level}, Console: {enable_console}, File: {enable_file}")
    if enable_file:
        logger.info(f"Log directory: {log_path.resolve()}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``match_patrol`` namespace, whatever ``name`` is passed"""
    if name.startswith("match_patrol"):
        return logging.getLogger(name)
    return logging.getLogger(f"match_patrol.{name}")


def configure_for_environment():
    """Configure logging from ENVIRONMENT and LOG_LEVEL"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    profile = ENVIRONMENT_PROFILES.get(environment)
    if profile is None:
        setup_logging(level=log_level)
        return

    setup_logging(
        level=profile["level"] or log_level,
        enable_file=profile["enable_file"],
        format_style=profile["format_style"],
    )


class PerformanceMonitor:
    """Times a block and logs it, as a warning when it exceeds ``threshold_ms``"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            self.logger.warning(f"{self.operation_name} raised {exc_type.__name__} after {self.elapsed_ms:.2f}ms")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
        return False
