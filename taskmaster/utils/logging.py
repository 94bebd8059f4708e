"""Structured logging configuration for the TaskMaster application."""

import logging
import logging.handlers
import sys
import time

from ..config import Settings


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with colors for console output."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(settings: Settings) -> None:
    """Setup structured logging for the application.

    Args:
        settings: Application settings containing logging configuration
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = settings.log_file or log_dir / "app.log"

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    # File handler for all logs
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(file_handler)

    # Error file handler for errors and above
    error_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / "error.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(error_handler)

    configure_module_loggers(settings)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {settings.log_level.upper()}")
    logger.info(f"Log files will be written to: {log_dir.absolute()}")


def configure_module_loggers(settings: Settings) -> None:
    """Configure logging levels for specific modules.

    Args:
        settings: Application settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    app_loggers = [
        'taskmaster.main',
        'taskmaster.routes',
        'taskmaster.services',
        'taskmaster.storage',
        'taskmaster.engine',
    ]
    for logger_name in app_loggers:
        logging.getLogger(logger_name).setLevel(level)

    # Third-party library loggers (usually more verbose)
    third_party_loggers = {
        'uvicorn': logging.INFO,
        'uvicorn.access': logging.WARNING,
        'fastapi': logging.INFO,
        'httpx': logging.WARNING,
        'httpcore': logging.WARNING,
        'openai': logging.WARNING,
        'langchain': logging.INFO,
    }
    for logger_name, third_party_level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(third_party_level)

    # Suppress overly verbose loggers in production
    if settings.environment == "production":
        for logger_name in ['uvicorn.access', 'httpx', 'openai._base_client']:
            logging.getLogger(logger_name).setLevel(logging.ERROR)


def log_startup_info(settings: Settings) -> None:
    """Log application startup information.

    Args:
        settings: Application settings
    """
    logger = logging.getLogger("taskmaster.startup")

    logger.info("=" * 60)
    logger.info("TaskMaster Application Starting")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level.upper()}")
    logger.info(f"Storage Backend: {settings.storage_backend}")
    if settings.storage_backend == "local":
        logger.info(f"Tasks File: {settings.tasks_file}")
    elif settings.storage_backend == "remote":
        logger.info(f"Remote Store: {settings.remote_base_url}")
    if settings.openai_api_key:
        logger.info(f"Description Suggestions: {settings.model_name}")
    else:
        logger.info("Description Suggestions: Not configured")
    logger.info("=" * 60)


class TimedOperation:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, logger_name: str = __name__):
        """Initialize timed operation.

        Args:
            operation_name: Name of the operation
            logger_name: Logger name to use
        """
        self.operation_name = operation_name
        self.logger = logging.getLogger(logger_name)
        self.start_time = None
        self.duration = None

    def __enter__(self):
        """Start timing."""
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting operation: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """End timing and log result."""
        self.duration = time.perf_counter() - self.start_time

        if exc_type is None:
            self.logger.debug(f"Operation completed: {self.operation_name} in {self.duration:.3f}s")
        else:
            self.logger.error(f"Operation failed: {self.operation_name} after {self.duration:.3f}s")


__all__ = [
    'setup_logging',
    'configure_module_loggers',
    'log_startup_info',
    'TimedOperation',
]
