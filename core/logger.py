import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path

from core.config import settings

LOGS_DIR = Path(settings.LOG_DIR)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


class ColoredFormatter(logging.Formatter):
    """Colored level names for terminal output"""

    COLORS = {
        'DEBUG': '\033[36m',  # cyan
        'INFO': '\033[32m',  # green
        'WARNING': '\033[33m',  # yellow
        'ERROR': '\033[31m',  # red
        'CRITICAL': '\033[35m',  # magenta
        'RESET': '\033[0m'  # reset
    }

    def format(self, record):
        # copy so the file handler never sees escape codes
        record = logging.makeLogRecord(record.__dict__)
        log_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{log_color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logger(
        name: str,
        log_file: str = None,
        level: int = None,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
) -> logging.Logger:
    """
    Configure a logger writing to the console and, optionally, a rotating file.

    Args:
        name: logger name
        log_file: file name under LOGS_DIR (console only when None)
        level: log level, defaults to settings.LOG_LEVEL
        max_bytes: size at which the file is rotated
        backup_count: number of rotated files to keep
    """
    if level is None:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)

    logger.handlers.clear()

    log_format = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_formatter = ColoredFormatter(log_format, datefmt=date_format)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_path = LOGS_DIR / log_file
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(log_format, datefmt=date_format)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


class DatabaseLogger:
    """Logs record-level mutations made by the services"""

    def __init__(self, logger_name: str = "database"):
        self.logger = setup_logger(
            name=logger_name,
            log_file=f"{logger_name}.log"
        )

    def log_create(self, model_name: str, data: dict):
        self.logger.info(
            f"CREATE {model_name}:\n{json.dumps(data, ensure_ascii=False, indent=2, default=str)}"
        )

    def log_update(self, model_name: str, record_id: int, changes: dict):
        self.logger.info(
            f"UPDATE {model_name} (id={record_id}):\n{json.dumps(changes, ensure_ascii=False, indent=2, default=str)}"
        )

    def log_delete(self, model_name: str, record_id: int):
        self.logger.warning(f"DELETE {model_name} (id={record_id})")

    def log_error(self, operation: str, error: Exception):
        self.logger.error(
            f"DB ERROR in {operation}:\n"
            f"Error Type: {type(error).__name__}\n"
            f"Error Message: {str(error)}\n"
            f"Traceback:\n{traceback.format_exc()}"
        )


class IntegrationLogger:
    """Logs outbound calls to weather, geocoding and AI providers"""

    def __init__(self, logger_name: str = "integrations"):
        self.logger = setup_logger(
            name=logger_name,
            log_file=f"{logger_name}.log"
        )

    def log_request(self, provider: str, action: str, params: dict = None):
        msg = f"REQUEST {provider}.{action}"
        if params:
            msg += f"\nPARAMS: {json.dumps(params, ensure_ascii=False, default=str)}"
        self.logger.debug(msg)

    def log_error(self, provider: str, error: Exception):
        self.logger.error(
            f"{provider} ERROR:\n"
            f"Error Type: {type(error).__name__}\n"
            f"Error Message: {str(error)}\n"
            f"Traceback:\n{traceback.format_exc()}"
        )


db_logger = DatabaseLogger()
integration_logger = IntegrationLogger()
app_logger = setup_logger("app", "app.log")
