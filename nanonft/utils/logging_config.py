"""
Logging setup for the NanoNFT service.

Console output is colored text or JSON depending on LOG_FORMAT; an optional
log file always receives JSON. Timings of Gemini, contract and Pinata calls
go through structlog as debug events.
"""

import logging
import os
import sys
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger import jsonlogger

JSON_FIELDS = '%(asctime)s %(name)s %(levelname)s %(message)s'
TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Mint context a caller can attach with `extra=`
MINT_CONTEXT_KEYS = ('owner', 'token_id', 'tx_hash')

QUIET_LOGGERS = ('httpx', 'httpcore', 'web3', 'google_genai')


class StructuredFormatter(jsonlogger.JsonFormatter):
    """JSON formatter tagging records with the service name and mint context."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record['service'] = 'nanonft'
        log_record.update(
            (key, getattr(record, key))
            for key in MINT_CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )


class ColoredFormatter(logging.Formatter):
    """Text formatter that colors the level name."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }

    def format(self, record):
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{self.COLORS.get(record.levelname, '')}{record.levelname}\033[0m"
        return super().format(colored)


def setup_logging(log_level: str = "INFO", log_format: str = "text", log_file: Optional[str] = None) -> None:
    """Configure the root logger and structlog for the service."""
    renderer = structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter(JSON_FIELDS) if log_format == "json" else ColoredFormatter(TEXT_FORMAT))
    handlers = [console]

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(JSON_FIELDS))
        handlers.append(file_handler)

    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO), handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class PerformanceLogger:
    """Debug-level timings for calls that leave the process."""

    def __init__(self):
        self.logger = structlog.get_logger("nanonft.performance")

    def log_generation(self, model: str, duration_ms: float, success: bool):
        self.logger.debug("gemini_generate", model=model, duration_ms=duration_ms, success=success)

    def log_contract_call(self, method: str, duration_ms: float, success: bool):
        self.logger.debug("contract_call", method=method, duration_ms=duration_ms, success=success)

    def log_upload(self, filename: str, size_bytes: int, duration_ms: float, success: bool):
        self.logger.debug(
            "pinata_upload", filename=filename, size_bytes=size_bytes, duration_ms=duration_ms, success=success
        )


performance_logger = PerformanceLogger()


def init_logging():
    """Initialize logging from application settings."""
    from nanonft.config import settings

    setup_logging(log_level=settings.log_level, log_format=settings.log_format, log_file=settings.log_file)
