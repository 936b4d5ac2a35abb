"""
Logging configuration for the PROV OAI-PMH harvester

- Optional machine-readable JSON lines for log analysis
- Contextual fields (page index, URL, record counts) on harvest events
- Quiet third-party loggers
"""

import logging
import json
import sys
import os
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per log record"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        # Custom context fields
        for key, value in record.__dict__.items():
            if key.startswith('ctx_'):
                log_entry[key[4:]] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds contextual information to log records

    Allows adding run-specific context like the base URL or replay directory.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add context to log record"""
        extra = kwargs.get('extra', {})

        for key, value in self.extra.items():
            extra[f'ctx_{key}'] = value

        kwargs['extra'] = extra
        return msg, kwargs


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_json: bool = False
) -> None:
    """
    Setup logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None = no file logging)
        enable_console: Whether to log to stderr
        enable_json: Whether to use JSON formatting
    """

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    if enable_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # stdout is left to the CLI's own output
    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    configure_application_loggers()


def configure_application_loggers():
    """Reduce noise from HTTP libraries"""

    external_loggers = {
        'requests': logging.WARNING,
        'urllib3': logging.WARNING,
        'charset_normalizer': logging.WARNING
    }

    for logger_name, level in external_loggers.items():
        logging.getLogger(logger_name).setLevel(level)


def get_contextual_logger(name: str, **context) -> ContextAdapter:
    """
    Get a logger with contextual information

    Example:
        logger = get_contextual_logger('oai.harvester', source='replay')
        logger.info("Harvest started")
    """
    return ContextAdapter(logging.getLogger(name), context)


def log_api_request(
    logger: logging.Logger,
    method: str,
    url: str,
    status_code: int,
    response_time: float,
    response_size: Optional[int] = None,
    error: Optional[str] = None
) -> None:
    """
    Log one HTTP request with standardized fields

    Args:
        logger: Logger instance
        method: HTTP method
        url: Request URL
        status_code: HTTP status code (0 when no response was received)
        response_time: Response time in seconds
        response_size: Body size in bytes
        error: Error message if request failed
    """

    log_data = {
        'extra': {
            'ctx_api_method': method,
            'ctx_api_url': url,
            'ctx_api_status': status_code,
            'ctx_api_response_time': response_time,
            'ctx_api_success': 200 <= status_code < 300
        }
    }

    if response_size is not None:
        log_data['extra']['ctx_api_response_size'] = response_size

    if error:
        log_data['extra']['ctx_api_error'] = error

    if 200 <= status_code < 300:
        message = f"Response received: {method} {url} ({response_time:.2f}s)"
        if response_size is not None:
            message += f" Size: {response_size} bytes"
        logger.info(message, **log_data)
    else:
        message = f"Request failed: {method} {url} [{status_code}]"
        if error:
            message += f" - {error}"
        logger.error(message, **log_data)


def log_harvest_progress(
    logger: logging.Logger,
    page: int,
    page_records: int,
    total_records: int,
    resumption_token: Optional[str] = None
) -> None:
    """
    Log per-page harvest progress

    Args:
        logger: Logger instance
        page: 1-based page index
        page_records: Records on this page
        total_records: Records harvested so far
        resumption_token: Token for the next page, if any
    """

    log_data = {
        'extra': {
            'ctx_harvest_page': page,
            'ctx_harvest_page_records': page_records,
            'ctx_harvest_total_records': total_records,
            'ctx_harvest_has_token': bool(resumption_token)
        }
    }

    message = f"Processed request {page}: {page_records}/{total_records} processed records"
    logger.info(message, **log_data)


def init_from_environment():
    """Initialize logging configuration from environment variables"""

    log_level = os.getenv('LOG_LEVEL', 'INFO')
    log_file = os.getenv('LOG_FILE', './logs/prov-oai.log') or None
    enable_json = os.getenv('LOG_FORMAT', 'text').lower() == 'json'

    setup_logging(
        log_level=log_level,
        log_file=log_file,
        enable_console=True,
        enable_json=enable_json
    )
