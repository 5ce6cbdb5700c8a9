#!/usr/bin/env python3
"""
Health Dashboard Configuration & Logging Module
===============================================
Centralized configuration, structured logging, and error handling.
"""

import os
import sys
import json
import logging
import uuid
import time
import functools
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
import threading

# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================
DEFAULT_MAX_UPLOAD_MB = 10          # Default max upload size in megabytes
MAX_SAFE_UPLOAD_MB = 500            # Maximum safe upload limit in megabytes
DEFAULT_NEUTRAL_SCORE = 75          # Category score used when nothing is determinable
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB max per log file
LOG_BACKUP_COUNT = 5                # Number of log backup files to keep

DEFAULT_MAX_UPLOAD_BYTES = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
MAX_SAFE_UPLOAD_BYTES = MAX_SAFE_UPLOAD_MB * 1024 * 1024

ALLOWED_EXTENSIONS = ('.adoc', '.asciidoc')

__version__ = '1.0.0'
VERSION = __version__
APP_NAME = "HealthDashboard"

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================

@dataclass
class AppConfig:
    """Application configuration with secure defaults."""

    # Server settings
    host: str = "127.0.0.1"  # Localhost only by default
    port: int = 8080
    debug: bool = False

    # Uploads
    max_content_length: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_extensions: tuple = ALLOWED_EXTENSIONS

    # Paths
    base_dir: Path = field(default_factory=lambda: Path(__file__).parent)
    static_dir: Path = field(default_factory=lambda: Path(__file__).parent / 'static')
    log_dir: Path = field(default_factory=lambda: Path(__file__).parent / 'logs')

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # Options: json, text
    log_to_file: bool = False
    log_to_console: bool = True

    # Scoring
    neutral_category_score: int = DEFAULT_NEUTRAL_SCORE

    def __post_init__(self):
        """Normalize paths and apply environment overrides."""
        self.static_dir = Path(self.static_dir)
        self.log_dir = Path(self.log_dir)

        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        # Force debug=False in production environment
        if os.environ.get('OHD_ENV', 'development').lower() == 'production':
            self.debug = False
            self.log_level = "WARNING"

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent
        return cls(
            host=os.environ.get('OHD_HOST', '127.0.0.1'),
            port=int(os.environ.get('OHD_PORT', '8080')),
            debug=os.environ.get('OHD_DEBUG', 'false').lower() == 'true',
            max_content_length=int(os.environ.get('OHD_MAX_UPLOAD', str(DEFAULT_MAX_UPLOAD_BYTES))),
            static_dir=Path(os.environ.get('OHD_STATIC_DIR', str(base_dir / 'static'))),
            log_dir=Path(os.environ.get('OHD_LOG_DIR', str(base_dir / 'logs'))),
            log_level=os.environ.get('OHD_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('OHD_LOG_FORMAT', 'json'),
            log_to_file=os.environ.get('OHD_LOG_TO_FILE', 'false').lower() == 'true',
            neutral_category_score=int(os.environ.get('OHD_NEUTRAL_SCORE', str(DEFAULT_NEUTRAL_SCORE))),
        )

    def validate(self) -> tuple:
        """Validate configuration and return (is_valid, errors)."""
        errors = []

        if self.debug and os.environ.get('OHD_ENV') == 'production':
            errors.append("Debug mode cannot be enabled in production")

        if self.max_content_length > MAX_SAFE_UPLOAD_BYTES:
            errors.append(f"Max content length exceeds safe limit ({MAX_SAFE_UPLOAD_MB}MB)")

        if self.log_format not in ('json', 'text'):
            errors.append(f"Invalid log_format: {self.log_format}. Must be 'json' or 'text'")

        if not 0 <= self.neutral_category_score <= 100:
            errors.append("Neutral category score must be between 0 and 100")

        return (len(errors) == 0, errors)


# Global config instance
_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Get or create the global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config():
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

class StructuredLogger:
    """Thread-safe structured JSON logger with correlation IDs."""

    _local = threading.local()

    def __init__(self, name: str, config: Optional[AppConfig] = None):
        self.name = name
        self.config = config or get_config()
        self._setup_logger()

    def _setup_logger(self):
        """Configure the underlying Python logger."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(getattr(logging, self.config.log_level.upper(), logging.INFO))
        self.logger.handlers.clear()

        if self.config.log_format == 'json':
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
            )

        if self.config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # File handler with rotation
        if self.config.log_to_file:
            from logging.handlers import RotatingFileHandler
            log_file = self.config.log_dir / f"{self.name.lower()}.log"
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def set_correlation_id(cls, correlation_id: str):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> str:
        """Get correlation ID for current thread."""
        return getattr(cls._local, 'correlation_id', None) or str(uuid.uuid4())[:8]

    @classmethod
    def new_correlation_id(cls) -> str:
        """Generate and set a new correlation ID."""
        correlation_id = str(uuid.uuid4())[:12]
        cls.set_correlation_id(correlation_id)
        return correlation_id

    def _build_log_record(self, level: str, message: str, **kwargs) -> Dict[str, Any]:
        """Build a structured log record."""
        return {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level,
            'logger': self.name,
            'correlation_id': self.get_correlation_id(),
            'message': message,
            **kwargs
        }

    def _emit(self, level: str, message: str, exc_info: bool = False, **kwargs):
        record = self._build_log_record(level, message, **kwargs)
        if exc_info:
            import traceback
            record['traceback'] = traceback.format_exc()
        text = json.dumps(record, default=str) if self.config.log_format == 'json' else message
        self.logger.log(getattr(logging, level), text, exc_info=exc_info)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._emit('DEBUG', message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._emit('INFO', message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._emit('WARNING', message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log error message with optional exception info."""
        self._emit('ERROR', message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.error(message, exc_info=True, **kwargs)

    @contextmanager
    def log_operation(self, operation: str, **context):
        """Context manager for logging operation start/end with timing."""
        start_time = time.time()
        self.debug(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
            duration_ms = (time.time() - start_time) * 1000
            self.info(f"{operation} completed", operation=operation, status='completed',
                      duration_ms=round(duration_ms, 2), **context)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), exc_info=True, **context)
            raise


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        # StructuredLogger already serialized the record
        if message.startswith('{'):
            return message

        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': message,
        }
        if record.exc_info:
            log_data['traceback'] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, get_config())


# =============================================================================
# ERROR HANDLING UTILITIES
# =============================================================================

class DashboardError(Exception):
    """Base exception for the health dashboard."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 status_code: int = 500, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response dict."""
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class ValidationError(DashboardError):
    """Input validation error."""
    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400,
                         details={'field': field, **kwargs})


class FileError(DashboardError):
    """File handling error."""
    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        super().__init__(message, code="FILE_ERROR", status_code=400,
                         details={'filename': filename, **kwargs})


class InputAccessError(FileError):
    """The report document could not be read."""
    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        super().__init__(message, filename=filename, **kwargs)
        self.code = "INPUT_ACCESS_ERROR"


class ProcessingError(DashboardError):
    """Report processing error."""
    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        super().__init__(message, code="PROCESSING_ERROR", status_code=500,
                         details={'stage': stage, **kwargs})


def handle_errors(logger: Optional[StructuredLogger] = None):
    """Decorator for standardized error handling."""
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            try:
                return func(*args, **kwargs)
            except DashboardError:
                raise
            except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
                _logger.error(f"Cannot access input: {e}")
                raise InputAccessError(f"Cannot access input: {e}",
                                       filename=getattr(e, 'filename', None)) from e
            except OSError as e:
                _logger.error(f"Error reading input: {e}", exc_info=True)
                raise InputAccessError(f"Error reading input: {e}",
                                       filename=getattr(e, 'filename', None)) from e
            except ValueError as e:
                _logger.error(f"Validation error: {e}", exc_info=True)
                raise ValidationError(str(e)) from e
            except Exception as e:
                _logger.exception(f"Unexpected error in {func.__name__}: {e}")
                raise ProcessingError(f"An unexpected error occurred: {type(e).__name__}") from e
        return wrapper
    return decorator


# =============================================================================
# FILE UTILITIES
# =============================================================================

def validate_file_extension(filename: str, allowed: tuple = ALLOWED_EXTENSIONS) -> bool:
    """Validate file extension."""
    return bool(filename) and filename.lower().endswith(allowed)
