"""
Session Logging System
======================
Structured logging for the clip/caption generation pipeline.

This module provides:
- Structured JSON logging for machine-parseable outputs
- Channel loggers for generation decisions and response repairs
- Log file organization by channel and session

Usage:
    from clipstudio.logging_config import get_studio_logger, log_generation_decision

    logger = get_studio_logger("generation")
    logger.info("Sampled frames", extra={"frame_count": 9})

    log_generation_decision("clips", source="fallback", reason="no api key")
"""

import sys
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Union

from .config import get_config


# Attributes every LogRecord carries; anything else came from extra={}
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno',
    'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info',
    'exc_info', 'exc_text', 'thread', 'threadName',
    'taskName', 'message', 'context',
))


# =============================================================================
# CUSTOM FORMATTERS
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON objects with consistent structure:
    {
        "timestamp": "2024-01-15T10:30:00.123456",
        "level": "INFO",
        "logger": "studio.generation",
        "message": "Applied 3 clips",
        "context": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, 'context') and record.context:
            log_data['context'] = record.context

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Format: [LEVEL] logger: message (key=value, ...)
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        msg = f"[{level}] {record.name}: {record.getMessage()}"

        extras = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, (str, int, float, bool)):
                extras.append(f"{key}={value}")
            elif isinstance(value, dict) and len(value) < 3:
                extras.append(f"{key}={value}")

        if extras:
            msg += f" ({', '.join(extras)})"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# =============================================================================
# LOGGER FACTORY
# =============================================================================

_loggers: Dict[str, logging.Logger] = {}
_initialized: bool = False


def _setup_root_logger():
    """Configure the root logger with console handler."""
    global _initialized
    if _initialized:
        return

    config = get_config()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.logging.log_level, logging.INFO))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    _initialized = True


def get_studio_logger(
    name: str,
    log_to_file: bool = True,
    session_name: Optional[str] = None
) -> logging.Logger:
    """
    Get or create a channel logger.

    Args:
        name: Channel name (e.g., "generation", "repairs", "playback")
        log_to_file: Whether to write JSON lines to logs/<name>/
        session_name: Optional session name for file organization

    Returns:
        Configured logger instance
    """
    _setup_root_logger()

    full_name = f"studio.{name}"

    if full_name in _loggers:
        return _loggers[full_name]

    config = get_config()
    logger = logging.getLogger(full_name)
    logger.setLevel(getattr(logging, config.logging.log_level, logging.INFO))
    logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(console_handler)

    if log_to_file:
        log_file = get_session_log_path(session_name or config.logging.session_name, name)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    _loggers[full_name] = logger
    return logger


def get_decision_logger() -> logging.Logger:
    """Get a logger for generation decisions (collaborator vs fallback)."""
    return get_studio_logger("decisions")


def get_repair_logger() -> logging.Logger:
    """Get a logger for response repairs."""
    return get_studio_logger("repairs")


# =============================================================================
# CONVENIENCE LOGGING FUNCTIONS
# =============================================================================

def log_generation_decision(
    collection: str,
    source: str,
    count: int = 0,
    reason: Optional[str] = None,
    applied: Optional[bool] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log where a generated collection came from and whether it was kept.

    Args:
        collection: "clips" or "captions"
        source: "gemini" or "fallback"
        count: Number of entities produced
        reason: Why the fallback was used, or why a result was discarded
        applied: Whether the session accepted the result (None if not yet known)
        logger: Optional logger override
    """
    config = get_config()
    if not config.logging.log_decisions:
        return

    log = logger or get_decision_logger()
    extra: Dict[str, Any] = {
        'collection': collection,
        'source': source,
        'count': count,
    }
    if reason:
        extra['reason'] = reason
    if applied is not None:
        extra['applied'] = applied

    log.info(f"Decision: {collection} from {source}", extra=extra)


def log_repair(
    entity: str,
    index: int,
    action: str,
    details: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log a single repair applied to (or rejection of) a raw candidate.

    Args:
        entity: "clip" or "caption"
        index: Position of the candidate in the raw response
        action: "clamped_end", "dropped", "defaulted", ...
        details: Values before/after the repair
        logger: Optional logger override
    """
    config = get_config()
    if not config.logging.log_repairs:
        return

    log = logger or get_repair_logger()
    log.info(
        f"Repair {entity}[{index}]: {action}",
        extra={
            'entity': entity,
            'candidate_index': index,
            'action': action,
            'details': details or {},
        }
    )


# =============================================================================
# LOG FILE UTILITIES
# =============================================================================

def get_session_log_path(session_name: str, channel: str = "decisions") -> Path:
    """Get the log file path for a session channel."""
    config = get_config()
    timestamp = datetime.now().strftime("%Y%m%d")
    return config.paths.logs / channel / f"{session_name}_{timestamp}.jsonl"


def read_log_file(log_path: Union[str, Path]) -> list:
    """
    Read a JSONL log file and return list of log entries.

    Malformed lines are skipped.
    """
    entries = []
    with open(log_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return entries
