"""
Logging infrastructure for blobsas.

Structured (JSON) or text logging to stderr and an optional rotating file.
Every handler redacts SAS signatures and account keys before a record is
written.
"""

import logging
import logging.handlers
import json
import sys
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"


class SensitiveDataFilter(logging.Filter):
    """Filter that masks signatures and account keys in log messages."""

    PATTERNS = [
        # connection strings
        re.compile(r'(AccountKey=)[^;]+', re.IGNORECASE),
        re.compile(r'(SharedAccessSignature=)[^;&]+', re.IGNORECASE),
        # config dumps and keyword arguments
        re.compile(r'(account_key["\']?\s*[:=]\s*["\']?)[^\s"\',;]+', re.IGNORECASE),
        # signed URLs and bare query strings
        re.compile(r'((?:^|[?&])sig=)[^;&\s]+', re.IGNORECASE),
    ]

    @classmethod
    def redact(cls, text: str) -> str:
        """Return ``text`` with every secret value replaced."""
        for pattern in cls.PATTERNS:
            text = pattern.sub(rf'\1{REDACTED}', text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the formatted message; ``%``-style args are folded in first."""
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text for terminals."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )


def _attach(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure blobsas logging on the root logger.

    Console output goes to stderr so that command output on stdout (signed
    URLs, parsed parts) stays machine-readable. Calling this again replaces
    the handlers installed by the previous call.

    Args:
        level: Root log level name, case-insensitive
        format_type: "json" or "text"
        log_file: Also write to this file, rotated by size
        rotation_size: Rotate the file at this size, e.g. "10MB"
        rotation_count: Rotated files kept
        module_levels: Per-logger levels, e.g. {"blobsas.sas.signer": "DEBUG"}
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()

    _attach(root, logging.StreamHandler(sys.stderr), formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        _attach(
            root,
            logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=_parse_size(rotation_size),
                backupCount=rotation_count,
                encoding="utf-8",
            ),
            formatter,
        )

    for name, module_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(module_level.upper())

    root.debug(
        f"Logging configured: level={level}, format={format_type}, "
        f"file={log_file or '-'}, module_levels={module_levels or {}}"
    )


_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMG]?B)?$")
_SIZE_UNITS = {None: 1, "B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def _parse_size(size_str: str) -> int:
    """
    Convert "512", "64KB", "10MB" or "1.5GB" to bytes.

    Raises:
        ValueError: If the string is not a size
    """
    match = _SIZE_PATTERN.match(size_str.strip().upper())
    if not match:
        raise ValueError(f"Invalid size: {size_str!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit])


def get_logger(name: str) -> logging.Logger:
    """Logger for a blobsas module."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log ``message`` with structured key/value context.

    The JSON formatter writes the context as a nested object; the text
    formatter shows the message only.
    """
    logger.log(level, message, extra={"context": context} if context else None)
