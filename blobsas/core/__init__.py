"""Core module initialization.

Configuration lives in ``blobsas.core.config_manager``; it is not imported
here because it depends on the SAS modules, which log through this package.
"""

from .logging_config import setup_logging, get_logger, log_with_context

__all__ = [
    "setup_logging",
    "get_logger",
    "log_with_context",
]
