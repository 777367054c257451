"""
0G Drive SDK utilities.
"""

from ogdrive.utils.cache import LRUCache
from ogdrive.utils.concurrency import OperationCoalescer
from ogdrive.utils.format import format_file_size, truncate_hash
from ogdrive.utils.logging import configure_logging, get_logger, log_context, set_level
from ogdrive.utils.retry import BackoffStrategy, RetryConfig, calculate_delay, retry_async
from ogdrive.utils.validation import (
    split_filename,
    validate_address,
    validate_extension,
    validate_file_size,
    validate_name,
    validate_root_hash,
)

__all__ = [
    # Cache
    "LRUCache",
    # Concurrency
    "OperationCoalescer",
    # Formatting
    "format_file_size",
    "truncate_hash",
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "log_context",
    # Retry
    "BackoffStrategy",
    "RetryConfig",
    "retry_async",
    "calculate_delay",
    # Validation
    "validate_address",
    "validate_name",
    "validate_extension",
    "validate_file_size",
    "validate_root_hash",
    "split_filename",
]
