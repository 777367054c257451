"""Constants for the 0G Drive SDK.

This module defines the constant values used across the SDK,
including Merkle layout, gas schedule, transfer thresholds and
validation bounds.
"""

# Merkle Layout Constants
CHUNK_SIZE = 256  # bytes per leaf
SEGMENT_CHUNKS = 1024  # leaves per segment
SEGMENT_SIZE = CHUNK_SIZE * SEGMENT_CHUNKS  # 256 KiB
ROOT_HASH_HEX_LENGTH = 64

# Fee Constants
FALLBACK_GAS_ESTIMATE = 500_000
GAS_ESTIMATION_BUFFER = 1.15
MAX_GAS_LIMIT = 30_000_000

# Upload gas schedule: (gas price in gwei, gas limit), one entry per attempt
GAS_SCHEDULE = (
    (50, 10_000_000),
    (100, 15_000_000),
    (200, 20_000_000),
)
UPLOAD_TASK_SIZE = 10
UPLOAD_EXPECTED_REPLICA = 1

# Transfer Constants
STREAMING_THRESHOLD = 10 * 1024 * 1024  # 10 MiB
SNIFF_BYTES = 100
DOWNLOAD_CHUNK_SIZE = 64 * 1024
RELAY_TIMEOUT_SECONDS = 120.0
DIRECT_TIMEOUT_SECONDS = 60.0
LONG_RELAY_TIMEOUT_SECONDS = 30 * 60.0
RELAY_RETRY_BUDGET = 2  # extra attempts after the first
BACKOFF_STEP_SECONDS = 2.0
RELAY_USER_AGENT = "0G-Storage-Web/1.0"
NOT_FOUND_ENVELOPE_CODE = 101

# Namespace Validation Constants
MAX_NAME_LENGTH = 255
MAX_FILE_SIZE = 5 * 1024 * 1024 * 1024  # 5 GiB
NAMESPACE_CACHE_SIZE = 256
BACKUP_FORMAT_VERSION = "1.0"

ALLOWED_EXTENSIONS = frozenset({
    # Documents
    "txt", "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "csv", "rtf",
    # Images
    "jpg", "jpeg", "png", "gif", "bmp", "svg", "webp", "ico", "tiff", "tif",
    # Video
    "mp4", "avi", "mov", "wmv", "flv", "webm", "mkv", "m4v",
    # Audio
    "mp3", "wav", "flac", "aac", "ogg", "wma", "m4a",
    # Archives
    "zip", "rar", "7z", "tar", "gz", "bz2",
    # Code and text
    "js", "ts", "jsx", "tsx", "html", "css", "scss", "json", "xml", "yaml",
    "yml", "log", "md", "sql", "sh", "bat", "ps1", "py", "java", "cpp", "c",
    "h", "php", "rb", "go", "rs",
})
