"""
Validation utilities for the 0G Drive SDK.

Provides input validation functions for:
- Wallet addresses (identities)
- Entry names and file extensions
- File sizes
- Root hashes

All validation functions raise ValidationError (or subclasses) on failure
and run before any I/O.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from ogdrive.constants import ALLOWED_EXTENSIONS, MAX_FILE_SIZE, MAX_NAME_LENGTH
from ogdrive.errors.validation import (
    FileTooLargeError,
    InvalidAddressError,
    InvalidExtensionError,
    InvalidNameError,
    InvalidRootHashError,
)

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
ROOT_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
FORBIDDEN_NAME_CHARS = set('<>:"/\\|?*')


def validate_address(address: str, field: str = "address") -> str:
    """
    Validate a wallet address.

    Args:
        address: Address to validate
        field: Field name for error messages

    Returns:
        Normalized (lowercase) address

    Raises:
        InvalidAddressError: If address is missing or malformed
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(str(address), field=field)
    return address.lower()


def validate_name(name: str) -> str:
    """
    Validate an entry display name.

    Returns:
        The name, stripped of surrounding whitespace

    Raises:
        InvalidNameError: If empty, longer than 255 characters, or
            containing any of ``<>:"/\\|?*``
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError(str(name), "name is required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(name, f"must be at most {MAX_NAME_LENGTH} characters")
    bad = sorted(FORBIDDEN_NAME_CHARS.intersection(name))
    if bad:
        raise InvalidNameError(name, f"contains forbidden characters {''.join(bad)}")
    return name


def validate_extension(extension: Optional[str]) -> str:
    """
    Validate a file extension against the allow-list.

    Returns:
        Lowercased extension without a leading dot

    Raises:
        InvalidExtensionError: If missing or not allowed
    """
    ext = (extension or "").lstrip(".").lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidExtensionError(ext)
    return ext


def validate_file_size(size: int, max_size: int = MAX_FILE_SIZE) -> int:
    """
    Validate 0 < size <= max_size.

    Raises:
        FileTooLargeError: If the size is out of bounds
    """
    if size <= 0 or size > max_size:
        raise FileTooLargeError(size, max_size)
    return size


def validate_root_hash(root_hash: str) -> str:
    """
    Validate a Merkle root hash (``0x`` + 64 hex characters).

    Returns:
        Lowercased root hash

    Raises:
        InvalidRootHashError: If malformed
    """
    if not isinstance(root_hash, str) or not ROOT_HASH_PATTERN.match(root_hash):
        raise InvalidRootHashError(str(root_hash))
    return root_hash.lower()


def split_filename(filename: str) -> Tuple[str, str]:
    """
    Split ``report.final.pdf`` into ``("report.final", "pdf")``.

    Names without a dot yield an empty extension.
    """
    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem:
        return filename, ""
    return stem, ext.lower()
