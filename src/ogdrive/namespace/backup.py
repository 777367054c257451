"""
Namespace backup snapshots.

A snapshot is a JSON document holding every entry an identity owns:
``{walletAddress, networkType, files, exportDate, version}``. It is
uploaded to the storage network like any other file and restored by
root hash.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from ogdrive.constants import BACKUP_FORMAT_VERSION
from ogdrive.errors.validation import ValidationError
from ogdrive.namespace.store import MetadataStore
from ogdrive.namespace.types import NamespaceEntry
from ogdrive.utils.validation import validate_address


async def export_snapshot(store: MetadataStore, network_tier: str) -> Dict[str, Any]:
    """Build the snapshot document for the store's active identity."""
    entries = await store.all_entries()
    return {
        "walletAddress": store.identity,
        "networkType": network_tier,
        "files": [entry.to_json_dict() for entry in entries],
        "exportDate": datetime.now(timezone.utc).isoformat(),
        "version": BACKUP_FORMAT_VERSION,
    }


def encode_snapshot(snapshot: Dict[str, Any]) -> bytes:
    return json.dumps(snapshot, separators=(",", ":"), sort_keys=True).encode("utf-8")


def decode_snapshot(data: bytes) -> Tuple[str, List[NamespaceEntry]]:
    """
    Parse snapshot bytes.

    Returns:
        (wallet address, entries)

    Raises:
        ValidationError: If the document is not a valid snapshot
    """
    try:
        doc = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ValidationError("Backup is not valid JSON", field="backup") from e
    if not isinstance(doc, dict) or not isinstance(doc.get("files"), list):
        raise ValidationError("Backup has no file list", field="backup")
    if doc.get("version") != BACKUP_FORMAT_VERSION:
        raise ValidationError(
            f"Unsupported backup version {doc.get('version')!r}",
            field="version",
            value=doc.get("version"),
        )
    wallet = validate_address(str(doc.get("walletAddress", "")), "walletAddress")
    try:
        entries = [NamespaceEntry.model_validate(item) for item in doc["files"]]
    except PydanticValidationError as e:
        raise ValidationError(f"Backup contains an invalid entry: {e.errors()[0]['msg']}", field="files") from e
    return wallet, entries


async def restore_snapshot(store: MetadataStore, data: bytes) -> int:
    """
    Import a snapshot into the store's active identity.

    Raises:
        ValidationError: If the snapshot belongs to another wallet

    Returns:
        Number of entries imported
    """
    wallet, entries = decode_snapshot(data)
    if wallet != store.identity:
        raise ValidationError(
            "Backup belongs to a different wallet",
            field="walletAddress",
            value=wallet,
        )
    return await store.import_entries(entries)
