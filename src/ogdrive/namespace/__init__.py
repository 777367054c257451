"""
Namespace Module - per-identity file and folder metadata.

Example:
    ```python
    from ogdrive.namespace import MetadataStore, StoreConfig

    store = MetadataStore(StoreConfig(db_path="drive.db"))
    await store.open(wallet_address)
    docs = await store.create_folder("Docs")
    entries = await store.list(docs.id)
    ```
"""

from ogdrive.namespace.backup import (
    decode_snapshot,
    encode_snapshot,
    export_snapshot,
    restore_snapshot,
)
from ogdrive.namespace.store import MetadataStore, generate_entry_id
from ogdrive.namespace.types import EntryType, EntryUpdate, NamespaceEntry, StoreConfig

__all__ = [
    # Store
    "MetadataStore",
    "generate_entry_id",
    # Types
    "EntryType",
    "EntryUpdate",
    "NamespaceEntry",
    "StoreConfig",
    # Backup
    "export_snapshot",
    "encode_snapshot",
    "decode_snapshot",
    "restore_snapshot",
]
