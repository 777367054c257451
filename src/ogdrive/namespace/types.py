"""
Namespace Types

File and folder records of the per-identity hierarchical namespace.
Wire names (aliases) match the JSON backup format.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ogdrive.constants import MAX_FILE_SIZE, NAMESPACE_CACHE_SIZE


class EntryType(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class NamespaceEntry(BaseModel):
    """
    A file or folder record.

    Files carry extension, size, root hash and the network tier that
    stored them; folders leave those unset.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Opaque immutable identifier")
    type: EntryType
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = Field(
        default=None,
        alias="parentId",
        description="Containing folder, or None for the root",
    )
    owner: str = Field(
        ...,
        alias="walletAddress",
        pattern=r"^0x[0-9a-f]{40}$",
        description="Owner wallet address, lowercased",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="uploadDate",
    )
    extension: Optional[str] = Field(default=None, alias="fileExtension")
    size: Optional[int] = Field(default=None, alias="fileSize", gt=0)
    root_hash: Optional[str] = Field(
        default=None,
        alias="rootHash",
        pattern=r"^0x[0-9a-f]{64}$",
    )
    network_tier: Optional[str] = Field(default=None, alias="networkType")
    shared_with: List[str] = Field(default_factory=list, alias="sharedWith")
    shared_by: Optional[str] = Field(
        default=None,
        alias="sharedBy",
        description="Owner address when the entry is seen through a share",
    )

    @property
    def is_folder(self) -> bool:
        return self.type is EntryType.FOLDER

    @property
    def is_file(self) -> bool:
        return self.type is EntryType.FILE

    def to_json_dict(self) -> dict:
        """Wire form with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class EntryUpdate(BaseModel):
    """Rename and/or move request; unset fields are left unchanged."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    parent_id: Optional[str] = None
    move: bool = Field(
        default=False,
        description="True when parent_id should be applied (None then means root)",
    )


class StoreConfig(BaseModel):
    """Local metadata store settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = Field(
        default=".ogdrive/metadata.db",
        description="SQLite database file shared by all identities on this device",
    )
    cache_size: int = Field(default=NAMESPACE_CACHE_SIZE, ge=1, description="(identity, parent) listings kept in memory")
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
