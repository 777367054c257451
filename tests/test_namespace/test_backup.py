"""
Tests for namespace backup snapshots.
"""

import json

import pytest

from ogdrive.errors import ValidationError
from ogdrive.namespace import (
    MetadataStore,
    StoreConfig,
    decode_snapshot,
    encode_snapshot,
    export_snapshot,
    restore_snapshot,
)

from .conftest import FRIEND, OWNER, OWNER_LOWER


async def populate(store, file_kwargs):
    docs = await store.create_folder("Docs")
    sub = await store.create_folder("Sub", parent_id=docs.id)
    await store.create_file("a.txt", parent_id=sub.id, **file_kwargs)
    await store.create_file("top.md", **file_kwargs)
    return docs, sub


class TestExport:
    @pytest.mark.asyncio
    async def test_snapshot_shape(self, store, file_kwargs) -> None:
        await populate(store, file_kwargs)

        snapshot = await export_snapshot(store, "standard")

        assert snapshot["walletAddress"] == OWNER_LOWER
        assert snapshot["networkType"] == "standard"
        assert snapshot["version"] == "1.0"
        assert "exportDate" in snapshot
        assert len(snapshot["files"]) == 4

    @pytest.mark.asyncio
    async def test_entries_use_wire_names(self, store, file_kwargs) -> None:
        await store.create_file("a.txt", **file_kwargs)

        entry = (await export_snapshot(store, "turbo"))["files"][0]

        assert entry["walletAddress"] == OWNER_LOWER
        assert entry["fileSize"] == 10
        assert entry["fileExtension"] == "txt"
        assert entry["rootHash"] == file_kwargs["root_hash"]
        assert entry["parentId"] is None
        assert entry["type"] == "file"

    @pytest.mark.asyncio
    async def test_shared_entries_not_exported(self, store, file_kwargs) -> None:
        docs, _ = await populate(store, file_kwargs)
        await store.share(docs.id, FRIEND)

        await store.open(FRIEND)
        snapshot = await export_snapshot(store, "standard")

        assert snapshot["files"] == []

    @pytest.mark.asyncio
    async def test_encoding_is_canonical(self, store, file_kwargs) -> None:
        await populate(store, file_kwargs)
        snapshot = await export_snapshot(store, "standard")

        assert encode_snapshot(snapshot) == encode_snapshot(json.loads(encode_snapshot(snapshot)))


class TestRestore:
    @pytest.mark.asyncio
    async def test_round_trip_into_fresh_store(self, store, file_kwargs, tmp_path) -> None:
        docs, sub = await populate(store, file_kwargs)
        data = encode_snapshot(await export_snapshot(store, "standard"))

        fresh = MetadataStore(StoreConfig(db_path=str(tmp_path / "other.db")))
        await fresh.open(OWNER)
        imported = await restore_snapshot(fresh, data)

        assert imported == 4
        assert [e.name for e in await fresh.list()] == ["Docs", "top.md"]
        assert [e.name for e in await fresh.list(docs.id)] == ["Sub"]
        assert [e.name for e in await fresh.list(sub.id)] == ["a.txt"]
        await fresh.close()

    @pytest.mark.asyncio
    async def test_restore_skips_existing(self, store, file_kwargs) -> None:
        await populate(store, file_kwargs)
        data = encode_snapshot(await export_snapshot(store, "standard"))

        assert await restore_snapshot(store, data) == 0

    @pytest.mark.asyncio
    async def test_other_wallet_rejected(self, store, file_kwargs) -> None:
        await populate(store, file_kwargs)
        data = encode_snapshot(await export_snapshot(store, "standard"))

        await store.open(FRIEND)
        with pytest.raises(ValidationError):
            await restore_snapshot(store, data)


class TestDecode:
    def test_not_json(self) -> None:
        with pytest.raises(ValidationError):
            decode_snapshot(b"\x00\x01")

    def test_missing_files(self) -> None:
        with pytest.raises(ValidationError):
            decode_snapshot(b'{"walletAddress": "0x1111111111111111111111111111111111111111"}')

    def test_wrong_version(self) -> None:
        doc = {"walletAddress": FRIEND, "files": [], "version": "0.1"}

        with pytest.raises(ValidationError) as exc_info:
            decode_snapshot(json.dumps(doc).encode())

        assert exc_info.value.field == "version"

    def test_invalid_entry(self) -> None:
        doc = {"walletAddress": FRIEND, "version": "1.0", "files": [{"id": "x"}]}

        with pytest.raises(ValidationError):
            decode_snapshot(json.dumps(doc).encode())

    def test_valid_document(self) -> None:
        doc = {
            "walletAddress": FRIEND,
            "version": "1.0",
            "files": [{
                "id": "1700000000000-abcdefghi",
                "type": "folder",
                "name": "Docs",
                "parentId": None,
                "walletAddress": FRIEND,
                "uploadDate": "2024-01-01T00:00:00+00:00",
            }],
        }

        wallet, entries = decode_snapshot(json.dumps(doc).encode())

        assert wallet == FRIEND
        assert entries[0].name == "Docs"
        assert entries[0].is_folder
