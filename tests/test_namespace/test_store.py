"""
Tests for MetadataStore.

Tests cover:
- Handle lifecycle and identity switching
- Folder/file creation, listing and ordering
- Rename/move validation (cycles, duplicates)
- Cascade delete
- Sharing and visibility
- Read-through cache invalidation
- Coalescing of concurrent identical writes
"""

import asyncio
import random
import re

import pytest

from ogdrive.errors import (
    DuplicateNameError,
    EntryNotFoundError,
    ErrorCategory,
    FileTooLargeError,
    InvalidAddressError,
    InvalidExtensionError,
    InvalidMoveError,
    InvalidNameError,
    InvalidRootHashError,
    PermissionDeniedError,
    StoreClosedError,
    ValidationError,
)
from ogdrive.namespace import (
    EntryType,
    EntryUpdate,
    MetadataStore,
    NamespaceEntry,
    generate_entry_id,
)

from .conftest import FRIEND, OWNER, OWNER_LOWER, ROOT_HASH_A, ROOT_HASH_B, STRANGER

HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


def names(entries):
    return [entry.name for entry in entries]


# =============================================================================
# Lifecycle
# =============================================================================


class TestStoreLifecycle:
    """Tests for open/close and identity scoping."""

    @pytest.mark.asyncio
    async def test_open_normalizes_identity(self, store) -> None:
        assert store.is_open
        assert store.identity == OWNER_LOWER
        assert store.stats["opens"] == 1

    @pytest.mark.asyncio
    async def test_reopen_same_identity_reuses_handle(self, store) -> None:
        await store.open(OWNER.lower())

        assert store.stats["opens"] == 1

    @pytest.mark.asyncio
    async def test_invalid_identity(self, store_config) -> None:
        with pytest.raises(InvalidAddressError):
            await MetadataStore(store_config).open("not-a-wallet")

    @pytest.mark.asyncio
    async def test_closed_store_rejects_operations(self, store_config) -> None:
        store = MetadataStore(store_config)

        with pytest.raises(StoreClosedError):
            await store.list()
        with pytest.raises(StoreClosedError):
            await store.create_folder("Docs")

    @pytest.mark.asyncio
    async def test_close(self, store) -> None:
        await store.close()

        assert not store.is_open
        assert store.identity is None

    @pytest.mark.asyncio
    async def test_identity_switch_isolates_namespaces(self, store) -> None:
        await store.create_folder("Docs")
        assert names(await store.list()) == ["Docs"]

        await store.open(FRIEND)
        assert store.identity == FRIEND
        assert await store.list() == []
        assert store.stats["opens"] == 2

        await store.open(OWNER)
        assert names(await store.list()) == ["Docs"]

    @pytest.mark.asyncio
    async def test_data_persists_across_handles(self, store_config) -> None:
        first = MetadataStore(store_config)
        await first.open(OWNER)
        await first.create_folder("Docs")
        await first.close()

        second = MetadataStore(store_config)
        await second.open(OWNER)
        assert names(await second.list()) == ["Docs"]
        await second.close()

    def test_entry_id_format(self) -> None:
        assert re.match(r"^\d{13}-[0-9a-z]{9}$", generate_entry_id())
        assert generate_entry_id() != generate_entry_id()


# =============================================================================
# Create and List
# =============================================================================


class TestCreateAndList:
    """Tests for creating and listing entries."""

    @pytest.mark.asyncio
    async def test_folder_then_file(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        root = await store.list()
        inside = await store.list(docs.id)

        assert names(root) == ["Docs"]
        assert root[0].is_folder
        assert names(inside) == ["a.txt"]
        assert inside[0].size == 10
        assert HASH_RE.match(inside[0].root_hash)
        assert inside[0].extension == "txt"
        assert inside[0].parent_id == docs.id
        assert inside[0].owner == OWNER_LOWER

    @pytest.mark.asyncio
    async def test_folders_first_then_names(self, store, file_kwargs) -> None:
        await store.create_file("b.txt", **file_kwargs)
        await store.create_file("a.txt", **file_kwargs)
        await store.create_folder("Zeta")
        await store.create_folder("Alpha")

        assert names(await store.list()) == ["Alpha", "Zeta", "a.txt", "b.txt"]

    @pytest.mark.asyncio
    async def test_name_is_stripped(self, store) -> None:
        folder = await store.create_folder("  Photos  ")
        assert folder.name == "Photos"

    @pytest.mark.asyncio
    async def test_extension_lowercased(self, store, file_kwargs) -> None:
        entry = await store.create_file("Scan.PDF", **file_kwargs)
        assert entry.extension == "pdf"

    @pytest.mark.asyncio
    async def test_root_hash_lowercased(self, store) -> None:
        entry = await store.create_file(
            "a.txt", size=1, root_hash="0x" + "AB" * 32, network_tier="turbo"
        )
        assert entry.root_hash == "0x" + "ab" * 32
        assert entry.network_tier == "turbo"

    @pytest.mark.asyncio
    async def test_get_and_find(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        entry = await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        assert (await store.get(entry.id)).name == "a.txt"
        assert (await store.find("a.txt", docs.id)).id == entry.id
        assert await store.find("a.txt") is None

    @pytest.mark.asyncio
    async def test_get_unknown(self, store) -> None:
        with pytest.raises(EntryNotFoundError) as exc_info:
            await store.get("missing")

        assert exc_info.value.category is ErrorCategory.NOT_FOUND

    @pytest.mark.asyncio
    async def test_list_unknown_folder(self, store) -> None:
        with pytest.raises(EntryNotFoundError):
            await store.list("missing")

    @pytest.mark.asyncio
    async def test_list_file_is_rejected(self, store, file_kwargs) -> None:
        entry = await store.create_file("a.txt", **file_kwargs)

        with pytest.raises(ValidationError):
            await store.list(entry.id)

    @pytest.mark.asyncio
    async def test_parent_must_be_folder(self, store, file_kwargs) -> None:
        entry = await store.create_file("a.txt", **file_kwargs)

        with pytest.raises(ValidationError):
            await store.create_folder("Nested", parent_id=entry.id)

    @pytest.mark.asyncio
    async def test_all_entries_parents_first(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        sub = await store.create_folder("Sub", parent_id=docs.id)
        await store.create_file("a.txt", parent_id=sub.id, **file_kwargs)

        ordered = await store.all_entries()
        seen = set()
        for entry in ordered:
            assert entry.parent_id is None or entry.parent_id in seen
            seen.add(entry.id)
        assert len(ordered) == 3


# =============================================================================
# Validation
# =============================================================================


class TestCreateValidation:
    """Tests for rejected attributes (no write is made)."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", ["", "   ", "a/b", "what?", "x" * 256])
    async def test_invalid_folder_names(self, store, bad: str) -> None:
        with pytest.raises(InvalidNameError):
            await store.create_folder(bad)

        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_disallowed_extension(self, store, file_kwargs) -> None:
        with pytest.raises(InvalidExtensionError):
            await store.create_file("setup.exe", **file_kwargs)
        with pytest.raises(InvalidExtensionError):
            await store.create_file("README", **file_kwargs)

    @pytest.mark.asyncio
    async def test_size_bounds(self, store) -> None:
        with pytest.raises(FileTooLargeError):
            await store.create_file("a.txt", size=0, root_hash=ROOT_HASH_A, network_tier="standard")
        with pytest.raises(FileTooLargeError):
            await store.create_file(
                "a.txt", size=store.config.max_file_size + 1,
                root_hash=ROOT_HASH_A, network_tier="standard",
            )

    @pytest.mark.asyncio
    async def test_bad_root_hash(self, store) -> None:
        with pytest.raises(InvalidRootHashError):
            await store.create_file("a.txt", size=1, root_hash="0xabc", network_tier="standard")


# =============================================================================
# Duplicates
# =============================================================================


class TestDuplicateNames:
    """Tests for sibling uniqueness."""

    @pytest.mark.asyncio
    async def test_duplicate_folder(self, store) -> None:
        await store.create_folder("Docs")

        with pytest.raises(DuplicateNameError) as exc_info:
            await store.create_folder("Docs")

        assert exc_info.value.category is ErrorCategory.DUPLICATE_NAME
        assert exc_info.value.http_status == 409
        assert "already exists" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_duplicate_file_in_folder(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        with pytest.raises(DuplicateNameError):
            await store.create_file("a.txt", parent_id=docs.id, size=5, root_hash=ROOT_HASH_B,
                                    network_tier="standard")

    @pytest.mark.asyncio
    async def test_same_name_in_different_folders(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        await store.create_file("a.txt", **file_kwargs)
        await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        assert names(await store.list(docs.id)) == ["a.txt"]

    @pytest.mark.asyncio
    async def test_extension_is_part_of_name(self, store, file_kwargs) -> None:
        await store.create_file("a.txt", **file_kwargs)
        await store.create_file("a.pdf", **file_kwargs)

        assert names(await store.list()) == ["a.pdf", "a.txt"]

    @pytest.mark.asyncio
    async def test_folder_and_file_may_share_name(self, store, file_kwargs) -> None:
        folder = await store.create_folder("a.txt")
        file = await store.create_file("a.txt", **file_kwargs)

        listed = await store.list()
        assert sorted(e.id for e in listed) == sorted([folder.id, file.id])
        assert (await store.find("a.txt", entry_type=EntryType.FILE)).id == file.id
        assert (await store.find("a.txt", entry_type=EntryType.FOLDER)).id == folder.id

    @pytest.mark.asyncio
    async def test_concurrent_folder_and_file_not_coalesced(self, store, file_kwargs) -> None:
        folder, file = await asyncio.gather(
            store.create_folder("a.txt"),
            store.create_file("a.txt", **file_kwargs),
        )

        assert folder.type is EntryType.FOLDER
        assert file.type is EntryType.FILE
        assert store.stats["coalesced"] == 0

    @pytest.mark.asyncio
    async def test_rename_onto_same_type_rejected(self, store, file_kwargs) -> None:
        await store.create_folder("b.txt")
        await store.create_file("b.txt", **file_kwargs)
        entry = await store.create_file("a.txt", **file_kwargs)

        with pytest.raises(DuplicateNameError):
            await store.rename(entry.id, "b.txt")

    @pytest.mark.asyncio
    async def test_rename_file_onto_folder_name(self, store, file_kwargs) -> None:
        await store.create_folder("b.txt")
        entry = await store.create_file("a.txt", **file_kwargs)

        renamed = await store.rename(entry.id, "b.txt")

        assert renamed.name == "b.txt"

    @pytest.mark.asyncio
    async def test_other_identity_may_reuse_name(self, store) -> None:
        await store.create_folder("Docs")
        await store.open(FRIEND)

        folder = await store.create_folder("Docs")
        assert folder.owner == FRIEND


# =============================================================================
# Rename and Move
# =============================================================================


class TestRenameAndMove:
    """Tests for update/rename/move."""

    @pytest.mark.asyncio
    async def test_rename(self, store, file_kwargs) -> None:
        entry = await store.create_file("a.txt", **file_kwargs)

        renamed = await store.rename(entry.id, "b.txt")

        assert renamed.id == entry.id
        assert renamed.name == "b.txt"
        assert names(await store.list()) == ["b.txt"]

    @pytest.mark.asyncio
    async def test_rename_to_sibling_name(self, store, file_kwargs) -> None:
        await store.create_file("a.txt", **file_kwargs)
        entry = await store.create_file("b.txt", **file_kwargs)

        with pytest.raises(DuplicateNameError):
            await store.rename(entry.id, "a.txt")

    @pytest.mark.asyncio
    async def test_rename_to_disallowed_extension(self, store, file_kwargs) -> None:
        entry = await store.create_file("a.txt", **file_kwargs)

        with pytest.raises(InvalidExtensionError):
            await store.rename(entry.id, "a.exe")

    @pytest.mark.asyncio
    async def test_rename_unknown(self, store) -> None:
        with pytest.raises(EntryNotFoundError):
            await store.rename("missing", "x")

    @pytest.mark.asyncio
    async def test_move_file_to_root(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        entry = await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        moved = await store.move(entry.id, None)

        assert moved.parent_id is None
        assert await store.list(docs.id) == []
        assert names(await store.list()) == ["Docs", "a.txt"]

    @pytest.mark.asyncio
    async def test_move_into_folder(self, store) -> None:
        docs = await store.create_folder("Docs")
        sub = await store.create_folder("Sub")

        await store.move(sub.id, docs.id)

        assert names(await store.list(docs.id)) == ["Sub"]
        assert names(await store.list()) == ["Docs"]

    @pytest.mark.asyncio
    async def test_move_into_itself(self, store) -> None:
        docs = await store.create_folder("Docs")

        with pytest.raises(InvalidMoveError):
            await store.move(docs.id, docs.id)

    @pytest.mark.asyncio
    async def test_move_into_descendant(self, store) -> None:
        docs = await store.create_folder("Docs")
        sub = await store.create_folder("Sub", parent_id=docs.id)
        deep = await store.create_folder("Deep", parent_id=sub.id)

        with pytest.raises(InvalidMoveError):
            await store.move(docs.id, deep.id)

        assert (await store.get(docs.id)).parent_id is None

    @pytest.mark.asyncio
    async def test_move_into_file(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        entry = await store.create_file("a.txt", **file_kwargs)

        with pytest.raises(InvalidMoveError):
            await store.move(docs.id, entry.id)

    @pytest.mark.asyncio
    async def test_move_to_missing_folder(self, store) -> None:
        docs = await store.create_folder("Docs")

        with pytest.raises(InvalidMoveError):
            await store.move(docs.id, "missing")

    @pytest.mark.asyncio
    async def test_move_checks_destination_names(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)
        loose = await store.create_file("a.txt", **file_kwargs)

        with pytest.raises(DuplicateNameError):
            await store.move(loose.id, docs.id)

    @pytest.mark.asyncio
    async def test_rename_and_move_in_one_transaction(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        entry = await store.create_file("a.txt", **file_kwargs)
        before = store.stats["transactions"]

        updated = await store.update(entry.id, EntryUpdate(name="b.txt", parent_id=docs.id, move=True))

        assert updated.name == "b.txt"
        assert updated.parent_id == docs.id
        assert store.stats["transactions"] == before + 1

    @pytest.mark.asyncio
    async def test_random_moves_keep_tree_acyclic(self, store) -> None:
        """No sequence of creates and moves produces a cycle or duplicate siblings."""
        rng = random.Random(1234)
        folders = []
        for i in range(12):
            parent = rng.choice([None] + [f.id for f in folders])
            folders.append(await store.create_folder(f"F{i % 4}-{i}", parent_id=parent))

        for _ in range(60):
            entry = rng.choice(folders)
            target = rng.choice([None] + [f.id for f in folders])
            try:
                await store.move(entry.id, target)
            except (InvalidMoveError, DuplicateNameError):
                pass

        entries = {e.id: e for e in await store.all_entries()}
        for entry in entries.values():
            seen = set()
            node = entry
            while node.parent_id is not None:
                assert node.id not in seen
                seen.add(node.id)
                node = entries[node.parent_id]
        siblings = [(e.parent_id, e.name) for e in entries.values()]
        assert len(siblings) == len(set(siblings))


# =============================================================================
# Delete
# =============================================================================


class TestDelete:
    """Tests for cascade delete."""

    @pytest.mark.asyncio
    async def test_cascade(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        a = await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)
        sub = await store.create_folder("Sub", parent_id=docs.id)
        b = await store.create_file("b.txt", parent_id=sub.id, **file_kwargs)
        other = await store.create_folder("Other")
        c = await store.create_file("c.txt", parent_id=other.id, **file_kwargs)

        deleted = await store.delete(docs.id)

        assert set(deleted) == {docs.id, a.id, sub.id, b.id}
        for entry_id in deleted:
            with pytest.raises(EntryNotFoundError):
                await store.get(entry_id)
        assert names(await store.list()) == ["Other"]
        assert (await store.get(c.id)).parent_id == other.id

    @pytest.mark.asyncio
    async def test_delete_file(self, store, file_kwargs) -> None:
        entry = await store.create_file("a.txt", **file_kwargs)

        assert await store.delete(entry.id) == [entry.id]
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_delete_unknown(self, store) -> None:
        with pytest.raises(EntryNotFoundError):
            await store.delete("missing")

    @pytest.mark.asyncio
    async def test_delete_removes_shares(self, store) -> None:
        docs = await store.create_folder("Docs")
        await store.share(docs.id, FRIEND)
        await store.delete(docs.id)

        await store.open(FRIEND)
        assert await store.list() == []


# =============================================================================
# Sharing
# =============================================================================


class TestSharing:
    """Tests for share visibility."""

    @pytest.mark.asyncio
    async def test_shared_folder_visible_to_target(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        a = await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        shared = await store.share(docs.id, FRIEND)
        assert shared.shared_with == [FRIEND]

        await store.open(FRIEND)
        root = await store.list()
        assert names(root) == ["Docs"]
        assert root[0].shared_by == OWNER_LOWER
        assert names(await store.list(docs.id)) == ["a.txt"]
        assert (await store.get(a.id)).shared_by == OWNER_LOWER

    @pytest.mark.asyncio
    async def test_target_cannot_modify(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        a = await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)
        await store.share(docs.id, FRIEND)

        await store.open(FRIEND)
        with pytest.raises(PermissionDeniedError) as exc_info:
            await store.rename(a.id, "b.txt")
        assert exc_info.value.http_status == 403
        with pytest.raises(PermissionDeniedError):
            await store.delete(docs.id)
        with pytest.raises(PermissionDeniedError):
            await store.create_folder("Mine", parent_id=docs.id)

    @pytest.mark.asyncio
    async def test_stranger_sees_nothing(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        a = await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)
        await store.share(docs.id, FRIEND)

        await store.open(STRANGER)
        assert await store.list() == []
        with pytest.raises(EntryNotFoundError):
            await store.list(docs.id)
        with pytest.raises(EntryNotFoundError):
            await store.get(a.id)

    @pytest.mark.asyncio
    async def test_unshare(self, store) -> None:
        docs = await store.create_folder("Docs")
        await store.share(docs.id, FRIEND)
        await store.open(FRIEND)
        assert names(await store.list()) == ["Docs"]

        await store.open(OWNER)
        unshared = await store.unshare(docs.id, FRIEND)
        assert unshared.shared_with == []

        await store.open(FRIEND)
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_share_is_idempotent(self, store) -> None:
        docs = await store.create_folder("Docs")
        await store.share(docs.id, FRIEND)

        again = await store.share(docs.id, FRIEND.upper().replace("0X", "0x"))
        assert again.shared_with == [FRIEND]

    @pytest.mark.asyncio
    async def test_cannot_share_with_self(self, store) -> None:
        docs = await store.create_folder("Docs")

        with pytest.raises(ValidationError):
            await store.share(docs.id, OWNER)

    @pytest.mark.asyncio
    async def test_share_requires_valid_target(self, store) -> None:
        docs = await store.create_folder("Docs")

        with pytest.raises(InvalidAddressError):
            await store.share(docs.id, "friend")


# =============================================================================
# Cache
# =============================================================================


class TestListingCache:
    """Tests for the read-through listing cache."""

    @pytest.mark.asyncio
    async def test_repeat_listing_hits_cache(self, store) -> None:
        await store.create_folder("Docs")
        await store.list()
        hits = store.stats["cache_hits"]

        await store.list()

        assert store.stats["cache_hits"] == hits + 1

    @pytest.mark.asyncio
    async def test_write_invalidates_parent(self, store, file_kwargs) -> None:
        docs = await store.create_folder("Docs")
        assert await store.list(docs.id) == []

        await store.create_file("a.txt", parent_id=docs.id, **file_kwargs)

        assert names(await store.list(docs.id)) == ["a.txt"]

    @pytest.mark.asyncio
    async def test_move_invalidates_both_parents(self, store, file_kwargs) -> None:
        src = await store.create_folder("Src")
        dst = await store.create_folder("Dst")
        entry = await store.create_file("a.txt", parent_id=src.id, **file_kwargs)
        await store.list(src.id)
        await store.list(dst.id)

        await store.move(entry.id, dst.id)

        assert await store.list(src.id) == []
        assert names(await store.list(dst.id)) == ["a.txt"]

    @pytest.mark.asyncio
    async def test_listing_returns_copies(self, store) -> None:
        await store.create_folder("Docs")
        listing = await store.list()
        listing.clear()

        assert names(await store.list()) == ["Docs"]


# =============================================================================
# Coalescing
# =============================================================================


class TestConcurrentWrites:
    """Tests for coalescing identical in-flight operations."""

    @pytest.mark.asyncio
    async def test_identical_renames_run_once(self, store, file_kwargs) -> None:
        entry = await store.create_file("x.txt", **file_kwargs)
        before = store.stats["transactions"]

        first, second = await asyncio.gather(
            store.rename(entry.id, "a.txt"),
            store.rename(entry.id, "a.txt"),
        )

        assert store.stats["transactions"] == before + 1
        assert store.stats["coalesced"] == 1
        assert first == second
        assert first.name == "a.txt"

    @pytest.mark.asyncio
    async def test_different_signatures_both_run(self, store, file_kwargs) -> None:
        entry = await store.create_file("x.txt", **file_kwargs)
        before = store.stats["transactions"]

        await asyncio.gather(
            store.rename(entry.id, "a.txt"),
            store.rename(entry.id, "b.txt"),
        )

        assert store.stats["transactions"] == before + 2
        assert (await store.get(entry.id)).name == "b.txt"

    @pytest.mark.asyncio
    async def test_key_released_after_completion(self, store, file_kwargs) -> None:
        entry = await store.create_file("x.txt", **file_kwargs)
        await store.rename(entry.id, "a.txt")
        before = store.stats["transactions"]

        await store.rename(entry.id, "a.txt")

        assert store.stats["transactions"] == before + 1
        assert store.stats["coalesced"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_failure_shared(self, store) -> None:
        await store.create_folder("Docs")

        results = await asyncio.gather(
            store.create_folder("Docs"),
            store.create_folder("Docs"),
            return_exceptions=True,
        )

        assert all(isinstance(r, DuplicateNameError) for r in results)
        assert store.stats["coalesced"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_creates_make_one_folder(self, store) -> None:
        first, second = await asyncio.gather(
            store.create_folder("Docs"),
            store.create_folder("Docs"),
        )

        assert first.id == second.id
        assert names(await store.list()) == ["Docs"]
        assert first.type is EntryType.FOLDER

    @pytest.mark.asyncio
    async def test_concurrent_identical_imports_run_once(self, store) -> None:
        folder = NamespaceEntry(
            id=generate_entry_id(), type=EntryType.FOLDER, name="Docs", owner=OWNER_LOWER
        )
        file = NamespaceEntry(
            id=generate_entry_id(),
            type=EntryType.FILE,
            name="a.txt",
            parent_id=folder.id,
            owner=OWNER_LOWER,
            extension="txt",
            size=10,
            root_hash=ROOT_HASH_A,
            network_tier="standard",
        )

        first, second = await asyncio.gather(
            store.import_entries([folder, file]),
            store.import_entries([folder, file]),
        )

        assert first == second == 2
        assert store.stats["coalesced"] == 1
        assert names(await store.list()) == ["Docs"]
        assert names(await store.list(folder.id)) == ["a.txt"]

    @pytest.mark.asyncio
    async def test_import_key_released_after_completion(self, store) -> None:
        folder = NamespaceEntry(
            id=generate_entry_id(), type=EntryType.FOLDER, name="Docs", owner=OWNER_LOWER
        )

        assert await store.import_entries([folder]) == 1
        assert await store.import_entries([folder]) == 0
        assert store.stats["coalesced"] == 0
