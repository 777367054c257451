"""
Local Metadata Store

Per-identity hierarchical namespace of file and folder records. SQLite is
the single source of truth; listings are served through an in-memory
read-through cache keyed by ``(identity, parent_id)`` that is invalidated
precisely on every write. All public operations go through an
OperationCoalescer so concurrent calls with the same signature share
one execution.
"""

from __future__ import annotations

import secrets
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from ogdrive.errors.namespace import (
    DuplicateNameError,
    EntryNotFoundError,
    InvalidMoveError,
    PermissionDeniedError,
    StoreClosedError,
    StoreError,
)
from ogdrive.errors.validation import ValidationError
from ogdrive.namespace.types import EntryType, EntryUpdate, NamespaceEntry, StoreConfig
from ogdrive.utils.cache import LRUCache
from ogdrive.utils.concurrency import OperationCoalescer
from ogdrive.utils.logging import get_logger
from ogdrive.utils.validation import (
    split_filename,
    validate_address,
    validate_extension,
    validate_file_size,
    validate_name,
    validate_root_hash,
)

_logger = get_logger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL CHECK (type IN ('file', 'folder')),
    name TEXT NOT NULL,
    parent_id TEXT REFERENCES entries(id) ON DELETE CASCADE,
    owner TEXT NOT NULL,
    created_at TEXT NOT NULL,
    extension TEXT,
    size INTEGER,
    root_hash TEXT,
    network_tier TEXT
);

CREATE INDEX IF NOT EXISTS idx_entries_parent ON entries(parent_id);
CREATE INDEX IF NOT EXISTS idx_entries_owner ON entries(owner);
CREATE INDEX IF NOT EXISTS idx_entries_type ON entries(type);
CREATE INDEX IF NOT EXISTS idx_entries_created ON entries(created_at);
DROP INDEX IF EXISTS idx_entries_sibling_name;
CREATE UNIQUE INDEX IF NOT EXISTS idx_entries_sibling
    ON entries(owner, IFNULL(parent_id, ''), type, name, IFNULL(extension, ''));

CREATE TABLE IF NOT EXISTS shares (
    entry_id TEXT NOT NULL REFERENCES entries(id) ON DELETE CASCADE,
    identity TEXT NOT NULL,
    PRIMARY KEY (entry_id, identity)
);

CREATE INDEX IF NOT EXISTS idx_shares_identity ON shares(identity);
"""

_ANCESTORS_CTE = """
WITH RECURSIVE ancestors(id, parent_id) AS (
    SELECT id, parent_id FROM entries WHERE id = ?
    UNION ALL
    SELECT e.id, e.parent_id FROM entries e JOIN ancestors a ON e.id = a.parent_id
)
"""

_DESCENDANTS_CTE = """
WITH RECURSIVE closure(id) AS (
    SELECT id FROM entries WHERE id = ?
    UNION ALL
    SELECT e.id FROM entries e JOIN closure c ON e.parent_id = c.id
)
"""

_ORDER = "ORDER BY type = 'file', name"


def generate_entry_id() -> str:
    """``<epoch ms>-<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


class MetadataStore:
    """
    SQLite-backed namespace store scoped to one active identity.

    Example:
        ```python
        store = MetadataStore(StoreConfig(db_path="drive.db"))
        await store.open("0xAbC...")
        docs = await store.create_folder("Docs")
        await store.create_file("a.txt", parent_id=docs.id, size=10,
                                root_hash=result.root_hash, network_tier="standard")
        print(await store.list(docs.id))
        ```
    """

    def __init__(self, config: Optional[StoreConfig] = None) -> None:
        self._config = config or StoreConfig()
        self._conn: Optional[sqlite3.Connection] = None
        self._identity: Optional[str] = None
        self._cache: LRUCache[tuple, List[NamespaceEntry]] = LRUCache(self._config.cache_size)
        self._coalescer = OperationCoalescer()
        self._stats = {"transactions": 0, "opens": 0}

    # ------------------------------------------------------------------
    # Handle lifecycle
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def identity(self) -> Optional[str]:
        return self._identity

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def stats(self) -> Dict[str, int]:
        return {
            **self._stats,
            "cache_hits": self._cache.hits,
            "cache_misses": self._cache.misses,
            "coalesced": self._coalescer.coalesced,
        }

    async def open(self, identity: str) -> None:
        """
        Open (or reuse) the handle for ``identity``.

        Switching identity closes the prior handle and drops its cached
        listings before the new handle is opened.

        Raises:
            InvalidAddressError: If identity is not a wallet address
        """
        identity = validate_address(identity, "identity")
        if self._conn is not None and self._identity == identity:
            return
        if self._conn is not None:
            await self.close()

        path = Path(self._config.db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(path), isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open metadata store: {e}", operation="open") from e

        self._conn = conn
        self._identity = identity
        self._stats["opens"] += 1
        _logger.debug("Opened metadata store", extra={"identity": identity, "path": str(path)})

    async def close(self) -> None:
        """Close the active handle and forget its cached listings."""
        if self._conn is None:
            return
        identity = self._identity
        self._conn.close()
        self._conn = None
        self._identity = None
        self._cache.delete_where(lambda key: key[0] == identity)
        _logger.debug("Closed metadata store", extra={"identity": identity})

    def _require(self) -> sqlite3.Connection:
        if self._conn is None or self._identity is None:
            raise StoreClosedError()
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """One atomic write; rolls back and raises StoreError on database failure."""
        conn = self._require()
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except sqlite3.IntegrityError:
            conn.execute("ROLLBACK")
            raise
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            _logger.error(
                "Metadata store write failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise StoreError(f"{operation} failed: {e}", operation=operation) from e
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
            self._stats["transactions"] += 1

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    def _entries_from_rows(self, rows: Sequence[sqlite3.Row]) -> List[NamespaceEntry]:
        if not rows:
            return []
        conn = self._require()
        ids = [row["id"] for row in rows]
        placeholders = ",".join("?" * len(ids))
        shares: Dict[str, List[str]] = {}
        for share in conn.execute(
            f"SELECT entry_id, identity FROM shares WHERE entry_id IN ({placeholders}) "
            "ORDER BY identity",
            ids,
        ):
            shares.setdefault(share["entry_id"], []).append(share["identity"])

        entries = []
        for row in rows:
            entries.append(NamespaceEntry(
                id=row["id"],
                type=EntryType(row["type"]),
                name=row["name"],
                parent_id=row["parent_id"],
                owner=row["owner"],
                created_at=datetime.fromisoformat(row["created_at"]),
                extension=row["extension"],
                size=row["size"],
                root_hash=row["root_hash"],
                network_tier=row["network_tier"],
                shared_with=shares.get(row["id"], []),
                shared_by=row["owner"] if row["owner"] != self._identity else None,
            ))
        return entries

    def _row(self, entry_id: str) -> Optional[sqlite3.Row]:
        return self._require().execute(
            "SELECT * FROM entries WHERE id = ?", (entry_id,)
        ).fetchone()

    def _is_visible(self, row: sqlite3.Row) -> bool:
        if row["owner"] == self._identity:
            return True
        hit = self._require().execute(
            _ANCESTORS_CTE
            + "SELECT 1 FROM shares WHERE identity = ? "
            "AND entry_id IN (SELECT id FROM ancestors) LIMIT 1",
            (row["id"], self._identity),
        ).fetchone()
        return hit is not None

    def _visible_row(self, entry_id: str) -> sqlite3.Row:
        row = self._row(entry_id)
        if row is None or not self._is_visible(row):
            raise EntryNotFoundError(entry_id)
        return row

    def _owned_row(self, entry_id: str) -> sqlite3.Row:
        row = self._visible_row(entry_id)
        if row["owner"] != self._identity:
            raise PermissionDeniedError(entry_id, self._identity or "")
        return row

    def _check_parent(self, parent_id: Optional[str]) -> None:
        if parent_id is None:
            return
        parent = self._owned_row(parent_id)
        if parent["type"] != EntryType.FOLDER.value:
            raise ValidationError("Parent must be a folder", field="parent_id", value=parent_id)

    def _check_unique(
        self,
        name: str,
        parent_id: Optional[str],
        entry_type: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        # A folder and a file may share a name; two entries of one type may not.
        row = self._require().execute(
            "SELECT id FROM entries WHERE owner = ? AND IFNULL(parent_id, '') = IFNULL(?, '') "
            "AND type = ? AND name = ? AND id != IFNULL(?, '')",
            (self._identity, parent_id, entry_type, name, exclude_id),
        ).fetchone()
        if row is not None:
            raise DuplicateNameError(name, parent_id=parent_id)

    def _invalidate(
        self,
        parents: Iterable[Optional[str]] = (),
        identities: Iterable[str] = (),
    ) -> None:
        parents = set(parents)
        identities = set(identities)
        self._cache.delete_where(lambda key: key[1] in parents or key[0] in identities)

    def _shared_with(self, entry_ids: Iterable[str]) -> List[str]:
        ids = list(entry_ids)
        if not ids:
            return []
        placeholders = ",".join("?" * len(ids))
        return [
            row["identity"]
            for row in self._require().execute(
                f"SELECT DISTINCT identity FROM shares WHERE entry_id IN ({placeholders})", ids
            )
        ]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list(self, parent_id: Optional[str] = None) -> List[NamespaceEntry]:
        """
        List the entries of a folder (or the root) visible to the identity.

        At the root: the identity's own root entries plus every entry
        shared with it directly. Inside a folder: all children, provided
        the folder is owned by or shared (directly or through an ancestor)
        with the identity. Folders come first, then names in code-point order.

        Raises:
            EntryNotFoundError: If the folder is not visible
        """
        identity = self._identity
        self._require()
        return await self._coalescer.run(
            ("list", identity, parent_id),
            lambda: self._list(identity, parent_id),
        )

    async def _list(self, identity: Optional[str], parent_id: Optional[str]) -> List[NamespaceEntry]:
        key = (identity, parent_id)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        conn = self._require()
        if parent_id is None:
            rows = conn.execute(
                "SELECT * FROM entries WHERE (parent_id IS NULL AND owner = ?) "
                "OR id IN (SELECT entry_id FROM shares WHERE identity = ?) " + _ORDER,
                (identity, identity),
            ).fetchall()
        else:
            folder = self._visible_row(parent_id)
            if folder["type"] != EntryType.FOLDER.value:
                raise ValidationError("Not a folder", field="parent_id", value=parent_id)
            rows = conn.execute(
                "SELECT * FROM entries WHERE parent_id = ? " + _ORDER, (parent_id,)
            ).fetchall()

        entries = self._entries_from_rows(rows)
        self._cache.set(key, entries)
        return list(entries)

    async def get(self, entry_id: str) -> NamespaceEntry:
        """
        Fetch one visible entry.

        Raises:
            EntryNotFoundError: If it does not exist or is not visible
        """
        self._require()
        return await self._coalescer.run(
            ("get", self._identity, entry_id),
            self._make_get(entry_id),
        )

    def _make_get(self, entry_id: str):
        async def _get() -> NamespaceEntry:
            return self._entries_from_rows([self._visible_row(entry_id)])[0]
        return _get

    async def find(
        self,
        name: str,
        parent_id: Optional[str] = None,
        entry_type: Optional[EntryType] = None,
    ) -> Optional[NamespaceEntry]:
        """Owned sibling named ``name`` under ``parent_id``, if any, optionally of one type."""
        sql = "SELECT * FROM entries WHERE owner = ? AND IFNULL(parent_id, '') = IFNULL(?, '') AND name = ?"
        params: List[Any] = [self._identity, parent_id, name]
        if entry_type is not None:
            sql += " AND type = ?"
            params.append(entry_type.value)
        row = self._require().execute(sql + " ORDER BY type", params).fetchone()
        return self._entries_from_rows([row])[0] if row else None

    async def all_entries(self) -> List[NamespaceEntry]:
        """Every entry owned by the identity, parents before children."""
        rows = self._require().execute(
            "SELECT * FROM entries WHERE owner = ? ORDER BY created_at, id", (self._identity,)
        ).fetchall()
        return _parents_first(self._entries_from_rows(rows))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, entry: NamespaceEntry) -> NamespaceEntry:
        """
        Insert a prepared entry owned by the identity.

        Raises:
            DuplicateNameError: If a sibling with the same name exists
            PermissionDeniedError: If the entry or its parent belongs to someone else
        """
        self._require()
        return await self._coalescer.run(
            ("create", self._identity, entry.parent_id, entry.type.value, entry.name),
            self._make_create(entry),
        )

    def _make_create(self, entry: NamespaceEntry):
        async def _create() -> NamespaceEntry:
            return self._insert(entry)
        return _create

    def _insert(self, entry: NamespaceEntry) -> NamespaceEntry:
        if entry.owner != self._identity:
            raise PermissionDeniedError(entry.id, self._identity or "")
        self._check_parent(entry.parent_id)
        self._check_unique(entry.name, entry.parent_id, entry.type.value)
        try:
            with self._transaction("create") as conn:
                conn.execute(
                    "INSERT INTO entries (id, type, name, parent_id, owner, created_at, "
                    "extension, size, root_hash, network_tier) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry.id,
                        entry.type.value,
                        entry.name,
                        entry.parent_id,
                        entry.owner,
                        entry.created_at.isoformat(),
                        entry.extension,
                        entry.size,
                        entry.root_hash,
                        entry.network_tier,
                    ),
                )
                conn.executemany(
                    "INSERT INTO shares (entry_id, identity) VALUES (?, ?)",
                    [(entry.id, target) for target in entry.shared_with],
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateNameError(entry.name, parent_id=entry.parent_id) from e

        self._invalidate(parents=[entry.parent_id], identities=entry.shared_with)
        _logger.info(
            "Created entry",
            extra={"entry_id": entry.id, "type": entry.type.value, "parent_id": entry.parent_id},
        )
        return entry.model_copy(update={"shared_by": None})

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> NamespaceEntry:
        """
        Create a folder.

        Raises:
            InvalidNameError: If the name is invalid
            DuplicateNameError: If a sibling with the same name exists
        """
        self._require()
        name = validate_name(name)
        entry = NamespaceEntry(
            id=generate_entry_id(),
            type=EntryType.FOLDER,
            name=name,
            parent_id=parent_id,
            owner=self._identity,
        )
        return await self._coalescer.run(
            ("create_folder", self._identity, parent_id, name),
            self._make_create(entry),
        )

    async def create_file(
        self,
        name: str,
        *,
        size: int,
        root_hash: str,
        network_tier: str,
        parent_id: Optional[str] = None,
    ) -> NamespaceEntry:
        """
        Record an uploaded file.

        Raises:
            InvalidNameError, InvalidExtensionError, FileTooLargeError,
            InvalidRootHashError: On invalid attributes (before any write)
            DuplicateNameError: If a sibling with the same name exists
        """
        self._require()
        name = validate_name(name)
        _, extension = split_filename(name)
        extension = validate_extension(extension)
        validate_file_size(size, self._config.max_file_size)
        root_hash = validate_root_hash(root_hash)
        entry = NamespaceEntry(
            id=generate_entry_id(),
            type=EntryType.FILE,
            name=name,
            parent_id=parent_id,
            owner=self._identity,
            extension=extension,
            size=size,
            root_hash=root_hash,
            network_tier=network_tier,
        )
        return await self._coalescer.run(
            ("create_file", self._identity, parent_id, name, root_hash),
            self._make_create(entry),
        )

    async def rename(self, entry_id: str, name: str) -> NamespaceEntry:
        """Rename an entry in place."""
        return await self.update(entry_id, EntryUpdate(name=name))

    async def move(self, entry_id: str, parent_id: Optional[str]) -> NamespaceEntry:
        """Move an entry under ``parent_id`` (None for the root)."""
        return await self.update(entry_id, EntryUpdate(parent_id=parent_id, move=True))

    async def update(self, entry_id: str, change: EntryUpdate) -> NamespaceEntry:
        """
        Rename and/or move an entry as one transaction.

        The duplicate-name check runs against the destination folder. A
        folder cannot be moved into itself or its own subtree.

        Raises:
            EntryNotFoundError, PermissionDeniedError, InvalidMoveError,
            DuplicateNameError, InvalidNameError
        """
        self._require()
        name = validate_name(change.name) if change.name is not None else None
        key = ("update", self._identity, entry_id, name, change.move, change.parent_id)
        return await self._coalescer.run(key, self._make_update(entry_id, name, change))

    def _make_update(self, entry_id: str, name: Optional[str], change: EntryUpdate):
        async def _update() -> NamespaceEntry:
            row = self._owned_row(entry_id)
            old_parent = row["parent_id"]
            new_parent = change.parent_id if change.move else old_parent
            new_name = name if name is not None else row["name"]

            if change.move and new_parent != old_parent:
                self._check_move(entry_id, row, new_parent)
            if row["type"] == EntryType.FILE.value and new_name != row["name"]:
                _, extension = split_filename(new_name)
                validate_extension(extension)
            self._check_unique(new_name, new_parent, row["type"], exclude_id=entry_id)

            try:
                with self._transaction("update") as conn:
                    conn.execute(
                        "UPDATE entries SET name = ?, parent_id = ? WHERE id = ?",
                        (new_name, new_parent, entry_id),
                    )
            except sqlite3.IntegrityError as e:
                raise DuplicateNameError(new_name, parent_id=new_parent) from e

            self._invalidate(
                parents=[old_parent, new_parent],
                identities=self._shared_with([entry_id]),
            )
            _logger.info(
                "Updated entry",
                extra={"entry_id": entry_id, "parent_id": new_parent, "renamed": new_name != row["name"]},
            )
            return self._entries_from_rows([self._row(entry_id)])[0]
        return _update

    def _check_move(self, entry_id: str, row: sqlite3.Row, new_parent: Optional[str]) -> None:
        if new_parent is None:
            return
        if new_parent == entry_id:
            raise InvalidMoveError(entry_id, "a folder cannot contain itself")
        dest = self._row(new_parent)
        if dest is None or not self._is_visible(dest):
            raise InvalidMoveError(entry_id, "destination folder does not exist")
        if dest["type"] != EntryType.FOLDER.value:
            raise InvalidMoveError(entry_id, "destination is not a folder")
        if dest["owner"] != self._identity:
            raise PermissionDeniedError(new_parent, self._identity or "")
        if row["type"] == EntryType.FOLDER.value:
            cycle = self._require().execute(
                _ANCESTORS_CTE + "SELECT 1 FROM ancestors WHERE id = ? LIMIT 1",
                (new_parent, entry_id),
            ).fetchone()
            if cycle is not None:
                raise InvalidMoveError(entry_id, "destination is inside the moved folder")

    async def delete(self, entry_id: str) -> List[str]:
        """
        Delete an entry and, for folders, every descendant.

        Returns:
            Ids of all deleted entries

        Raises:
            EntryNotFoundError, PermissionDeniedError
        """
        self._require()
        return await self._coalescer.run(
            ("delete", self._identity, entry_id),
            self._make_delete(entry_id),
        )

    def _make_delete(self, entry_id: str):
        async def _delete() -> List[str]:
            row = self._owned_row(entry_id)
            conn = self._require()
            closure = [
                r["id"] for r in conn.execute(_DESCENDANTS_CTE + "SELECT id FROM closure", (entry_id,))
            ]
            sharees = self._shared_with(closure)
            placeholders = ",".join("?" * len(closure))
            with self._transaction("delete") as tx:
                tx.execute(f"DELETE FROM shares WHERE entry_id IN ({placeholders})", closure)
                tx.execute(f"DELETE FROM entries WHERE id IN ({placeholders})", closure)

            self._invalidate(parents=[row["parent_id"], *closure], identities=sharees)
            _logger.info("Deleted entries", extra={"entry_id": entry_id, "count": len(closure)})
            return closure
        return _delete

    async def share(self, entry_id: str, target: str) -> NamespaceEntry:
        """
        Grant ``target`` read access to an entry (and its subtree).

        Raises:
            InvalidAddressError, EntryNotFoundError, PermissionDeniedError
        """
        return await self._set_share(entry_id, target, grant=True)

    async def unshare(self, entry_id: str, target: str) -> NamespaceEntry:
        """Revoke a share; a no-op if ``target`` had no grant."""
        return await self._set_share(entry_id, target, grant=False)

    async def _set_share(self, entry_id: str, target: str, grant: bool) -> NamespaceEntry:
        self._require()
        target = validate_address(target, "target")
        if target == self._identity:
            raise ValidationError("Cannot share an entry with its owner", field="target", value=target)
        op = "share" if grant else "unshare"
        return await self._coalescer.run(
            (op, self._identity, entry_id, target),
            self._make_share(entry_id, target, grant),
        )

    def _make_share(self, entry_id: str, target: str, grant: bool):
        async def _share() -> NamespaceEntry:
            row = self._owned_row(entry_id)
            with self._transaction("share" if grant else "unshare") as conn:
                if grant:
                    conn.execute(
                        "INSERT OR IGNORE INTO shares (entry_id, identity) VALUES (?, ?)",
                        (entry_id, target),
                    )
                else:
                    conn.execute(
                        "DELETE FROM shares WHERE entry_id = ? AND identity = ?",
                        (entry_id, target),
                    )
            self._invalidate(parents=[row["parent_id"]], identities=[target])
            _logger.info(
                "Updated share",
                extra={"entry_id": entry_id, "target": target, "granted": grant},
            )
            return self._entries_from_rows([self._row(entry_id)])[0]
        return _share

    async def import_entries(self, entries: Iterable[NamespaceEntry]) -> int:
        """
        Insert entries from a backup, skipping ids that already exist.

        Entries whose parent is missing are attached to the root; name
        collisions are skipped.

        Concurrent imports of the same batch share one run.

        Returns:
            Number of entries inserted
        """
        self._require()
        entries = list(entries)
        return await self._coalescer.run(
            ("import", self._identity, tuple(entry.id for entry in entries)),
            self._make_import(entries),
        )

    def _make_import(self, entries: List[NamespaceEntry]):
        async def _import() -> int:
            return self._import(entries)
        return _import

    def _import(self, entries: List[NamespaceEntry]) -> int:
        conn = self._require()
        imported = 0
        known = {r["id"] for r in conn.execute("SELECT id FROM entries WHERE owner = ?", (self._identity,))}
        for entry in _parents_first(entries):
            if entry.id in known:
                continue
            if entry.parent_id is not None and entry.parent_id not in known:
                entry = entry.model_copy(update={"parent_id": None})
            try:
                self._insert(entry.model_copy(update={"shared_by": None}))
            except DuplicateNameError:
                _logger.warning("Skipped duplicate during import", extra={"entry_id": entry.id})
                continue
            known.add(entry.id)
            imported += 1
        return imported


def _parents_first(entries: List[NamespaceEntry]) -> List[NamespaceEntry]:
    """Order entries so every parent precedes its children."""
    by_parent: Dict[Optional[str], List[NamespaceEntry]] = {}
    ids = {e.id for e in entries}
    for entry in entries:
        parent = entry.parent_id if entry.parent_id in ids else None
        by_parent.setdefault(parent, []).append(entry)

    ordered: List[NamespaceEntry] = []
    stack: List[Any] = list(reversed(by_parent.get(None, [])))
    while stack:
        entry = stack.pop()
        ordered.append(entry)
        stack.extend(reversed(by_parent.get(entry.id, [])))
    return ordered
