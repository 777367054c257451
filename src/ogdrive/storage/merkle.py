"""
Merkle Hash Engine

Deterministic content addressing for the 0G storage network. A blob is
split into 256-byte chunks; chunk leaves are keccak256 hashes of the
zero-padded chunks. Each 1024-chunk segment gets its own Merkle root and
the file root is the Merkle root over the segment roots.

The submission descriptor decomposes the chunk count into power-of-two
subtrees, which is the layout the flow contract prices by sector.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from eth_utils import keccak

from ogdrive.constants import CHUNK_SIZE, SEGMENT_CHUNKS, SEGMENT_SIZE
from ogdrive.errors.storage import (
    HashDerivationError,
    MissingInputError,
    SubmissionConstructionError,
)

ProofStep = Tuple[bytes, bool]
"""(sibling hash, sibling is on the left)."""


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Parent node hash: keccak256(left || right)."""
    return keccak(left + right)


def leaf_hash(chunk: bytes) -> bytes:
    """Leaf hash of one chunk, zero-padded to CHUNK_SIZE."""
    if len(chunk) < CHUNK_SIZE:
        chunk = chunk + b"\x00" * (CHUNK_SIZE - len(chunk))
    return keccak(chunk)


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


class MerkleTree:
    """
    Binary Merkle tree over precomputed leaf hashes.

    An unpaired last node at any level is promoted unchanged to the
    next level.

    Example:
        >>> tree = MerkleTree([leaf_hash(b"a"), leaf_hash(b"b")])
        >>> tree.root == hash_pair(leaf_hash(b"a"), leaf_hash(b"b"))
        True
    """

    def __init__(self, leaves: Sequence[bytes]) -> None:
        if not leaves:
            raise ValueError("MerkleTree needs at least one leaf")
        self._levels: List[List[bytes]] = [list(leaves)]
        while len(self._levels[-1]) > 1:
            level = self._levels[-1]
            parent = [hash_pair(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
            if len(level) % 2:
                parent.append(level[-1])
            self._levels.append(parent)

    @property
    def root(self) -> bytes:
        return self._levels[-1][0]

    @property
    def root_hex(self) -> str:
        return to_hex(self.root)

    @property
    def leaf_count(self) -> int:
        return len(self._levels[0])

    @property
    def height(self) -> int:
        return len(self._levels) - 1

    def proof(self, index: int) -> List[ProofStep]:
        """
        Inclusion proof for the leaf at ``index``, leaf to root.

        Levels where the node was promoted contribute no step.
        """
        if not 0 <= index < self.leaf_count:
            raise IndexError(f"leaf index {index} out of range")
        steps: List[ProofStep] = []
        for level in self._levels[:-1]:
            sibling = index ^ 1
            if sibling < len(level):
                steps.append((level[sibling], sibling < index))
            index //= 2
        return steps


def verify_proof(leaf: bytes, proof: Sequence[ProofStep], root: bytes) -> bool:
    """Recompute the root from a leaf and its proof."""
    node = leaf
    for sibling, sibling_is_left in proof:
        node = hash_pair(sibling, node) if sibling_is_left else hash_pair(node, sibling)
    return node == root


@dataclass(frozen=True)
class SubmissionNode:
    root: bytes
    height: int


@dataclass(frozen=True)
class Submission:
    """
    Ephemeral per-attempt submission descriptor.

    Attributes:
        length: Blob size in bytes.
        tags: Uniqueness tag, fresh for every attempt.
        nodes: Power-of-two chunk subtrees, largest first.
    """

    length: int
    tags: bytes
    nodes: Tuple[SubmissionNode, ...]

    @property
    def sectors(self) -> int:
        return sum(1 << node.height for node in self.nodes)

    def as_contract_arg(self) -> tuple:
        """Tuple form accepted by the flow contract's ``submit``."""
        return (self.length, self.tags, [(n.root, n.height) for n in self.nodes])


def unique_tag(now_ms: Optional[int] = None) -> bytes:
    """
    Uniqueness tag: timestamp in ms plus a random offset below one million.

    Rendered as even-length hex bytes so identical content can be
    resubmitted as a distinct flow entry.
    """
    value = (now_ms if now_ms is not None else int(time.time() * 1000)) + random.randrange(1_000_000)
    hex_value = format(value, "x")
    if len(hex_value) % 2:
        hex_value = "0" + hex_value
    return bytes.fromhex(hex_value)


class Blob:
    """
    In-memory byte blob with its Merkle layout.

    Example:
        ```python
        blob = Blob.from_path("report.pdf")
        print(blob.root_hash)             # 0x + 64 hex
        submission = blob.create_submission()
        ```
    """

    def __init__(self, data: bytes, name: Optional[str] = None) -> None:
        if not data:
            raise MissingInputError("Blob is empty")
        self._data = bytes(data)
        self.name = name
        self._tree: Optional[MerkleTree] = None
        self._segment_trees: dict[int, MerkleTree] = {}

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "Blob":
        """
        Read a file into a Blob.

        Raises:
            MissingInputError: If the file is empty
            HashDerivationError: If the file cannot be read
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise HashDerivationError(
                f"cannot read {path.name}: {e.strerror or e}",
                details={"path": str(path)},
            ) from e
        return cls(data, name=path.name)

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def num_chunks(self) -> int:
        return -(-self.size // CHUNK_SIZE)

    @property
    def num_segments(self) -> int:
        return -(-self.size // SEGMENT_SIZE)

    def iter_chunks(self, start: int = 0, end: Optional[int] = None) -> Iterator[bytes]:
        end = self.num_chunks if end is None else min(end, self.num_chunks)
        for i in range(start, end):
            yield self._data[i * CHUNK_SIZE:(i + 1) * CHUNK_SIZE]

    def segment(self, index: int) -> bytes:
        """Raw bytes of one segment (the last one may be short)."""
        if not 0 <= index < self.num_segments:
            raise IndexError(f"segment index {index} out of range")
        return self._data[index * SEGMENT_SIZE:(index + 1) * SEGMENT_SIZE]

    def segment_tree(self, index: int) -> MerkleTree:
        tree = self._segment_trees.get(index)
        if tree is None:
            first = index * SEGMENT_CHUNKS
            leaves = [leaf_hash(c) for c in self.iter_chunks(first, first + SEGMENT_CHUNKS)]
            if not leaves:
                raise IndexError(f"segment index {index} out of range")
            tree = MerkleTree(leaves)
            self._segment_trees[index] = tree
        return tree

    def merkle_tree(self) -> MerkleTree:
        """
        File-level tree over segment roots.

        Raises:
            HashDerivationError: If hashing fails
        """
        if self._tree is None:
            try:
                self._tree = MerkleTree(
                    [self.segment_tree(i).root for i in range(self.num_segments)]
                )
            except (ValueError, IndexError) as e:
                raise HashDerivationError(str(e)) from e
        return self._tree

    @property
    def root_hash(self) -> str:
        """Root hash as ``0x`` + 64 lowercase hex characters."""
        return self.merkle_tree().root_hex

    def segment_proof(self, index: int) -> List[ProofStep]:
        return self.merkle_tree().proof(index)

    def create_submission(self, tags: Optional[bytes] = None) -> Submission:
        """
        Build a fresh submission descriptor.

        Args:
            tags: Uniqueness tag; a new one is generated when omitted.

        Raises:
            SubmissionConstructionError: If the chunk layout cannot be built
        """
        try:
            nodes = []
            offset = 0
            remaining = self.num_chunks
            while remaining:
                height = remaining.bit_length() - 1
                count = 1 << height
                leaves = [leaf_hash(c) for c in self.iter_chunks(offset, offset + count)]
                nodes.append(SubmissionNode(root=MerkleTree(leaves).root, height=height))
                offset += count
                remaining -= count
        except ValueError as e:
            raise SubmissionConstructionError(str(e)) from e
        return Submission(
            length=self.size,
            tags=tags if tags is not None else unique_tag(),
            nodes=tuple(nodes),
        )


def root_hash_of(data: bytes) -> str:
    """Root hash of a byte string."""
    return Blob(data).root_hash
