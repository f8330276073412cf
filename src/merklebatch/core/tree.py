"""
Merkle Tree Implementation

Binary hash tree over an ordered batch of leaf digests, stored as a list
of flat layers (layers[0] = leaves, layers[-1] = [root]).

Key features:
- Pluggable Hasher (see merklebatch.core.hashing)
- Odd layers pair their trailing node with itself, at every layer
- Parent/sibling relationships by index arithmetic (parent = i // 2,
  sibling = i ^ 1, clamped to i for the trailing odd node)
- Layers built once and reused for every proof in the batch
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import List, Optional, Sequence

from merklebatch.core.hashing import Hasher, sha256_hasher
from merklebatch.protocol.errors import EmptyBatchError, IndexOutOfRangeError

logger = logging.getLogger(__name__)

# Below this many pairs a layer is hashed inline even when workers > 1.
_PARALLEL_MIN_PAIRS = 64


# ===========================================================================
# Index arithmetic
# ===========================================================================


def tree_height(leaf_count: int) -> int:
    """
    Number of layers above the leaves: ceil(log2(n)), 0 for a single leaf.

    Raises:
        EmptyBatchError: If leaf_count < 1
    """
    if leaf_count < 1:
        raise EmptyBatchError()
    return (leaf_count - 1).bit_length()


def sibling_index(index: int, layer_size: int) -> int:
    """Index of the node paired with `index` in a layer of `layer_size` nodes."""
    sibling = index ^ 1
    if sibling >= layer_size:
        # Trailing node of an odd layer is paired with itself
        return index
    return sibling


# ===========================================================================
# Layer construction
# ===========================================================================


def _hash_pairs(layer: Sequence[bytes], start: int, stop: int, hasher: Hasher) -> List[bytes]:
    out: List[bytes] = []
    size = len(layer)
    for i in range(start, stop, 2):
        left = layer[i]
        right = layer[i + 1] if i + 1 < size else left
        out.append(hasher.combine(left, right))
    return out


def next_layer(
    layer: Sequence[bytes],
    hasher: Hasher,
    executor: Optional[concurrent.futures.Executor] = None,
    workers: int = 1,
) -> List[bytes]:
    """
    Collapse one layer into its parent layer.

    When an executor is supplied the layer is split into contiguous chunks
    hashed concurrently; the returned layer is complete before this call
    returns, so callers get a barrier between layers for free.
    """
    size = len(layer)
    pairs = (size + 1) // 2

    if executor is None or workers <= 1 or pairs < _PARALLEL_MIN_PAIRS:
        return _hash_pairs(layer, 0, size, hasher)

    chunk_pairs = (pairs + workers - 1) // workers
    futures = []
    for first_pair in range(0, pairs, chunk_pairs):
        start = first_pair * 2
        stop = min(size, (first_pair + chunk_pairs) * 2)
        futures.append(executor.submit(_hash_pairs, layer, start, stop, hasher))

    parent: List[bytes] = []
    for fut in futures:
        parent.extend(fut.result())
    return parent


def _check_leaves(leaves: Sequence[bytes], hasher: Hasher) -> None:
    if len(leaves) == 0:
        raise EmptyBatchError()

    expected = hasher.digest_size
    for i, leaf in enumerate(leaves):
        if not isinstance(leaf, (bytes, bytearray)):
            raise TypeError(f"Leaf {i} must be bytes, got {type(leaf).__name__}")
        if len(leaf) != expected:
            raise ValueError(
                f"Leaf {i} has {len(leaf)} bytes, expected {expected} for {hasher.name}"
            )


def build_layers(
    leaves: Sequence[bytes],
    hasher: Optional[Hasher] = None,
    workers: int = 1,
) -> List[List[bytes]]:
    """
    Build every layer of the tree, leaves first.

    Args:
        leaves: Ordered leaf digests (each hasher.digest_size bytes)
        hasher: Compression function (SHA-256 by default)
        workers: Thread count for pairwise hashing within a layer

    Returns:
        List of layers; layers[0] is a copy of the leaves and
        layers[-1] holds exactly the root

    Raises:
        EmptyBatchError: If leaves is empty
    """
    hasher = hasher or sha256_hasher()
    _check_leaves(leaves, hasher)

    layers: List[List[bytes]] = [[bytes(leaf) for leaf in leaves]]

    if workers > 1 and len(leaves) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            while len(layers[-1]) > 1:
                layers.append(next_layer(layers[-1], hasher, executor, workers))
    else:
        while len(layers[-1]) > 1:
            layers.append(next_layer(layers[-1], hasher))

    logger.debug(
        "Built Merkle tree: leaves=%d height=%d hasher=%s",
        len(leaves),
        len(layers) - 1,
        hasher.name,
    )
    return layers


def compute_merkle_root(
    leaves: Sequence[bytes],
    hasher: Optional[Hasher] = None,
    workers: int = 1,
) -> bytes:
    """
    Compute the Merkle root of an ordered sequence of leaf digests.

    A single leaf is its own root.

    Raises:
        EmptyBatchError: If leaves is empty
    """
    return build_layers(leaves, hasher, workers)[-1][0]


# Name used by callers that think of this as "building" the tree.
build_tree = compute_merkle_root


def _path_from_layers(layers: Sequence[Sequence[bytes]], index: int) -> List[bytes]:
    leaf_count = len(layers[0])
    if index < 0 or index >= leaf_count:
        raise IndexOutOfRangeError(index, leaf_count)

    path: List[bytes] = []
    current = index
    for layer in layers[:-1]:
        path.append(layer[sibling_index(current, len(layer))])
        current //= 2
    return path


def get_proof(
    index: int,
    leaves: Sequence[bytes],
    hasher: Optional[Hasher] = None,
) -> List[bytes]:
    """
    Authentication path for the leaf at `index`, ordered leaf-to-root.

    For the trailing node of an odd layer the path entry is the node's
    own digest.

    Raises:
        EmptyBatchError: If leaves is empty
        IndexOutOfRangeError: If index is outside [0, len(leaves))
    """
    if len(leaves) > 0 and not 0 <= index < len(leaves):
        raise IndexOutOfRangeError(index, len(leaves))
    return _path_from_layers(build_layers(leaves, hasher), index)


# ===========================================================================
# Merkle Tree
# ===========================================================================


class MerkleTree:
    """
    Merkle tree over a fixed batch of leaf digests.

    Layers are computed once at construction and reused for every proof,
    so producing all N proofs costs O(N) hashing plus O(log N) per proof.

    Usage:
        tree = MerkleTree(leaves)
        root = tree.root
        path = tree.get_proof(3)
    """

    def __init__(
        self,
        leaves: Sequence[bytes],
        hasher: Optional[Hasher] = None,
        workers: int = 1,
    ):
        self._hasher = hasher or sha256_hasher()
        self._layers = build_layers(leaves, self._hasher, workers)

    @classmethod
    def from_messages(
        cls,
        messages: Sequence[bytes],
        hasher: Optional[Hasher] = None,
        workers: int = 1,
    ) -> "MerkleTree":
        """Hash raw messages into leaves and build the tree."""
        hasher = hasher or sha256_hasher()
        return cls([hasher.hash(m) for m in messages], hasher, workers)

    @property
    def hasher(self) -> Hasher:
        return self._hasher

    @property
    def root(self) -> bytes:
        return self._layers[-1][0]

    @property
    def root_hex(self) -> str:
        return self.root.hex()

    @property
    def height(self) -> int:
        return len(self._layers) - 1

    @property
    def leaf_count(self) -> int:
        return len(self._layers[0])

    @property
    def layers(self) -> List[List[bytes]]:
        """Copy of every layer, leaves first."""
        return [list(layer) for layer in self._layers]

    def get_leaf(self, index: int) -> bytes:
        if index < 0 or index >= self.leaf_count:
            raise IndexOutOfRangeError(index, self.leaf_count)
        return self._layers[0][index]

    def get_all_leaves(self) -> List[bytes]:
        return list(self._layers[0])

    def get_proof(self, index: int) -> List[bytes]:
        """
        Authentication path for a leaf, ordered leaf-to-root.

        Raises:
            IndexOutOfRangeError: If index is outside [0, leaf_count)
        """
        return _path_from_layers(self._layers, index)

    def __len__(self) -> int:
        return self.leaf_count

    def __repr__(self) -> str:
        return (
            f"MerkleTree(leaves={self.leaf_count}, height={self.height}, "
            f"root={self.root_hex[:16]}...)"
        )
