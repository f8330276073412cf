"""
Merkle inclusion proof verification.

Recomputes the root from a leaf digest and its authentication path. The
side of the running digest at each layer is read from the index bits:
even index -> current is the left child, odd index -> current is the right.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from merklebatch.core.hashing import Hasher, sha256_hasher
from merklebatch.core.tree import tree_height
from merklebatch.protocol.errors import ProofInvalidError

AuthenticationPath = List[bytes]


# ===========================================================================
# Merkle Proof
# ===========================================================================


@dataclass
class MerkleProof:
    """
    Inclusion proof for a leaf in a Merkle tree.

    Attributes:
        leaf: Leaf digest being proved
        index: Position of the leaf in the batch
        path: Sibling digests from leaf to root
        root: Expected root digest
    """
    leaf: bytes
    index: int
    path: AuthenticationPath
    root: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leaf": self.leaf.hex(),
            "index": self.index,
            "path": [p.hex() for p in self.path],
            "root": self.root.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MerkleProof":
        return cls(
            leaf=bytes.fromhex(data["leaf"]),
            index=int(data["index"]),
            path=[bytes.fromhex(p) for p in data["path"]],
            root=bytes.fromhex(data["root"]),
        )

    def verify(self, hasher: Optional[Hasher] = None, leaf_count: Optional[int] = None) -> bool:
        return verify_proof(self.leaf, self.index, self.path, self.root, hasher, leaf_count)


# ===========================================================================
# Verification
# ===========================================================================


def _recompute_root(leaf: bytes, index: int, path: Sequence[bytes], hasher: Hasher) -> bytes:
    current = leaf
    idx = index
    for sibling in path:
        if idx % 2 == 0:
            current = hasher.combine(current, sibling)
        else:
            current = hasher.combine(sibling, current)
        idx //= 2
    return current


def check_proof(
    leaf: bytes,
    index: int,
    path: Sequence[bytes],
    expected_root: bytes,
    hasher: Optional[Hasher] = None,
    leaf_count: Optional[int] = None,
) -> None:
    """
    Verify an inclusion proof, raising on failure.

    Args:
        leaf: Leaf digest
        index: Claimed leaf index
        path: Authentication path, leaf-to-root
        expected_root: Root the proof must reproduce
        hasher: Compression function (SHA-256 by default)
        leaf_count: Batch size, if known; enables index and path-length checks

    Raises:
        ProofInvalidError: If any check or the recomputed root fails
    """
    hasher = hasher or sha256_hasher()
    size = hasher.digest_size

    if isinstance(index, bool) or not isinstance(index, int):
        raise ProofInvalidError("index must be an integer")
    if index < 0:
        raise ProofInvalidError(f"negative index {index}")

    digests = [leaf, expected_root, *path]
    for d in digests:
        if not isinstance(d, (bytes, bytearray)):
            raise ProofInvalidError("digests must be bytes")
        if len(d) != size:
            raise ProofInvalidError(f"digest of {len(d)} bytes, expected {size}")

    if leaf_count is not None:
        if leaf_count < 1:
            raise ProofInvalidError(f"invalid batch size {leaf_count}")
        if index >= leaf_count:
            raise ProofInvalidError(f"index {index} outside batch of {leaf_count}")
        expected_len = tree_height(leaf_count)
        if len(path) != expected_len:
            raise ProofInvalidError(
                f"path has {len(path)} entries, expected {expected_len} for batch of {leaf_count}"
            )

    # An index needing more bits than the path has layers cannot be in the tree
    if index >> len(path) != 0:
        raise ProofInvalidError(f"index {index} too large for path of {len(path)} entries")

    if _recompute_root(bytes(leaf), index, path, hasher) != bytes(expected_root):
        raise ProofInvalidError("recomputed root does not match expected root")


def verify_proof(
    leaf: bytes,
    index: int,
    path: Sequence[bytes],
    expected_root: bytes,
    hasher: Optional[Hasher] = None,
    leaf_count: Optional[int] = None,
) -> bool:
    """
    Verify a Merkle inclusion proof.

    Fails closed: malformed input, wrong path length, out-of-range index
    or a root mismatch all return False rather than raising.

    Returns:
        True if the proof reproduces expected_root
    """
    try:
        check_proof(leaf, index, path, expected_root, hasher, leaf_count)
    except (ProofInvalidError, TypeError, ValueError):
        return False
    return True
