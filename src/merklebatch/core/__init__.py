"""
Merkle batching core.

- hashing: pluggable compression function
- tree: layer construction, roots and authentication paths
- proof: inclusion proof verification
- batch: batch signing orchestration and proof bundles
"""

from merklebatch.core.hashing import Hasher, HashlibHasher, get_hasher, available_hashers
from merklebatch.core.tree import (
    MerkleTree,
    build_layers,
    build_tree,
    compute_merkle_root,
    get_proof,
    tree_height,
)
from merklebatch.core.proof import MerkleProof, AuthenticationPath, verify_proof, check_proof
from merklebatch.core.batch import (
    ProofBundle,
    SignedBatch,
    sign_batch,
    verify_bundle,
    verify_batch,
)

__all__ = [
    # Hashing
    "Hasher",
    "HashlibHasher",
    "get_hasher",
    "available_hashers",
    # Tree
    "MerkleTree",
    "build_layers",
    "build_tree",
    "compute_merkle_root",
    "get_proof",
    "tree_height",
    # Proofs
    "MerkleProof",
    "AuthenticationPath",
    "verify_proof",
    "check_proof",
    # Batches
    "ProofBundle",
    "SignedBatch",
    "sign_batch",
    "verify_bundle",
    "verify_batch",
]
