from .core.hashing import Hasher, HashlibHasher, get_hasher
from .core.tree import MerkleTree, build_tree, compute_merkle_root, get_proof, tree_height
from .core.proof import MerkleProof, verify_proof, check_proof
from .core.batch import ProofBundle, SignedBatch, sign_batch, verify_bundle, verify_batch
from .protocol.codec import encode_bundle, decode_bundle
from .protocol.errors import (
    MerkleBatchError,
    EmptyBatchError,
    IndexOutOfRangeError,
    ProofInvalidError,
    SignerFailure,
    CodecError,
    ConfigurationError,
)
from .signing import BatchSigner, BatchVerifier, Ed25519BatchSigner, Ed25519BatchVerifier

__version__ = "0.1.0"

__all__ = [
    "Hasher",
    "HashlibHasher",
    "get_hasher",
    "MerkleTree",
    "build_tree",
    "compute_merkle_root",
    "get_proof",
    "tree_height",
    "MerkleProof",
    "verify_proof",
    "check_proof",
    "ProofBundle",
    "SignedBatch",
    "sign_batch",
    "verify_bundle",
    "verify_batch",
    "encode_bundle",
    "decode_bundle",
    "MerkleBatchError",
    "EmptyBatchError",
    "IndexOutOfRangeError",
    "ProofInvalidError",
    "SignerFailure",
    "CodecError",
    "ConfigurationError",
    "BatchSigner",
    "BatchVerifier",
    "Ed25519BatchSigner",
    "Ed25519BatchVerifier",
]
