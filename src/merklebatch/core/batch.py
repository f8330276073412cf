"""
Merkle Batch Signing

Amortizes one signature across many messages: every message is hashed
into a leaf, the leaves are folded into a Merkle root, and only the root
is signed. Each message then ships with a ProofBundle (its index, its
authentication path, and the shared signature/root).

CRITICAL INVARIANTS:
1. Leaf order is the caller's message order; duplicates are distinct positions
2. Exactly N bundles for N messages, or none at all
3. The signer sees exactly the root digest
4. Bundles are verifiable offline with the root signature and a Hasher
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from merklebatch.core.hashing import Hasher, get_hasher, sha256_hasher
from merklebatch.core.proof import AuthenticationPath, verify_proof
from merklebatch.core.tree import MerkleTree
from merklebatch.protocol.errors import ConfigurationError, EmptyBatchError, SignerFailure
from merklebatch.signing.base import BatchSigner, BatchVerifier

logger = logging.getLogger(__name__)


# ===========================================================================
# Proof Bundle
# ===========================================================================


@dataclass(frozen=True)
class ProofBundle:
    """
    Per-message proof of membership in a signed batch.

    Attributes:
        index: Position of the message in the batch
        authentication_path: Sibling digests, leaf-to-root
        signature: Signature over the root (shared across the batch)
        root: Merkle root (shared across the batch)
        key_id: Identifier of the signing key
        leaf_count: Size of the batch the bundle was issued from

    The root signature covers the root only. leaf_count travels unsigned,
    so callers that know the real batch size should pass it to
    verify_bundle rather than rely on the bundle's value.
    """
    index: int
    authentication_path: AuthenticationPath
    signature: bytes
    root: bytes
    key_id: str = ""
    leaf_count: int = 0

    @property
    def proof_bytes(self) -> int:
        return sum(len(p) for p in self.authentication_path)

    def overhead_bytes(self, batch_size: Optional[int] = None) -> float:
        """
        Per-message overhead: the signature amortized over the batch plus
        this message's authentication path.
        """
        n = batch_size or self.leaf_count
        if n < 1:
            raise EmptyBatchError("Batch size must be known to amortize the signature")
        return len(self.signature) / n + self.proof_bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "authenticationPath": [p.hex() for p in self.authentication_path],
            "signature": self.signature.hex(),
            "root": self.root.hex(),
            "keyId": self.key_id,
            "leafCount": self.leaf_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProofBundle":
        return cls(
            index=int(data["index"]),
            authentication_path=[bytes.fromhex(p) for p in data["authenticationPath"]],
            signature=bytes.fromhex(data["signature"]),
            root=bytes.fromhex(data["root"]),
            key_id=data.get("keyId", ""),
            leaf_count=int(data.get("leafCount", 0)),
        )


# ===========================================================================
# Signed Batch
# ===========================================================================


@dataclass
class SignedBatch:
    """
    Result of signing a batch.

    Unpacks as (root, bundles):

        root, bundles = sign_batch(messages, hasher, signer)
    """
    root: bytes
    signature: bytes
    key_id: str
    hasher_name: str
    height: int
    digest_size: int
    bundles: List[ProofBundle] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        return iter((self.root, self.bundles))

    def __len__(self) -> int:
        return len(self.bundles)

    @property
    def size(self) -> int:
        return len(self.bundles)

    def per_message_overhead(self) -> float:
        """signature_length / N + height * digest_size"""
        if self.size == 0:
            raise EmptyBatchError("Batch has no bundles")
        return len(self.signature) / self.size + self.height * self.digest_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root.hex(),
            "signature": self.signature.hex(),
            "keyId": self.key_id,
            "hasher": self.hasher_name,
            "height": self.height,
            "digestSize": self.digest_size,
            "bundles": [b.to_dict() for b in self.bundles],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignedBatch":
        return cls(
            root=bytes.fromhex(data["root"]),
            signature=bytes.fromhex(data["signature"]),
            key_id=data.get("keyId", ""),
            hasher_name=data["hasher"],
            height=int(data["height"]),
            digest_size=int(data["digestSize"]),
            bundles=[ProofBundle.from_dict(b) for b in data.get("bundles", [])],
        )


# ===========================================================================
# Orchestration
# ===========================================================================


def _sign_root(root: bytes, signer: BatchSigner) -> bytes:
    try:
        signature = signer.sign(root)
    except SignerFailure:
        raise
    except Exception as exc:
        raise SignerFailure(f"Signer failed on batch root: {exc}") from exc

    if not isinstance(signature, (bytes, bytearray)) or len(signature) == 0:
        raise SignerFailure(
            f"Signer returned an invalid signature of type {type(signature).__name__}"
        )
    return bytes(signature)


def sign_batch(
    messages: Sequence[bytes],
    hasher: Optional[Hasher],
    signer: BatchSigner,
    workers: int = 1,
) -> SignedBatch:
    """
    Hash, commit and sign a batch of messages.

    Args:
        messages: Ordered messages; identical messages are distinct positions
        hasher: Compression function (SHA-256 when None)
        signer: External signer, invoked once on the root
        workers: Thread count for tree construction

    Returns:
        SignedBatch holding the root, the signature and one bundle per message

    Raises:
        EmptyBatchError: If messages is empty (the signer is not invoked)
        SignerFailure: If the signer raises or returns no signature
    """
    if len(messages) == 0:
        raise EmptyBatchError("Cannot sign an empty batch")

    hasher = hasher or sha256_hasher()
    tree = MerkleTree.from_messages(messages, hasher, workers)
    root = tree.root

    signature = _sign_root(root, signer)
    key_id = getattr(signer, "key_id", "")

    leaf_count = tree.leaf_count
    bundles = [
        ProofBundle(
            index=i,
            authentication_path=tree.get_proof(i),
            signature=signature,
            root=root,
            key_id=key_id,
            leaf_count=leaf_count,
        )
        for i in range(leaf_count)
    ]

    batch = SignedBatch(
        root=root,
        signature=signature,
        key_id=key_id,
        hasher_name=hasher.name,
        height=tree.height,
        digest_size=hasher.digest_size,
        bundles=bundles,
    )

    logger.info(
        "Signed batch: messages=%d height=%d root=%s sig_bytes=%d overhead_per_msg=%.2f",
        leaf_count,
        tree.height,
        root.hex()[:16],
        len(signature),
        batch.per_message_overhead(),
    )
    return batch


def verify_bundle(
    message: bytes,
    bundle: ProofBundle,
    hasher: Optional[Hasher],
    verifier: BatchVerifier,
    expected_root: Optional[bytes] = None,
    leaf_count: Optional[int] = None,
) -> bool:
    """
    Verify that a message belongs to a signed batch.

    Checks the inclusion proof against the bundle's root and the root
    signature via the verifier. When expected_root is given the bundle's
    root must also equal it. leaf_count, when given, replaces the batch
    size carried in the bundle.

    Returns:
        True only if every check passes; never raises on bad input
    """
    hasher = hasher or sha256_hasher()

    if expected_root is not None and bytes(expected_root) != bundle.root:
        return False

    try:
        leaf = hasher.hash(message)
    except TypeError:
        return False

    if leaf_count is None:
        leaf_count = bundle.leaf_count or None
    if not verify_proof(leaf, bundle.index, bundle.authentication_path, bundle.root, hasher, leaf_count):
        logger.debug("Inclusion proof rejected for index %s", bundle.index)
        return False

    if not verifier.verify(bundle.root, bundle.signature, bundle.key_id):
        logger.debug("Root signature rejected for key %s", bundle.key_id)
        return False

    return True


def verify_batch(
    messages: Sequence[bytes],
    batch: SignedBatch,
    verifier: BatchVerifier,
) -> bool:
    """Verify every message of a batch against its bundle."""
    if len(messages) != batch.size or batch.size == 0:
        return False

    try:
        hasher = get_hasher(batch.hasher_name)
    except ConfigurationError:
        return False

    return all(
        verify_bundle(m, b, hasher, verifier, expected_root=batch.root, leaf_count=batch.size)
        for m, b in zip(messages, batch.bundles)
    )
