"""
Signing boundary for batch roots.

The batching core never looks inside the signature scheme: it hands the
root digest to a BatchSigner and stores the returned bytes unchanged.
Any fixed-digest scheme (Ed25519, SPHINCS+, an HSM-backed key) can be
plugged in by implementing these protocols.
"""

from __future__ import annotations

from typing import Optional, Protocol


class BatchSigner(Protocol):
    """
    Protocol for signing a batch root.

    Implementations MUST:
    - Sign exactly the digest they are given
    - Return the signature as opaque bytes
    - Provide key_id for verification lookup
    """

    @property
    def key_id(self) -> str:
        """Unique identifier for the signing key."""
        ...

    def sign(self, digest: bytes) -> bytes:
        """Sign a root digest. Returns the raw signature."""
        ...


class BatchVerifier(Protocol):
    """
    Protocol for verifying a batch root signature.

    Implementations MUST:
    - Support offline verification (no network required)
    - Return False for invalid signatures or unknown keys, never raise
    """

    def verify(self, digest: bytes, signature: bytes, key_id: str) -> bool:
        ...

    def get_public_key(self, key_id: str) -> Optional[bytes]:
        ...
