"""
Ed25519 signing for batch roots.

REQUIREMENTS:
- Key IDs are SHA256 hashes of public keys (first 16 hex chars)
- Verification is offline-capable (no network required)

Ed25519 signatures are 64 bytes. The batching math does not depend on
this; larger schemes simply amortize better.
"""

from __future__ import annotations

import hashlib
from typing import Dict, List, Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives import serialization
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm

from merklebatch.protocol.errors import ConfigurationError


def key_id_for(public_bytes: bytes) -> str:
    return hashlib.sha256(public_bytes).hexdigest()[:16]


class Ed25519BatchSigner:
    """
    Ed25519 signer for batch roots.

    Implements BatchSigner protocol.

    Usage:
        # From raw key bytes (32 bytes)
        signer = Ed25519BatchSigner.from_private_bytes(key_bytes)

        # From PEM file
        signer = Ed25519BatchSigner.from_pem_file("/path/to/key.pem")

        # Generate new key (for testing and demos)
        signer = Ed25519BatchSigner.generate()
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self._public_key_bytes = self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self._key_id = key_id_for(self._public_key_bytes)

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def public_key_bytes(self) -> bytes:
        """Raw 32-byte public key."""
        return self._public_key_bytes

    def sign(self, digest: bytes) -> bytes:
        """Sign a root digest. Returns 64-byte signature."""
        return self._private_key.sign(digest)

    @classmethod
    def generate(cls) -> "Ed25519BatchSigner":
        """Generate a new Ed25519 key pair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, key_bytes: bytes) -> "Ed25519BatchSigner":
        """Create signer from raw 32-byte private key."""
        return cls(Ed25519PrivateKey.from_private_bytes(key_bytes))

    @classmethod
    def from_pem_file(cls, path: str, password: Optional[bytes] = None) -> "Ed25519BatchSigner":
        """Load signer from PEM-encoded private key file."""
        with open(path, "rb") as f:
            pem_data = f.read()
        try:
            private_key = serialization.load_pem_private_key(pem_data, password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise ConfigurationError(f"Cannot load private key from {path}: {e}") from e
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ConfigurationError(
                f"Expected Ed25519 private key in {path}, got {type(private_key).__name__}"
            )
        return cls(private_key)

    def private_key_bytes(self) -> bytes:
        """Raw 32-byte private key."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def export_private_pem(self, password: Optional[bytes] = None) -> bytes:
        if password:
            encryption = serialization.BestAvailableEncryption(password)
        else:
            encryption = serialization.NoEncryption()
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        )

    def export_public_pem(self) -> bytes:
        """Export public key as PEM for distribution to verifiers."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )


class Ed25519BatchVerifier:
    """
    Ed25519 verifier for batch roots.

    Implements BatchVerifier protocol. All public keys must be pre-loaded.

    Usage:
        verifier = Ed25519BatchVerifier()
        verifier.add_from_signer(signer)
        verifier.verify(root, signature, signer.key_id)
    """

    def __init__(self):
        self._public_keys: Dict[str, Ed25519PublicKey] = {}

    def add_public_key(self, key_id: str, public_key_bytes: bytes) -> None:
        """
        Add a public key for verification.

        Args:
            key_id: The key identifier (must match signer's key_id)
            public_key_bytes: Raw 32-byte Ed25519 public key
        """
        self._public_keys[key_id] = Ed25519PublicKey.from_public_bytes(public_key_bytes)

    def add_public_key_pem(self, pem_data: bytes, key_id: Optional[str] = None) -> str:
        """
        Add a public key from PEM format.

        Returns the key_id the key was registered under (derived from the
        key when not given).
        """
        try:
            public_key = serialization.load_pem_public_key(pem_data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise ConfigurationError(f"Cannot load public key: {e}") from e
        if not isinstance(public_key, Ed25519PublicKey):
            raise ConfigurationError(
                f"Expected Ed25519 public key, got {type(public_key).__name__}"
            )
        raw = public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        key_id = key_id or key_id_for(raw)
        self._public_keys[key_id] = public_key
        return key_id

    def add_from_signer(self, signer: Ed25519BatchSigner) -> None:
        self.add_public_key(signer.key_id, signer.public_key_bytes)

    def get_public_key(self, key_id: str) -> Optional[bytes]:
        if key_id not in self._public_keys:
            return None
        return self._public_keys[key_id].public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def verify(self, digest: bytes, signature: bytes, key_id: str) -> bool:
        """
        Verify a root signature.

        Returns:
            True if valid, False if invalid or key not found
        """
        public_key = self._public_keys.get(key_id)
        if public_key is None:
            return False

        try:
            public_key.verify(bytes(signature), bytes(digest))
            return True
        except (InvalidSignature, TypeError, ValueError):
            return False

    def has_key(self, key_id: str) -> bool:
        return key_id in self._public_keys

    @property
    def key_ids(self) -> List[str]:
        return list(self._public_keys.keys())
