"""
Hash functions for Merkle batching.

A Hasher is the single one-way compression function used for both leaf
hashing (hash(message)) and node combination (hash(left || right)).

Leaves carry no domain-separation prefix, so a single-message batch has
root == hash(message).
"""

from __future__ import annotations

import hashlib
from typing import Any, Callable, Dict, List, Protocol

from merklebatch.protocol.errors import ConfigurationError


DEFAULT_HASH_ALGORITHM = "sha256"


# ===========================================================================
# Hasher Protocol
# ===========================================================================


class Hasher(Protocol):
    """
    Protocol for the batch compression function.

    Implementations MUST:
    - Produce a fixed-length digest (digest_size bytes)
    - Be deterministic and side-effect free
    - Define combine(left, right) as hash(left || right)
    """

    @property
    def name(self) -> str:
        ...

    @property
    def digest_size(self) -> int:
        ...

    def hash(self, data: bytes) -> bytes:
        ...

    def combine(self, left: bytes, right: bytes) -> bytes:
        ...


# ===========================================================================
# hashlib-backed Hasher
# ===========================================================================


class HashlibHasher:
    """
    Hasher backed by a fixed-output hashlib constructor.

    Usage:
        hasher = HashlibHasher("sha256", hashlib.sha256)
        leaf = hasher.hash(b"message-0")
    """

    def __init__(self, name: str, factory: Callable[[], Any]):
        self._name = name
        self._factory = factory
        self._digest_size = factory().digest_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def digest_size(self) -> int:
        return self._digest_size

    def hash(self, data: bytes) -> bytes:
        h = self._factory()
        h.update(data)
        return h.digest()

    def combine(self, left: bytes, right: bytes) -> bytes:
        h = self._factory()
        h.update(left)
        h.update(right)
        return h.digest()

    def __repr__(self) -> str:
        return f"HashlibHasher(name={self._name!r}, digest_size={self._digest_size})"


_REGISTRY: Dict[str, Callable[[], HashlibHasher]] = {
    "sha256": lambda: HashlibHasher("sha256", hashlib.sha256),
    "sha512": lambda: HashlibHasher("sha512", hashlib.sha512),
    "sha3-256": lambda: HashlibHasher("sha3-256", hashlib.sha3_256),
    "blake2b-256": lambda: HashlibHasher(
        "blake2b-256", lambda: hashlib.blake2b(digest_size=32)
    ),
}


def available_hashers() -> List[str]:
    """Names accepted by get_hasher(), sorted."""
    return sorted(_REGISTRY)


def get_hasher(name: str = DEFAULT_HASH_ALGORITHM) -> HashlibHasher:
    """
    Look up a Hasher by name.

    Raises:
        ConfigurationError: If the algorithm is not registered
    """
    key = (name or "").strip().lower()
    try:
        return _REGISTRY[key]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown hash algorithm {name!r}; expected one of {available_hashers()}"
        ) from None


def sha256_hasher() -> HashlibHasher:
    return get_hasher("sha256")
