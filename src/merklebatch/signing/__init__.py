"""
Signature boundary for batch roots.
"""

from merklebatch.signing.base import BatchSigner, BatchVerifier
from merklebatch.signing.ed25519 import Ed25519BatchSigner, Ed25519BatchVerifier

__all__ = [
    "BatchSigner",
    "BatchVerifier",
    "Ed25519BatchSigner",
    "Ed25519BatchVerifier",
]
