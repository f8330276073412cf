from typing import Optional

from .enums import ErrorCode


class MerkleBatchError(Exception):
    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        self.code = code or ErrorCode.INTERNAL_ERROR


class EmptyBatchError(MerkleBatchError, ValueError):
    """Raised when a tree or batch is requested over zero leaves."""

    def __init__(self, message: str = "Cannot build a Merkle tree with no leaves"):
        super().__init__(message, ErrorCode.EMPTY_BATCH)


class IndexOutOfRangeError(MerkleBatchError, IndexError):
    """Raised when a proof is requested for an index outside [0, N)."""

    def __init__(self, index: int, size: int):
        super().__init__(
            f"Leaf index {index} out of range for batch of {size}",
            ErrorCode.INDEX_OUT_OF_RANGE,
        )
        self.index = index
        self.size = size


class ProofInvalidError(MerkleBatchError):
    """Raised by the strict verifier when an inclusion proof does not hold."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid inclusion proof: {reason}", ErrorCode.PROOF_INVALID)
        self.reason = reason


class SignerFailure(MerkleBatchError):
    """Raised when the external signer cannot produce a signature over the root."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SIGNER_FAILURE)


class CodecError(MerkleBatchError):
    """Raised when a serialized proof bundle cannot be decoded."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CODEC_ERROR)


class ConfigurationError(MerkleBatchError):
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)
