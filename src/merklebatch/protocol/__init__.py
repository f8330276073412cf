from .enums import ErrorCode, OutputFormat
from .errors import (
    MerkleBatchError,
    EmptyBatchError,
    IndexOutOfRangeError,
    ProofInvalidError,
    SignerFailure,
    CodecError,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "OutputFormat",
    "MerkleBatchError",
    "EmptyBatchError",
    "IndexOutOfRangeError",
    "ProofInvalidError",
    "SignerFailure",
    "CodecError",
    "ConfigurationError",
]
