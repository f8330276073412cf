from enum import Enum


class ErrorCode(str, Enum):
    EMPTY_BATCH = "empty_batch"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    PROOF_INVALID = "proof_invalid"
    SIGNER_FAILURE = "signer_failure"
    CODEC_ERROR = "codec_error"
    CONFIGURATION_ERROR = "configuration_error"
    INTERNAL_ERROR = "internal_error"


class OutputFormat(str, Enum):
    JSON = "json"
    JSONL = "jsonl"
    BINARY = "bin"
