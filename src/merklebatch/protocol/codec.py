"""
Binary encoding for ProofBundle.

Layout (big-endian, length-prefixed):

    magic        4 bytes   b"MBB1"
    index        u32
    leaf_count   u32
    digest_size  u16
    path_len     u16
    path         path_len * digest_size bytes
    key_id_len   u16, then key_id (utf-8)
    sig_len      u32, then signature
    root         digest_size bytes

The JSON form is ProofBundle.to_dict()/from_dict().
"""

from __future__ import annotations

import struct
from typing import List, Tuple

from merklebatch.core.batch import ProofBundle
from merklebatch.protocol.errors import CodecError

MAGIC = b"MBB1"

_HEADER = struct.Struct(">4sIIHH")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")


def encode_bundle(bundle: ProofBundle) -> bytes:
    """
    Serialize a bundle to bytes.

    Raises:
        CodecError: If the bundle's digests differ in length or a field
            does not fit its length prefix
    """
    root = bytes(bundle.root)
    digest_size = len(root)
    path = [bytes(p) for p in bundle.authentication_path]

    for p in path:
        if len(p) != digest_size:
            raise CodecError(
                f"Path digest of {len(p)} bytes does not match root of {digest_size}"
            )

    key_id = bundle.key_id.encode("utf-8")
    try:
        parts = [
            _HEADER.pack(MAGIC, bundle.index, bundle.leaf_count, digest_size, len(path)),
            *path,
            _U16.pack(len(key_id)),
            key_id,
            _U32.pack(len(bundle.signature)),
            bytes(bundle.signature),
            root,
        ]
    except struct.error as exc:
        raise CodecError(f"Bundle field out of range: {exc}") from exc

    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes):
        self._data = memoryview(data)
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise CodecError(
                f"Truncated bundle: need {n} bytes at offset {self._pos}, "
                f"have {len(self._data) - self._pos}"
            )
        out = self._data[self._pos:end].tobytes()
        self._pos = end
        return out

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


def decode_bundle(data: bytes) -> ProofBundle:
    """
    Parse bytes produced by encode_bundle().

    Raises:
        CodecError: On bad magic, truncation or trailing bytes
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecError(f"Expected bytes, got {type(data).__name__}")

    reader = _Reader(bytes(data))
    magic, index, leaf_count, digest_size, path_len = reader.unpack(_HEADER)
    if magic != MAGIC:
        raise CodecError(f"Bad magic {magic!r}")
    if digest_size == 0:
        raise CodecError("Digest size must be positive")

    path: List[bytes] = [reader.take(digest_size) for _ in range(path_len)]

    (key_id_len,) = reader.unpack(_U16)
    try:
        key_id = reader.take(key_id_len).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError(f"Key id is not valid utf-8: {exc}") from exc

    (sig_len,) = reader.unpack(_U32)
    signature = reader.take(sig_len)
    root = reader.take(digest_size)

    if reader.remaining:
        raise CodecError(f"{reader.remaining} trailing bytes after bundle")

    return ProofBundle(
        index=index,
        authentication_path=path,
        signature=signature,
        root=root,
        key_id=key_id,
        leaf_count=leaf_count,
    )
