from __future__ import annotations

import base64
import hashlib
import hmac
from typing import BinaryIO, Optional, Union

DEFAULT_HASH_ALGORITHM = "SHA512"

# Catalog algorithm names mapped to hashlib constructors.
_ALGORITHMS = {
    "SHA512": "sha512",
    "SHA256": "sha256",
    "SHA1": "sha1",
    "MD5": "md5",
}


class CryptoHashProvider:
    """
    Computes package hashes with the algorithm named by the catalog
    (e.g. 'SHA512'). Names are matched case-insensitively, with or without a
    dash ('SHA-512').
    """

    def __init__(self, hash_algorithm: Optional[str] = None):
        name = (hash_algorithm or DEFAULT_HASH_ALGORITHM).upper().replace("-", "")
        if name not in _ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {hash_algorithm}")
        self.hash_algorithm = name

    def calculate_hash(self, data: Union[bytes, BinaryIO]) -> bytes:
        h = hashlib.new(_ALGORITHMS[self.hash_algorithm])
        if isinstance(data, (bytes, bytearray)):
            h.update(data)
        else:
            for chunk in iter(lambda: data.read(8192), b""):
                h.update(chunk)
        return h.digest()

    def calculate_hash_string(self, data: Union[bytes, BinaryIO]) -> str:
        """Base64 encoding of the hash, the form catalogs report."""
        return base64.b64encode(self.calculate_hash(data)).decode("ascii")

    def verify_hash(self, data: bytes, expected_hash: bytes) -> bool:
        return hmac.compare_digest(self.calculate_hash(data), expected_hash)
