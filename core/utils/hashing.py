"""Content fingerprints used for exact-match detection."""

from __future__ import annotations

import hashlib

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def sha256(text: str) -> str:
    """Return the lowercase hex SHA-256 digest of the UTF-8 encoded text.

    No normalization happens here: whitespace and code point differences
    produce different digests.
    """

    return hashlib.sha256(text.encode("utf-8")).hexdigest()
