from __future__ import annotations

import hashlib
from pathlib import Path

CHUNK_SIZE = 1024 * 64


def fingerprint_bytes(data: bytes) -> str:
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def fingerprint_file(path: Path | str) -> str:
    """Hex MD5 of a file's content, read in chunks.

    Only used to detect changed content between controller and agent; it is
    not a tamper check.
    """
    h = hashlib.md5(usedforsecurity=False)
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()
