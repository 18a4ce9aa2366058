# authlink/utils/hashing.py
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union

_CHUNK = 64 * 1024


def sha256_text(text: str) -> str:
    """Hex digest of UTF-8 text; --passphrase-sha256 is compared against this form."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def sha256_file(path: Union[str, Path]) -> str:
    """Hex digest of a config file, recorded by the loader so a run can be traced to its YAML."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as fh:
        while chunk := fh.read(_CHUNK):
            digest.update(chunk)
    return digest.hexdigest()
