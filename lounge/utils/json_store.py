# lounge/utils/json_store.py
"""
Helpers for the small JSON files the lounge keeps on disk.
Every file is read whole and rewritten whole; there are no partial writes.
"""

import json
import os
import tempfile
from typing import Any, Optional


def read_bytes(path: str) -> Optional[bytes]:
    """Return the file contents, or None if the file does not exist.

    Other I/O errors propagate so callers can tell "missing" from "unreadable".
    """
    if not os.path.exists(path):
        return None
    with open(path, "rb") as f:
        return f.read()


def write_json(path: str, data: Any) -> None:
    """Rewrite `path` with `data` as indented JSON.

    Writes to a sibling temp file first and renames it into place, so a crash
    mid-write leaves the previous version intact.
    """
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
