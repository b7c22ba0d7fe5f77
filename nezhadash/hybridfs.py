"""A read-only file view layering a bundled directory over a local one."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO


def _valid_path(name: str) -> bool:
    if name == ".":
        return True
    return all(part not in ("", ".", "..") for part in name.split("/"))


class HybridFS:
    """Open files from the bundled directory first, then from the local one.

    Bundled files always win so they cannot be replaced by local files.
    """

    def __init__(self, embedded_dir: str | os.PathLike[str], local_dir: str | os.PathLike[str]):
        self.embedded_dir = Path(embedded_dir)
        self.local_dir = Path(local_dir)

    def open(self, name: str) -> BinaryIO:
        """Open a slash-separated relative path for binary reading."""
        if not _valid_path(name):
            raise ValueError(f"invalid path: {name!r}")
        try:
            return (self.embedded_dir / name).open("rb")
        except OSError:
            return (self.local_dir / name).open("rb")