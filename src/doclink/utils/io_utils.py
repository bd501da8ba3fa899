"""
Centralized file I/O utilities.

- Single place for encoding and hidden-path handling
- Source files are kept as raw bytes so bundles are byte-exact copies
"""

import os
import re
from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING

_HIDDEN_SEGMENT = re.compile(r"(^|/)\.+[^/.]")


def read_source_bytes(path: Union[Path, str]) -> bytes:
    """Read a source file as raw bytes."""
    return Path(path).read_bytes()


def decode_source(raw: bytes) -> str:
    """Decode raw source bytes with the standard encoding (undecodable bytes replaced)."""
    return raw.decode(DEFAULT_FILE_ENCODING, errors="replace")


def is_hidden_path(path: Union[Path, str]) -> bool:
    """True if any segment of the path is a dot-file or dot-folder ('.' and '..' excluded)."""
    return bool(_HIDDEN_SEGMENT.search(Path(path).as_posix()))


def plural(count: int, word: str) -> str:
    """'1 file', '0 file', '3 files'."""
    return f"{count} {word}{'s' if count > 1 or count < -1 else ''}"


def normalize_path(path: Union[Path, str]) -> str:
    """Absolute, normalised string form used as the identity of a source file."""
    return os.path.abspath(os.fspath(path))
