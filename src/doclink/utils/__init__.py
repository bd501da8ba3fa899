"""
doclink utilities package
"""

from .io_utils import read_source_bytes, decode_source, is_hidden_path, plural, normalize_path

__all__ = ["read_source_bytes", "decode_source", "is_hidden_path", "plural", "normalize_path"]
