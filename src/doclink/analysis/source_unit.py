"""
Source Unit

One physical source file: its raw bytes, the comment blocks found in it and the
modules it defines. The comment blocks are scanned lazily on first access and
never change afterwards.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from ..frontend.comment_scanner import CommentBlock, CommentScanner
from ..shared.errors import SourceReadError
from ..utils.io_utils import decode_source, normalize_path, read_source_bytes

if TYPE_CHECKING:
    from .module_graph import Module

logger = logging.getLogger(__name__)

_DEFAULT_SCANNER = CommentScanner()


class SourceUnit:
    """
    A source file known to the graph.

    Args:
        path: File path; stored absolute and normalised (the identity key)
        raw: File content; read from disk when omitted
        scanner: Comment scanner used to list the comment blocks
    """

    def __init__(
        self,
        path: Union[Path, str],
        raw: Optional[bytes] = None,
        scanner: Optional[CommentScanner] = None,
    ):
        self.path: str = normalize_path(path)
        if raw is None:
            try:
                raw = read_source_bytes(self.path)
            except OSError as e:
                raise SourceReadError(f"Unable to read source file: {e.strerror or e}", path=self.path) from e
        self.raw: bytes = raw
        self.modules: List["Module"] = []
        self._scanner = scanner or _DEFAULT_SCANNER
        self._text: Optional[str] = None
        self._blocks: Optional[Tuple[CommentBlock, ...]] = None

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = decode_source(self.raw)
        return self._text

    @property
    def blocks(self) -> Tuple[CommentBlock, ...]:
        """Comment blocks in order of appearance (scanned once)."""
        if self._blocks is None:
            self._blocks = self._scanner.scan(self.text)
            logger.debug(f"Scanned {self.path}: {len(self._blocks)} comment blocks")
        return self._blocks

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"SourceUnit(path={self.path!r}, modules={[m.name for m in self.modules]})"
