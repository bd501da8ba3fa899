"""Frontend: comment scanning and directive tokenizing."""

from .comment_scanner import CommentScanner, CommentBlock
from .directive_parser import DirectiveParser, DirectiveToken

__all__ = ["CommentScanner", "CommentBlock", "DirectiveParser", "DirectiveToken"]
