"""
Directive Parser

Tokenizes the body of a doc comment into directives using the lark grammar in
`directives.lark`. Directive values have explicit boundaries: a value ends at
the next tag or at the end of its line, never further.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from lark import Lark, Transformer, Token
from lark.exceptions import UnexpectedInput
from typing_extensions import TypeAlias

from ..shared.errors import StructuralError
from ..shared.source_location import SourceLocation

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "directives.lark"


@dataclass(frozen=True)
class DirectiveToken:
    """One `@tag value` occurrence; line/column are relative to the comment body."""
    tag: str
    value: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"@{self.tag} {self.value}".rstrip()


LineItem: TypeAlias = Union[Token, DirectiveToken]


class DirectiveTransformer(Transformer):
    """Flattens the parse tree into an ordered list of DirectiveTokens."""

    def start(self, lines: List[List[DirectiveToken]]) -> List[DirectiveToken]:
        return [directive for line in lines for directive in line]

    def line(self, items: List[LineItem]) -> List[DirectiveToken]:
        return [item for item in items if isinstance(item, DirectiveToken)]

    def directive(self, children: List[Token]) -> DirectiveToken:
        tag = children[0]
        value = str(children[1]).strip() if len(children) > 1 else ""
        return DirectiveToken(tag=str(tag)[1:], value=value, line=tag.line, column=tag.column)


class DirectiveParser:
    """
    Parser for doc-comment directives.

    One instance is enough for a whole run; lark builds the LALR tables once.
    """

    def __init__(self, grammar_path: Path = GRAMMAR_PATH):
        self.parser = Lark.open(
            str(grammar_path),
            start="start",
            parser="lalr",
            maybe_placeholders=False,
        )
        self.transformer = DirectiveTransformer()

    def parse(self, text: str, location: Optional[SourceLocation] = None) -> List[DirectiveToken]:
        """
        Parse comment body text.

        Args:
            text: Comment body (without the comment delimiters)
            location: Where the comment starts, used only for error reporting

        Returns: directives in order of appearance
        """
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        try:
            tree = self.parser.parse(text)
        except UnexpectedInput as e:
            raise StructuralError(f"Unreadable directive comment: {e}", location) from e
        return self.transformer.transform(tree)
