"""
Comment Scanner

Extracts comment blocks from C-family source text (JavaScript first of all)
without parsing the host language. Strings, template literals and regular
expression literals are skipped so that comment markers inside them are not
mistaken for comments.
"""

import bisect
import re
from dataclasses import dataclass
from typing import List, Tuple

from ..utils.config import IGNORE_MARKER

BLOCK = "block"
LINE = "line"

_IGNORE = re.compile(r"@" + IGNORE_MARKER + r"(?![\w-])", re.IGNORECASE)

# A '/' after one of these (or at start of input) opens a regex literal, not a division.
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = {"return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw", "case", "do", "else", "yield", "await"}


@dataclass(frozen=True)
class CommentBlock:
    """
    One comment as found in the source.

    `text` is the comment body without its delimiters (for `/** a */` it is
    `* a `). `start`/`end` are character offsets of the whole comment,
    `line`/`column` are 1-based and point at the opening delimiter.
    """
    kind: str
    text: str
    start: int
    end: int
    line: int
    column: int

    @property
    def is_doc_style(self) -> bool:
        """Block comments opened with `/**`."""
        return self.kind == BLOCK and self.text.startswith("*")

    @property
    def has_ignore_marker(self) -> bool:
        return bool(_IGNORE.search(self.text))


class CommentScanner:
    """Stateless scanner; one instance can be shared across files."""

    def scan(self, source: str) -> Tuple[CommentBlock, ...]:
        """Return every comment of `source` in order of appearance."""
        newlines = [i for i, ch in enumerate(source) if ch == "\n"]
        found: List[Tuple[str, str, int, int]] = []
        i = 0
        n = len(source)
        last_significant = ""
        last_word = ""

        while i < n:
            c = source[i]

            if c in ("'", '"'):
                i = self._skip_string(source, i, c)
                last_significant, last_word = c, ""
                continue

            if c == "`":
                i = self._skip_template(source, i)
                last_significant, last_word = c, ""
                continue

            if c == "/" and i + 1 < n and source[i + 1] == "/":
                end = source.find("\n", i + 2)
                end = n if end == -1 else end
                found.append((LINE, source[i + 2:end], i, end))
                i = end
                continue

            if c == "/" and i + 1 < n and source[i + 1] == "*":
                close = source.find("*/", i + 2)
                end = n if close == -1 else close + 2
                body = source[i + 2:close] if close != -1 else source[i + 2:]
                found.append((BLOCK, body, i, end))
                i = end
                continue

            if c == "/" and self._opens_regex(last_significant, last_word):
                i = self._skip_regex(source, i)
                last_significant, last_word = "/", ""
                continue

            if c.isalnum() or c in "_$":
                j = i
                while j < n and (source[j].isalnum() or source[j] in "_$"):
                    j += 1
                last_word = source[i:j]
                last_significant = source[j - 1]
                i = j
                continue

            if not c.isspace():
                last_significant, last_word = c, ""
            i += 1

        return tuple(
            CommentBlock(kind, text, start, end, *self._position(newlines, start))
            for kind, text, start, end in found
        )

    @staticmethod
    def _position(newlines: List[int], offset: int) -> Tuple[int, int]:
        line_index = bisect.bisect_left(newlines, offset)
        line_start = newlines[line_index - 1] + 1 if line_index else 0
        return line_index + 1, offset - line_start + 1

    @staticmethod
    def _opens_regex(last_significant: str, last_word: str) -> bool:
        if last_word:
            return last_word in _REGEX_KEYWORDS
        return last_significant == "" or last_significant in _REGEX_PRECEDERS

    @staticmethod
    def _skip_string(source: str, i: int, quote: str) -> int:
        """Return the index just past the closing quote (or the end of line for broken strings)."""
        n = len(source)
        i += 1
        while i < n:
            ch = source[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                return i + 1
            if ch == "\n":
                return i
            i += 1
        return n

    def _skip_template(self, source: str, i: int) -> int:
        n = len(source)
        i += 1
        while i < n:
            ch = source[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                return i + 1
            if ch == "$" and i + 1 < n and source[i + 1] == "{":
                i += 2
                depth = 1
                while i < n and depth:
                    inner = source[i]
                    if inner in ("'", '"'):
                        i = self._skip_string(source, i, inner)
                        continue
                    if inner == "`":
                        i = self._skip_template(source, i)
                        continue
                    if inner == "{":
                        depth += 1
                    elif inner == "}":
                        depth -= 1
                    i += 1
                continue
            i += 1
        return n

    @staticmethod
    def _skip_regex(source: str, i: int) -> int:
        """Skip a regex literal; an unterminated one is treated as a lone '/'."""
        n = len(source)
        j = i + 1
        in_class = False
        while j < n:
            ch = source[j]
            if ch == "\\":
                j += 2
                continue
            if ch == "\n":
                return i + 1
            if in_class:
                if ch == "]":
                    in_class = False
            elif ch == "[":
                in_class = True
            elif ch == "/":
                return j + 1
            j += 1
        return i + 1
