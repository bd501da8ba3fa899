"""
Source Location

Position of a directive inside a source file, used by diagnostics.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    File, line and column of a directive (1-based).

    Immutable (frozen) for hashability. Column 0 means "whole line / unknown".
    """
    file: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        if not self.line:
            return self.file
        return f"{self.file}:{self.line}:{self.column}"
