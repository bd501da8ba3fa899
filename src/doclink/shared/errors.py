"""
Error Reporting

Diagnostics in the familiar compiler style plus the exception taxonomy raised
by the linker. Every exception carries the offending file (when known) and the
module names involved.
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set or DOCLINK_COLOR is off)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("DOCLINK_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ============================================================================
# Exception Classes
# ============================================================================

class DoclinkError(Exception):
    """
    Base exception for all linker errors.

    Args:
        message: Human-readable description
        location: Where the offending directive lives (may be attached later)
        path: Offending file when there is no precise location
        modules: Names of the modules involved
        help: Optional hint shown under the diagnostic
    """
    code = "E0000"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        *,
        path: Optional[str] = None,
        modules: Iterable[str] = (),
        help: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.location = location
        self.modules: Tuple[str, ...] = tuple(modules)
        self.help_text = help
        self._path = path

    @property
    def path(self) -> Optional[str]:
        if self._path:
            return self._path
        return self.location.file if self.location else None

    def __str__(self) -> str:
        where = self.location or (SourceLocation(self._path) if self._path else None)
        if where:
            return f"{self.message}\n --> {where}"
        return self.message


class StructuralError(DoclinkError):
    """Blank or invalid module name, unknown source, unusable output path."""
    code = "E0001"


class DuplicateDefinitionError(DoclinkError):
    """Module defined twice, or two anchors inside one comment block."""
    code = "E0101"


class SelfDependencyError(DoclinkError):
    """A module declared that it requires itself."""
    code = "E0102"


class DuplicateDependencyError(DoclinkError):
    """The same requirer -> requirement edge was declared twice."""
    code = "E0103"


class CyclicDependencyError(DoclinkError):
    """Serialization reached a module that is still being visited."""
    code = "E0104"

    def __init__(self, module_name: str, cycle: Iterable[str] = (), **kwargs):
        self.module_name = module_name
        self.cycle: Tuple[str, ...] = tuple(cycle)
        chain = " -> ".join(self.cycle) if self.cycle else module_name
        kwargs.setdefault("modules", self.cycle or (module_name,))
        super().__init__(
            f"Cyclic dependency discovered while serializing {module_name}: {chain}",
            **kwargs,
        )


class ExternalFileNotFoundError(DoclinkError):
    """A relative @requires path does not point to an existing file."""
    code = "E0201"


class SourceReadError(DoclinkError):
    """A source path is missing or cannot be read."""
    code = "E0202"


class SelfOverwriteError(DoclinkError):
    """An output destination would overwrite one of the input sources."""
    code = "E0301"


class OverwriteDisallowedError(DoclinkError):
    """The destination exists and overwriting is disabled."""
    code = "E0302"


class StrictModeError(DoclinkError):
    """Orphan modules were found while strict mode is on."""
    code = "E0401"


# ---------------------------------------------------------------------------
# Diagnostic record
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """One reported diagnostic."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: DoclinkError) -> "Error":
        location = exc.location
        if location is None and exc.path:
            location = SourceLocation(exc.path)
        return cls(message=exc.message, location=location, code=exc.code, help=exc.help_text)


def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic.

    Example output (plain, no color)::

        error[E0103]: y already marked as requirement of x
         --> src/x.js:3:4
          |
        3 |  * @requires y
          |    ^^^^^^^^^
    """
    out: List[str] = []
    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    loc = error.location
    if loc is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_help(out, error, 1, color)
        return "\n".join(out)

    source = source_files.get(loc.file)
    lines = source.splitlines() if source is not None else []
    if not loc.line or loc.line > len(lines):
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_help(out, error, 1, color)
        return "\n".join(out)

    gw = len(str(loc.line))
    code_line = lines[loc.line - 1]
    col_start = max(loc.column, 1) - 1
    span = len(code_line.rstrip()) - col_start

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(f"{loc.line} | ", _BOLD, _BLUE, color=color) + code_line)
    carets = " " * col_start + "^" * max(1, span)
    out.append(_style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color) + _style(carets, _BOLD, _RED, color=color))
    _append_help(out, error, gw, color)
    return "\n".join(out)


def _append_help(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not error.help:
        return
    pad = " " * (gw + 1)
    out.append(_style(f"{pad}|", _BOLD, _BLUE, color=color))
    out.append(
        _style(f"{pad}= ", _BOLD, _CYAN, color=color)
        + _style("help: ", _BOLD, color=color)
        + error.help
    )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """Collects diagnostics and renders them with source snippets."""

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.errors: List[Error] = []

    def report_exception(self, exc: DoclinkError) -> None:
        self.errors.append(Error.from_exception(exc))

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        parts = [self.format_error(e, color=use_color) for e in self.errors]
        count = len(self.errors)
        summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
        parts.append(
            _style("error", _BOLD, _RED, color=use_color)
            + _style(f": {summary}", _BOLD, color=use_color)
        )
        return "\n\n".join(parts) + "\n"

    def has_errors(self) -> bool:
        return len(self.errors) > 0
