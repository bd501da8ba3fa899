"""
Configuration constants and linker options.

Precedence when building options: command line > JSON config file > defaults.
"""

import json
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Union

VERSION = "0.1.0"

# Source discovery
DEFAULT_INCLUDE_PATTERN = r".+\.js$"
DEFAULT_EXCLUDE_PATTERN = r"^$"

# Output
DEFAULT_DESTINATION = "out/"
DEFAULT_DOT_FILENAME = "doclink.dot"
DEFAULT_GRAPH_NAME = "doclink"

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Directive tags
MODULE_DIRECTIVE = "module"
REQUIRES_DIRECTIVE = "requires"
EXPORT_DIRECTIVE = "export"
IGNORE_MARKER = "ignore"

# Option names that may arrive as strings from a config file
BOOLEAN_OPTIONS = ("recursive", "overwrite", "strict", "test", "verbose")

_TRUE_WORDS = ("true", "yes", "on", "1")
_FALSE_WORDS = ("false", "no", "off", "0")


class ConfigError(ValueError):
    """Raised when a config file cannot be read or holds invalid values."""
    pass


@dataclass
class LinkerOptions:
    """Everything the driver needs for one link run."""
    sources: List[str] = field(default_factory=list)
    recursive: bool = False
    include: str = DEFAULT_INCLUDE_PATTERN
    exclude: str = DEFAULT_EXCLUDE_PATTERN
    destination: str = DEFAULT_DESTINATION
    overwrite: bool = False
    strict: bool = True
    exportmap: Optional[str] = None  # dot file path, None disables
    test: bool = False  # dry run: plan bundles but write nothing
    verbose: bool = False

    def include_pattern(self) -> Pattern:
        return _compile(self.include, "include")

    def exclude_pattern(self) -> Pattern:
        return _compile(self.exclude, "exclude")

    @classmethod
    def from_mapping(cls, values: Dict[str, Any]) -> "LinkerOptions":
        """Build options from a plain mapping, ignoring unknown keys and None values."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            if key not in known or value is None:
                continue
            if key in BOOLEAN_OPTIONS:
                value = parse_bool(value)
            elif key == "exportmap":
                value = parse_exportmap(value)
                if value is None:
                    continue
            elif key == "sources" and isinstance(value, str):
                value = [value]
            kwargs[key] = value
        return cls(**kwargs)

    def merged(self, overrides: Dict[str, Any]) -> "LinkerOptions":
        """Return a copy with the non-None values of `overrides` applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return LinkerOptions.from_mapping(values)


def parse_bool(value: Any) -> bool:
    """Coerce config values: the string 'false' (any case, padded) is False."""
    if isinstance(value, str):
        return not re.fullmatch(r"\s*(false|no|0|off)?\s*", value, re.IGNORECASE)
    return bool(value)


def parse_exportmap(value: Any) -> Optional[str]:
    """
    Export map setting: a dot file path, "" for the default name, None when off.

    Booleans and boolean-looking strings switch the default file on or off.
    """
    if value is None or isinstance(value, bool):
        return "" if value else None
    text = str(value).strip()
    if text.lower() in _TRUE_WORDS:
        return ""
    if text.lower() in _FALSE_WORDS:
        return None
    return text


def load_config_file(path: Union[Path, str]) -> Dict[str, Any]:
    """Read a JSON object of options from `path`."""
    try:
        data = json.loads(Path(path).read_text(encoding=DEFAULT_FILE_ENCODING))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Unable to read config file: {path}\n{e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _compile(pattern: str, what: str) -> Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid {what} pattern {pattern!r}: {e}") from e
