"""
Path Resolution

Resolves relative `@requires` tokens (`./lib/x.js`, `../vendor/y.js`) against
the directory of the requiring file and names the modules discovered that way.

This class is stateless and can be shared/reused.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

# './x', '../x', not ending with '/'
RELATIVE_REFERENCE = re.compile(r"^\.?\./.*[^/]$")


@dataclass(frozen=True)
class ResolvedPath:
    """Outcome of resolving a relative token."""
    path: str
    exists: bool


class PathResolver:
    """
    Resolver for file references in `@requires`.

    Args:
        base_dir: Directory that module names of discovered files are made
            relative to (current working directory if None)
    """

    def __init__(self, base_dir: Optional[Union[Path, str]] = None):
        self.base_dir = os.path.abspath(os.fspath(base_dir)) if base_dir is not None else None

    @staticmethod
    def is_relative_reference(token: str) -> bool:
        """True for tokens that point at a file next to the requiring one."""
        return bool(RELATIVE_REFERENCE.match(token))

    def resolve(self, token: str, base_dir: Union[Path, str]) -> ResolvedPath:
        """
        Resolve `token` against `base_dir`.

        Examples:
            resolve('./b.js', '/src/a') -> ResolvedPath('/src/a/b.js', exists)
            resolve('../c.js', '/src/a') -> ResolvedPath('/src/c.js', exists)
        """
        path = os.path.normpath(os.path.join(os.fspath(base_dir), token))
        resolved = ResolvedPath(path=path, exists=os.path.isfile(path))
        logger.debug(f"PathResolver: {token!r} from {base_dir} -> {resolved.path} (exists={resolved.exists})")
        return resolved

    def module_name_for(self, path: Union[Path, str]) -> str:
        """Module name of a discovered file: its path relative to the base directory."""
        base = self.base_dir or os.getcwd()
        return Path(os.path.relpath(os.fspath(path), base)).as_posix()
