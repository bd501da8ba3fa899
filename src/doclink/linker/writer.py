"""
Output writers: bundle files and the graphviz export map.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .planner import Bundle
from ..analysis.module_graph import ModuleGraph
from ..analysis.source_unit import SourceUnit
from ..shared.errors import OverwriteDisallowedError, SelfOverwriteError, StructuralError
from ..utils.config import DEFAULT_DOT_FILENAME, DEFAULT_FILE_ENCODING, DEFAULT_GRAPH_NAME
from ..utils.io_utils import is_hidden_path, normalize_path

logger = logging.getLogger(__name__)


class BundleWriter:
    """
    Writes bundles as byte-exact concatenations of their sources.

    Args:
        overwrite: Replace destinations that already exist
    """

    def __init__(self, overwrite: bool = False):
        self.overwrite = overwrite

    def write(self, bundle: Bundle, sources: Mapping[str, SourceUnit]) -> str:
        """Write one bundle; `sources` maps source paths to their units."""
        path = self.writeable(bundle.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as out:
            for source_path in bundle.sources:
                out.write(sources[source_path].raw)
        logger.debug(f"Wrote {path} ({len(bundle.sources)} sources) for {bundle.root}")
        return str(path)

    def write_all(self, bundles: Iterable[Bundle], sources: Mapping[str, SourceUnit]) -> List[str]:
        """
        Write every bundle. A destination claimed twice is written once, by
        the later bundle. All destinations are checked before anything is written.
        """
        latest: Dict[str, Bundle] = {}
        for bundle in bundles:
            latest[normalize_path(bundle.destination)] = bundle
        for bundle in latest.values():
            self.writeable(bundle.destination)
        return [self.write(bundle, sources) for bundle in latest.values()]

    def write_dot(
        self,
        graph: ModuleGraph,
        path: Optional[Union[Path, str]] = None,
        name: str = DEFAULT_GRAPH_NAME,
    ) -> str:
        """Export the dependency map as a dot file (`doclink.dot` by default, or inside a directory)."""
        path = Path(path) if path else Path(DEFAULT_DOT_FILENAME)
        if path.is_dir():
            path = path / DEFAULT_DOT_FILENAME
        if normalize_path(path) in graph.sources:
            raise SelfOverwriteError(f'The dot output file overwrites an input file: "{path}"', path=str(path))
        path = self.writeable(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(graph.to_dot(name), encoding=DEFAULT_FILE_ENCODING)
        logger.debug(f"Wrote export map {path}")
        return str(path)

    def writeable(self, destination: Union[Path, str]) -> Path:
        """Validate an output file path against the overwrite policy."""
        path = Path(destination)
        if not str(destination) or str(destination).endswith(("/", "\\")):
            raise StructuralError(f'Output path "{destination}" must name a file.', path=str(destination))
        if is_hidden_path(path.name):
            raise StructuralError(f'Cannot output to hidden file "{destination}".', path=str(destination))
        if path.exists():
            if not path.is_file():
                raise StructuralError(f'The output path "{destination}" does not point to a file.', path=str(destination))
            if not self.overwrite:
                raise OverwriteDisallowedError(f'Cannot overwrite "{destination}".', path=str(destination))
        return path
