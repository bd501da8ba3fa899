"""
Module Loader

The load pass: walks source paths, registers every candidate file as a
SourceUnit and lets the DirectiveEngine populate the graph from its comments.

This class handles:
- Source discovery (single files, directories, optional recursion)
- Include/exclude file-name patterns and hidden-path filtering
- File counters surfaced by `ModuleGraph.analyse()`

Any error aborts the pass immediately; the partially built graph is left as
is and should not be used for output.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Union

from .directive_engine import DirectiveEngine
from ..module_graph import Module, ModuleGraph
from ...shared.errors import DoclinkError, SourceReadError
from ...utils.config import DEFAULT_EXCLUDE_PATTERN, DEFAULT_INCLUDE_PATTERN
from ...utils.io_utils import is_hidden_path

logger = logging.getLogger(__name__)


class ModuleLoader:
    """
    Args:
        graph: Graph to populate
        engine: Directive engine evaluating each file
        include: File-name pattern a candidate must match
        exclude: File-name pattern that rejects a candidate
        recursive: Descend into sub-directories
    """

    def __init__(
        self,
        graph: ModuleGraph,
        engine: DirectiveEngine,
        include: Optional[Union[Pattern, str]] = None,
        exclude: Optional[Union[Pattern, str]] = None,
        recursive: bool = False,
    ):
        self.graph = graph
        self.engine = engine
        self.include = re.compile(include if include is not None else DEFAULT_INCLUDE_PATTERN)
        self.exclude = re.compile(exclude if exclude is not None else DEFAULT_EXCLUDE_PATTERN)
        self.recursive = recursive

    def load_all(self, paths: Iterable[Union[Path, str]]) -> ModuleGraph:
        for path in paths:
            self.load(path)
        return self.graph

    def load(self, path: Union[Path, str]) -> ModuleGraph:
        """Load every candidate file under `path` (or `path` itself if it is a file)."""
        root = Path(path)
        if not root.exists():
            raise SourceReadError(f'Source path "{path}" does not exist or is not readable.', path=str(path))
        logger.debug(f"Loading sources from {root} (recursive={self.recursive})")
        for file_path in self.walk(root):
            self.load_file(file_path)
        return self.graph

    def walk(self, root: Path) -> Iterator[Path]:
        """
        Yield candidate files in a stable (sorted) order.

        A file passed directly is always a candidate; inside directories,
        hidden paths, non-files and names failing the patterns are skipped.
        """
        if root.is_file():
            self.graph.files.total += 1
            yield root
            return

        entries = sorted(root.glob("**/*" if self.recursive else "*"))
        for entry in entries:
            self.graph.files.total += 1
            if is_hidden_path(entry.relative_to(root)) or not entry.is_file():
                continue
            if self.exclude.search(entry.name) or not self.include.search(entry.name):
                logger.debug(f"Skipping {entry}: file name filtered out")
                continue
            yield entry

    def load_file(self, path: Union[Path, str]) -> List[Module]:
        """Register one file and evaluate its directives."""
        files = self.graph.files
        try:
            source = self.graph.add_source(path)
            modules = self.engine.evaluate(self.graph, source)
        except DoclinkError:
            files.errored += 1
            raise
        files.processed += 1
        return modules
