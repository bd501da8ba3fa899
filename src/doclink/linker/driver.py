"""
Linker Driver

Orchestrates one link run in a fixed phase order:

1. Load: walk the sources, evaluate directives, build the module graph
2. Analyse: collect graph statistics
3. Strict check: orphan modules are fatal unless strict mode is off
4. Export map: optional graphviz dot file
5. Serialize: dependency-first closure of every export root
6. Plan: turn closures into bundle descriptors
7. Write: concatenate sources into bundles (skipped in test mode)

Errors never escape `link()`; they are reported on the result.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from .planner import Bundle, BundlePlanner
from .writer import BundleWriter
from ..analysis.module_graph import ModuleGraph
from ..analysis.module_system import (
    DirectiveEngine,
    DirectiveRegistry,
    ModuleLoader,
    PathResolver,
    default_registry,
)
from ..analysis.topo_serializer import TopoSerializer
from ..shared.errors import DoclinkError, ErrorReporter, StrictModeError
from ..utils.config import LinkerOptions, parse_exportmap
from ..utils.io_utils import plural

logger = logging.getLogger(__name__)


class LinkResult:
    """Outcome of a link run"""

    def __init__(
        self,
        graph: Optional[ModuleGraph] = None,
        reporter: Optional[ErrorReporter] = None,
        success: bool = False,
    ):
        self.graph = graph
        self.reporter = reporter or ErrorReporter()
        self.success = success
        self.stats: Dict[str, Any] = {}
        self.bundles: List[Bundle] = []
        self.written: List[str] = []
        self.exportmap: Optional[str] = None
        self.elapsed: float = 0.0

    def has_errors(self) -> bool:
        return self.reporter.has_errors()

    def get_errors(self) -> List[str]:
        if self.reporter.has_errors():
            return [self.reporter.format_all_errors(color=False)]
        return []

    def summary(self) -> str:
        """'<n> files, <m> modules processed for <k> export directives.'"""
        files = self.stats.get("files_processed", 0)
        modules = len(self.stats.get("defined_modules", ()))
        exports = self.stats.get("number_of_exports", 0)
        return (
            f"{plural(files, 'file')}, {plural(modules, 'module')} processed "
            f"for {plural(exports, 'export directive')}."
        )


class LinkerDriver:
    """
    Args:
        options: Run options (defaults if None)
        registry: Directives to evaluate (the built-in @module/@requires/@export if None)
        resolver: Resolver for relative @requires paths
    """

    def __init__(
        self,
        options: Optional[LinkerOptions] = None,
        registry: Optional[DirectiveRegistry] = None,
        resolver: Optional[PathResolver] = None,
    ):
        self.options = options or LinkerOptions()
        self.resolver = resolver or PathResolver()
        self.registry = registry or default_registry(self.resolver)
        self.engine = DirectiveEngine(self.registry)
        self.serializer = TopoSerializer()
        self.planner = BundlePlanner(self.options.destination)
        self.writer = BundleWriter(overwrite=self.options.overwrite)

    def link(self, sources: Optional[Sequence[str]] = None) -> LinkResult:
        """Run every phase over `sources` (the configured sources if None)."""
        started = time.perf_counter()
        graph = ModuleGraph()
        result = LinkResult(graph=graph)

        try:
            self._run(graph, result, list(sources) if sources is not None else self.options.sources)
        except DoclinkError as e:
            logger.debug(f"Link aborted: {e.message}")
            result.reporter.report_exception(e)

        result.reporter.source_files.update({path: unit.text for path, unit in graph.sources.items()})
        result.success = not result.reporter.has_errors()
        result.elapsed = time.perf_counter() - started
        return result

    def load(self, graph: ModuleGraph, sources: Sequence[str]) -> ModuleGraph:
        loader = ModuleLoader(
            graph,
            self.engine,
            include=self.options.include_pattern(),
            exclude=self.options.exclude_pattern(),
            recursive=self.options.recursive,
        )
        return loader.load_all(sources)

    def _run(self, graph: ModuleGraph, result: LinkResult, sources: Sequence[str]) -> None:
        # Phase 1: load
        self.load(graph, sources)

        # Phase 2: analyse
        stats = result.stats = graph.analyse()
        logger.debug(
            f"Loaded {len(stats['defined_modules'])} defined, {len(stats['orphan_modules'])} orphan modules, "
            f"{stats['number_of_dependencies']} dependencies"
        )

        # Phase 3: strict mode
        orphans = stats["orphan_modules"]
        if self.options.strict and orphans:
            names = [module.name for module in orphans]
            raise StrictModeError(
                f"{plural(len(names), 'orphan module')} detected under strict mode.\n- " + "\n- ".join(names),
                modules=names,
                help="define the modules or run with --no-strict",
            )

        # Phase 4: export map
        exportmap = parse_exportmap(self.options.exportmap)
        if exportmap is not None:
            result.exportmap = self.writer.write_dot(graph, exportmap or None)

        # Phase 5: serialize every root in its own epoch, collecting every cycle
        serialized = self.serializer.serialize_each(stats["export_roots"])
        failed = [entry for entry in serialized if not entry.ok]
        if failed:
            for entry in failed:
                result.reporter.report_exception(entry.error)
            logger.debug(f"{plural(len(failed), 'export root')} failed to serialize; nothing written")
            return

        # Phase 6: plan
        result.bundles = self.planner.plan((entry.root, entry.modules) for entry in serialized)

        # Phase 7: write
        if self.options.test:
            logger.debug(f"Test mode: {plural(len(result.bundles), 'bundle')} planned, nothing written")
            return
        result.written = self.writer.write_all(result.bundles, graph.sources)
