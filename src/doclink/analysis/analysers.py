"""
Graph analysers.

Each analyser is a plain function `(graph, stats) -> None` that adds its own
keys to the shared stats dict. Analysers do not read each other's keys, so the
order they run in does not matter.
"""

from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .module_graph import ModuleGraph


def module_stats(graph: "ModuleGraph", stats: Dict[str, Any]) -> None:
    """Defined vs orphan modules and the number of export directives."""
    stats["orphan_modules"] = []
    stats["defined_modules"] = []
    stats["number_of_exports"] = 0
    for module in graph.modules.values():
        stats["defined_modules" if module.defined() else "orphan_modules"].append(module)
        stats["number_of_exports"] += len(module.export_targets)


def dependency_stats(graph: "ModuleGraph", stats: Dict[str, Any]) -> None:
    stats["number_of_dependencies"] = len(graph.dependencies)
    stats["export_roots"] = graph.export_roots()


def file_stats(graph: "ModuleGraph", stats: Dict[str, Any]) -> None:
    """File counters picked up by the loader during the load pass."""
    stats["files_total"] = graph.files.total
    stats["files_processed"] = graph.files.processed
    stats["files_ignored"] = graph.files.ignored


DEFAULT_ANALYSERS = (module_stats, dependency_stats, file_stats)
