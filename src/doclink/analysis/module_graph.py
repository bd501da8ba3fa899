"""
Module Graph

Registry of modules, the source files defining them and the dependency edges
between them. In graph terms modules are vertices and `@requires` declarations
are directed edges (requirer -> requirement).

The graph is only mutated during the load pass; everything downstream
(analysis, serialization, planning) reads it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

from .analysers import DEFAULT_ANALYSERS
from .source_unit import SourceUnit
from ..shared.errors import (
    DuplicateDefinitionError,
    DuplicateDependencyError,
    SelfDependencyError,
    StructuralError,
)
from ..utils.config import DEFAULT_GRAPH_NAME
from ..utils.io_utils import normalize_path

logger = logging.getLogger(__name__)

Analyser = Callable[["ModuleGraph", Dict[str, Any]], None]


def normalize_name(name: Any) -> str:
    """Trim a module name; reject non-strings and blank names."""
    if isinstance(name, Module):
        return name.name
    if not isinstance(name, str):
        raise StructuralError(f"Not a valid module name: {name!r}")
    name = name.strip()
    if not name:
        raise StructuralError("Module name cannot be blank.")
    return name


class Module:
    """
    One module, either defined by a source file or only referenced so far.

    Modules are created undefined on first reference and become defined when
    a SourceUnit is attached with `define()`, which may happen only once.
    """

    def __init__(self, name: str, source: Optional[SourceUnit] = None):
        self.name: str = normalize_name(name)
        self.source: Optional[SourceUnit] = None
        self.requires: Dict[str, "Module"] = {}
        self.dependants: Dict[str, "Module"] = {}
        self.export_targets: List[str] = []
        if source is not None:
            self.define(source)

    def define(self, source: SourceUnit) -> "Module":
        """Attach the defining source file. Redefinition is not allowed."""
        if not isinstance(source, SourceUnit):
            raise TypeError(f"Module definition accepts a SourceUnit only, got {type(source).__name__}")
        if self.source is not None:
            raise DuplicateDefinitionError(
                f"Duplicate definition of {self.name} at: {source.path}",
                path=source.path,
                modules=(self.name,),
                help=f"already defined by {self.source.path}",
            )
        self.source = source
        source.modules.append(self)
        return self

    def defined(self) -> bool:
        return self.source is not None

    def add_export(self, target: Optional[str] = None) -> "Module":
        """Record an export target; a blank target means the module name itself."""
        target = (target or "").strip() or self.name
        if target not in self.export_targets:
            self.export_targets.append(target)
        return self

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        state = self.source.path if self.source else "undefined"
        return f"Module({self.name!r}, {state}, requires={list(self.requires)})"


@dataclass(frozen=True)
class Dependency:
    """Directed edge: `module` requires `requirement`."""
    module: Module
    requirement: Module

    def __str__(self) -> str:
        return f"{_quote(self.module.name)}->{_quote(self.requirement.name)};"


@dataclass
class FileStats:
    """File counters maintained by the loader during the load pass."""
    total: int = 0
    processed: int = 0
    errored: int = 0

    @property
    def ignored(self) -> int:
        return self.total - self.processed - self.errored


def _quote(name: str) -> str:
    return '"' + name.replace('"', '\\"') + '"'


class ModuleGraph:
    """
    Dependency graph of modules.

    Args:
        analysers: Ordered stat collectors run by `analyse()`; defaults to
            DEFAULT_ANALYSERS
    """

    def __init__(self, analysers: Optional[Sequence[Analyser]] = None):
        self.modules: Dict[str, Module] = {}
        self.sources: Dict[str, SourceUnit] = {}
        self.dependencies: List[Dependency] = []
        self.exports: Dict[str, Module] = {}
        self.files = FileStats()
        self.analysers: List[Analyser] = list(DEFAULT_ANALYSERS if analysers is None else analysers)

    # ------------------------------------------------------------------
    # Modules and sources
    # ------------------------------------------------------------------

    def get(self, name: Union[str, Module], create: bool = False) -> Optional[Module]:
        """Look a module up by (trimmed) name, creating an undefined one if asked."""
        key = normalize_name(name)
        module = self.modules.get(key)
        if module is None and create:
            module = self.modules[key] = Module(key)
            logger.debug(f"Created module {key}")
        return module

    def add_source(
        self,
        path: Union[Path, str],
        module: Optional[Union[str, Module]] = None,
        raw: Optional[bytes] = None,
    ) -> SourceUnit:
        """
        Register a source file (once per path) and optionally define `module` with it.

        Returns: the SourceUnit registered for `path`
        """
        key = normalize_path(path)
        unit = self.sources.get(key)
        if unit is None:
            unit = self.sources[key] = SourceUnit(key, raw=raw)
            logger.debug(f"Registered source {key}")
        if module is not None:
            self.get(module, create=True).define(unit)
        return unit

    def get_source(self, path: Union[Path, str]) -> SourceUnit:
        unit = self.sources.get(normalize_path(path))
        if unit is None:
            raise StructuralError(f"Source not defined: {path}", path=str(path))
        return unit

    def add_module(self, name: Union[str, Module], source: Union[SourceUnit, Path, str]) -> Module:
        """Define module `name` with a registered source."""
        unit = source if isinstance(source, SourceUnit) else self.get_source(source)
        self.sources.setdefault(unit.path, unit)
        module = self.get(name, create=True).define(unit)
        logger.debug(f"Defined module {module.name} in {unit.path}")
        return module

    # ------------------------------------------------------------------
    # Edges and exports
    # ------------------------------------------------------------------

    def connect(self, requirer: Union[str, Module], required: Union[str, Module]) -> Dependency:
        """Mark `requirer` as depending on `required`, creating either module if missing."""
        requirer_name = normalize_name(requirer)
        required_name = normalize_name(required)
        if requirer_name == required_name:
            existing = self.modules.get(requirer_name)
            raise SelfDependencyError(
                f"Module {requirer_name} cannot depend on itself",
                path=existing.source.path if existing and existing.source else None,
                modules=(requirer_name,),
            )

        module = self.get(requirer_name, create=True)
        requirement = self.get(required_name, create=True)
        if requirement.name in module.requires:
            raise DuplicateDependencyError(
                f"{requirement.name} already marked as requirement of {module.name}",
                path=module.source.path if module.source else None,
                modules=(module.name, requirement.name),
            )

        module.requires[requirement.name] = requirement
        requirement.dependants[module.name] = module
        dependency = Dependency(module, requirement)
        self.dependencies.append(dependency)
        logger.debug(f"Connected {module.name} -> {requirement.name}")
        return dependency

    def mark_export(self, name: Union[str, Module], target: Optional[str] = None) -> Module:
        """Add an export target to a module and record it as an export root."""
        module = self.get(name, create=True).add_export(target)
        self.exports[module.name] = module
        return module

    def export_roots(self) -> List[Module]:
        return [module for module in self.exports.values() if module.export_targets]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def analyse(self) -> Dict[str, Any]:
        """
        Run every analyser over a fresh stats dict.

        This walks the whole graph; cache the result if it is needed repeatedly.
        """
        stats: Dict[str, Any] = {}
        for analyser in self.analysers:
            analyser(self, stats)
        return stats

    def to_dot(self, name: str = DEFAULT_GRAPH_NAME) -> str:
        """
        Graphviz description: one edge per dependency, drawn from the required
        module to its dependant, and a bare node for modules nobody requires.
        """
        lines = [f"digraph {name} {{"]
        for module in self.modules.values():
            if not module.dependants:
                lines.append(f"{_quote(module.name)};")
                continue
            for dependant in module.dependants.values():
                lines.append(f"{_quote(module.name)}->{_quote(dependant.name)};")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def __len__(self) -> int:
        return len(self.modules)

    def __contains__(self, name: object) -> bool:
        try:
            return normalize_name(name) in self.modules
        except StructuralError:
            return False

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules.values())
