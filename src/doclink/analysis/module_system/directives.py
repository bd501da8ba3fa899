"""
Built-in directives: @module (anchor), @requires and @export.
"""

import logging
import os
from typing import Optional

from .directive_registry import DirectiveRegistry
from .path_resolver import PathResolver
from ..module_graph import Dependency, Module, ModuleGraph
from ..source_unit import SourceUnit
from ...shared.errors import ExternalFileNotFoundError
from ...utils.config import EXPORT_DIRECTIVE, MODULE_DIRECTIVE, REQUIRES_DIRECTIVE

logger = logging.getLogger(__name__)


def define_module(graph: ModuleGraph, source: SourceUnit, name: str) -> Module:
    return graph.add_module(name, source)


class RequiresDirective:
    """
    Adds dependency edges.

    Tokens shaped like relative file paths name a file next to the requiring
    one; such files are registered on the fly as modules named by their path
    relative to the resolver's base directory.
    """

    def __init__(self, resolver: Optional[PathResolver] = None):
        self.resolver = resolver or PathResolver()

    def __call__(self, graph: ModuleGraph, module: Module, dependency: str) -> Dependency:
        if module.source is not None and self.resolver.is_relative_reference(dependency):
            dependency = self._discover(graph, module, dependency)
        return graph.connect(module, dependency)

    def _discover(self, graph: ModuleGraph, module: Module, token: str) -> str:
        resolved = self.resolver.resolve(token, os.path.dirname(module.source.path))
        if not resolved.exists:
            raise ExternalFileNotFoundError(
                f'External module file not found: "{resolved.path}"',
                path=module.source.path,
                modules=(module.name,),
            )
        name = self.resolver.module_name_for(resolved.path)
        external = graph.get(name, create=True)
        if not external.defined():
            graph.add_source(resolved.path, external)
            logger.debug(f"Discovered external module {name} required by {module.name}")
        return name


def export_module(graph: ModuleGraph, module: Module, target: str) -> Module:
    return graph.mark_export(module, target)


def default_registry(resolver: Optional[PathResolver] = None) -> DirectiveRegistry:
    """Registry with @module as anchor and @requires, @export as satellites."""
    registry = DirectiveRegistry()
    registry.register(MODULE_DIRECTIVE, MODULE_DIRECTIVE, define_module, anchor=True)
    registry.register(REQUIRES_DIRECTIVE, REQUIRES_DIRECTIVE, RequiresDirective(resolver))
    registry.register(EXPORT_DIRECTIVE, EXPORT_DIRECTIVE, export_module)
    return registry
