"""Module system: directive registry and engine, path resolution, module loading."""

from .path_resolver import PathResolver, ResolvedPath
from .directive_registry import Directive, DirectiveRegistry
from .directives import RequiresDirective, default_registry, define_module, export_module
from .directive_engine import DirectiveEngine, is_directive_block
from .module_loader import ModuleLoader

__all__ = [
    'PathResolver',
    'ResolvedPath',
    'Directive',
    'DirectiveRegistry',
    'RequiresDirective',
    'default_registry',
    'define_module',
    'export_module',
    'DirectiveEngine',
    'is_directive_block',
    'ModuleLoader',
]
