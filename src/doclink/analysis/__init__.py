"""Analysis: the module graph, its analysers and the topological serializer."""

from .source_unit import SourceUnit
from .module_graph import Module, Dependency, ModuleGraph, FileStats, normalize_name
from .topo_serializer import TopoSerializer, VisitState, RootSerialization
