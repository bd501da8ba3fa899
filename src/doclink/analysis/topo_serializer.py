"""
Topological Serializer

Orders the dependency closure of an export root so that every module comes
after all of its requirements (post-order depth-first walk over `requires`).

Traversal state lives in a table owned by each call, keyed by module identity,
never on the modules themselves. A call that raises CyclicDependencyError
leaves nothing behind, so the next call starts clean.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .module_graph import Module
from ..shared.errors import CyclicDependencyError

logger = logging.getLogger(__name__)


class VisitState(Enum):
    UNVISITED = "unvisited"
    VISITING = "visiting"
    DONE = "done"


@dataclass
class RootSerialization:
    """Result of serializing one root inside `serialize_each`."""
    root: Module
    modules: List[Module] = field(default_factory=list)
    error: Optional[CyclicDependencyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TopoSerializer:
    """
    Cycle-detecting topological sort.

    Only defined modules are emitted; undefined "glue" modules are walked
    through but left out of the result.
    """

    def serialize(self, root: Module) -> List[Module]:
        """Dependency-first closure of `root`, ending with `root` itself when defined."""
        ordered: List[Module] = []
        self._walk(root, {}, ordered)
        return ordered

    def serialize_all(self, roots: Iterable[Module]) -> List[List[Module]]:
        """
        Serialize several roots in one epoch.

        A module already placed in an earlier root's sequence is not appended
        again to a later one, so concatenating the sequences gives a single
        duplicate-free load order.
        """
        state: Dict[Module, VisitState] = {}
        matrix: List[List[Module]] = []
        for root in roots:
            ordered: List[Module] = []
            self._walk(root, state, ordered)
            matrix.append(ordered)
        return matrix

    def serialize_each(self, roots: Iterable[Module]) -> List[RootSerialization]:
        """
        Serialize every root in its own epoch, so each sequence is a complete
        closure. A cycle under one root is recorded for that root only.
        """
        results = []
        for root in roots:
            result = RootSerialization(root)
            try:
                result.modules = self.serialize(root)
            except CyclicDependencyError as e:
                logger.debug(f"Serialization of {root.name} failed: {e.message}")
                result.error = e
            results.append(result)
        return results

    def _walk(self, root: Module, state: Dict[Module, VisitState], ordered: List[Module]) -> None:
        if state.get(root, VisitState.UNVISITED) is VisitState.DONE:
            return

        state[root] = VisitState.VISITING
        stack: List[Tuple[Module, Iterator[Module]]] = [(root, iter(root.requires.values()))]
        while stack:
            module, pending = stack[-1]
            for requirement in pending:
                seen = state.get(requirement, VisitState.UNVISITED)
                if seen is VisitState.VISITING:
                    raise self._cycle_error(requirement, stack)
                if seen is VisitState.UNVISITED:
                    state[requirement] = VisitState.VISITING
                    stack.append((requirement, iter(requirement.requires.values())))
                    break
            else:
                stack.pop()
                state[module] = VisitState.DONE
                if module.defined():
                    ordered.append(module)

    @staticmethod
    def _cycle_error(module: Module, stack: List[Tuple[Module, Iterator[Module]]]) -> CyclicDependencyError:
        path = [entry for entry, _ in stack]
        start = next(i for i, entry in enumerate(path) if entry is module)
        cycle = [entry.name for entry in path[start:]] + [module.name]
        return CyclicDependencyError(
            module.name,
            cycle,
            path=module.source.path if module.source else None,
        )
