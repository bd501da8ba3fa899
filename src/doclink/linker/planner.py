"""
Bundle Planner

Turns the serialized closure of every export root into Bundle descriptors:
the distinct source files to concatenate (dependency-first) and the file to
write them to.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from ..analysis.module_graph import Module
from ..shared.errors import SelfOverwriteError, StructuralError
from ..utils.io_utils import normalize_path

logger = logging.getLogger(__name__)

NamingPolicy = Callable[[Module], str]


def source_basename(module: Module) -> str:
    """Default naming policy: the base name of the module's own source file."""
    return os.path.basename(module.source.path)


@dataclass(frozen=True)
class Bundle:
    """One output file: `sources` (absolute paths, load order) concatenated into `destination`."""
    sources: Tuple[str, ...]
    destination: str
    root: str

    def __len__(self) -> int:
        return len(self.sources)


class BundlePlanner:
    """
    Args:
        destination: Directory export targets are relative to
        naming: Destination name for a root without export targets
    """

    def __init__(self, destination: str = "", naming: NamingPolicy = source_basename):
        self.destination = destination
        self.naming = naming

    def plan(self, serialized: Iterable[Tuple[Module, Sequence[Module]]]) -> List[Bundle]:
        """
        Plan bundles for `(root, ordered modules)` pairs.

        A root with N export targets yields N bundles with the same sources.
        """
        bundles: List[Bundle] = []
        for root, modules in serialized:
            sources = self.collapse(modules)
            if not sources:
                logger.debug(f"Nothing to bundle for {root.name}")
                continue
            for target in self._targets(root):
                bundles.append(Bundle(sources, os.path.join(self.destination, target), root.name))

        self.validate(bundles)
        return bundles

    @staticmethod
    def collapse(modules: Sequence[Module]) -> Tuple[str, ...]:
        """Distinct owning source paths of `modules`, in first-seen order."""
        seen: Dict[str, None] = {}
        for module in modules:
            if module.source is not None:
                seen.setdefault(module.source.path, None)
        return tuple(seen)

    def _targets(self, root: Module) -> List[str]:
        if root.export_targets:
            return list(root.export_targets)
        if root.source is None:
            raise StructuralError(
                f"Cannot name a bundle for {root.name}: it has no export target and no source file",
                modules=(root.name,),
            )
        return [self.naming(root)]

    @staticmethod
    def validate(bundles: Sequence[Bundle]) -> None:
        """No bundle may be written over any bundled source file."""
        inputs = {path for bundle in bundles for path in bundle.sources}
        claimed: Dict[str, Bundle] = {}
        for bundle in bundles:
            target = normalize_path(bundle.destination)
            if target in inputs:
                raise SelfOverwriteError(
                    f'Bundle for {bundle.root} would overwrite its input: "{bundle.destination}"',
                    path=target,
                    modules=(bundle.root,),
                )
            previous = claimed.get(target)
            if previous is not None and previous.sources != bundle.sources:
                logger.warning(
                    f'Bundles for {previous.root} and {bundle.root} share destination "{bundle.destination}"; '
                    f"the latter wins"
                )
            claimed[target] = bundle
