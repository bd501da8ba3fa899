"""
Directive Engine

Turns the doc comments of a SourceUnit into graph mutations.

For every qualifying comment block:
- tokenize the block and look for the anchor directive (first match only;
  a second anchor in the same block is an error)
- define the anchor's module with the source unit
- run every satellite directive, in order, for every one of its matches in
  the block, skipping blank values
"""

import logging
from typing import Any, Callable, List, Optional, Sequence

from .directive_registry import Directive, DirectiveRegistry
from ..module_graph import Module, ModuleGraph
from ..source_unit import SourceUnit
from ...frontend.comment_scanner import CommentBlock
from ...frontend.directive_parser import DirectiveParser, DirectiveToken
from ...shared.errors import DoclinkError, DuplicateDefinitionError
from ...shared.source_location import SourceLocation

logger = logging.getLogger(__name__)

BlockFilter = Callable[[CommentBlock], bool]


def is_directive_block(block: CommentBlock) -> bool:
    """Doc-style block comments without an @ignore marker."""
    return block.is_doc_style and not block.has_ignore_marker


class DirectiveEngine:
    """
    Args:
        registry: Directives to evaluate
        parser: Directive tokenizer (a new DirectiveParser if None)
        order: Explicit satellite order (names first, rest in registration order)
        block_filter: Predicate deciding which comment blocks are read
    """

    def __init__(
        self,
        registry: DirectiveRegistry,
        parser: Optional[DirectiveParser] = None,
        order: Optional[Sequence[str]] = None,
        block_filter: BlockFilter = is_directive_block,
    ):
        self.registry = registry
        self.parser = parser or DirectiveParser()
        self.order = list(order) if order else None
        self.block_filter = block_filter

    def evaluate(self, graph: ModuleGraph, source: SourceUnit) -> List[Module]:
        """Evaluate every block of `source`; returns the modules it defined."""
        defined = []
        for block in source.blocks:
            if not self.block_filter(block):
                continue
            module = self._evaluate_block(graph, source, block)
            if module is not None:
                defined.append(module)
        logger.debug(f"Evaluated {source.path}: {len(defined)} modules defined")
        return defined

    def _evaluate_block(self, graph: ModuleGraph, source: SourceUnit, block: CommentBlock) -> Optional[Module]:
        directives = self.parser.parse(block.text, SourceLocation(source.path, block.line, block.column))
        anchor = self.registry.anchor

        declarations = [d for d in directives if anchor.matches(d.tag) and d.value]
        if not declarations:
            return None
        if len(declarations) > 1:
            first, repeated = declarations[0], declarations[1]
            raise DuplicateDefinitionError(
                f"Repeated module definition in a single block: {repeated.value} dropped in favour of {first.value}",
                self._locate(source, block, repeated),
                modules=(first.value, repeated.value),
            )

        module = self._apply(anchor, graph, source, block, declarations[0], source)
        for satellite in self.registry.satellites(self.order):
            for directive in directives:
                if satellite.matches(directive.tag) and directive.value:
                    self._apply(satellite, graph, source, block, directive, module)
        return module

    def _apply(
        self,
        directive: Directive,
        graph: ModuleGraph,
        source: SourceUnit,
        block: CommentBlock,
        token: DirectiveToken,
        subject: Any,
    ) -> Any:
        try:
            return directive.evaluator(graph, subject, token.value)
        except DoclinkError as e:
            if e.location is None:
                e.location = self._locate(source, block, token)
            raise

    @staticmethod
    def _locate(source: SourceUnit, block: CommentBlock, token: DirectiveToken) -> SourceLocation:
        """File position of a directive; the first body line starts after the 2-char opener."""
        if token.line == 1:
            return SourceLocation(source.path, block.line, block.column + 1 + token.column)
        return SourceLocation(source.path, block.line + token.line - 1, token.column)
