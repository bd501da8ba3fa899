"""
Directive Registry

Ordered set of named directive evaluators. Exactly one directive is the
anchor (the module declaration); every other one is a satellite, evaluated
only for comment blocks in which the anchor matched.

A registry is an ordinary object handed to the DirectiveEngine; there is no
process-wide directive table.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

Evaluator = Callable[..., Any]


@dataclass(frozen=True)
class Directive:
    """
    One registered directive.

    `pattern` is the tag it reacts to (without '@'). The anchor evaluator is
    called as `(graph, source_unit, token)` and returns the Module it
    defined; satellites are called as `(graph, module, token)`.
    """
    name: str
    pattern: str
    evaluator: Evaluator
    anchor: bool = False

    def matches(self, tag: str) -> bool:
        """Tags are matched case-insensitively."""
        return tag.lower() == self.pattern.lower()


class DirectiveRegistry:
    """Registration-ordered directives with a single anchor."""

    def __init__(self):
        self._directives: Dict[str, Directive] = {}
        self._anchor: Optional[Directive] = None

    def register(self, name: str, pattern: str, evaluator: Evaluator, anchor: bool = False) -> Directive:
        """Add a directive; raises ValueError on conflicting registrations."""
        if not callable(evaluator):
            raise ValueError(f"Directive evaluator for {name!r} must be callable")
        if name in self._directives:
            raise ValueError(f"Duplicate directive {name!r}")
        pattern = pattern.lstrip("@").strip()
        if not pattern:
            raise ValueError(f"Directive {name!r} needs a non-blank tag pattern")
        if anchor and self._anchor is not None:
            raise ValueError(f"Anchor directive already registered: {self._anchor.name!r}")

        clash = [d for d in self._directives.values() if d.matches(pattern) and (anchor or d.anchor)]
        if clash:
            raise ValueError(f"Conflicting anchor and satellite directives for tag @{pattern}")

        directive = Directive(name=name, pattern=pattern, evaluator=evaluator, anchor=anchor)
        self._directives[name] = directive
        if anchor:
            self._anchor = directive
        return directive

    @property
    def anchor(self) -> Directive:
        if self._anchor is None:
            raise LookupError("No anchor directive registered")
        return self._anchor

    def satellites(self, order: Optional[Sequence[str]] = None) -> List[Directive]:
        """
        Satellites in registration order, or with the names in `order` first
        (unknown names ignored) followed by the rest in registration order.
        """
        names: List[str] = []
        for name in list(order or ()) + list(self._directives):
            directive = self._directives.get(name)
            if directive is not None and not directive.anchor and name not in names:
                names.append(name)
        return [self._directives[name] for name in names]

    def __contains__(self, name: object) -> bool:
        return name in self._directives

    def __getitem__(self, name: str) -> Directive:
        return self._directives[name]

    def __len__(self) -> int:
        return len(self._directives)
