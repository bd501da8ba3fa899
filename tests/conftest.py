"""
Pytest configuration and shared fixtures for all doclink tests.

The directive parser builds its LALR tables once per session; everything else
is cheap and created per test so that graphs never leak between tests.
"""

import sys
import pytest
from typing import Callable, Dict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from doclink.analysis.module_graph import ModuleGraph
from doclink.analysis.module_system import DirectiveEngine, PathResolver, default_registry
from doclink.frontend.directive_parser import DirectiveParser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def directive_parser():
    """Stateless parser shared across all tests."""
    return DirectiveParser()


# =============================================================================
# Function-scoped fixtures (default - one per test)
# =============================================================================

@pytest.fixture
def graph():
    """Fresh, empty module graph."""
    return ModuleGraph()


@pytest.fixture
def resolver(tmp_path):
    """Path resolver naming discovered files relative to the test directory."""
    return PathResolver(tmp_path)


@pytest.fixture
def engine(directive_parser, resolver):
    """Directive engine with the built-in @module/@requires/@export directives."""
    return DirectiveEngine(default_registry(resolver), parser=directive_parser)


# =============================================================================
# Helper fixtures
# =============================================================================

@pytest.fixture
def write_project(tmp_path) -> Callable[[Dict[str, str]], Path]:
    """
    Factory writing `{relative path: content}` under tmp_path.
    Returns the project root.
    """
    def _write_project(files: Dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write_project
