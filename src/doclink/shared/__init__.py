"""
Shared components: source locations, diagnostics and the error taxonomy.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter,
    DoclinkError, StructuralError, DuplicateDefinitionError, SelfDependencyError,
    DuplicateDependencyError, CyclicDependencyError, ExternalFileNotFoundError,
    SourceReadError, SelfOverwriteError, OverwriteDisallowedError, StrictModeError,
)
