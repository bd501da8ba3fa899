"""Linker: bundle planning, output writing and the driver running a whole link."""

from .planner import Bundle, BundlePlanner, source_basename
from .writer import BundleWriter
from .driver import LinkerDriver, LinkResult

__all__ = ["Bundle", "BundlePlanner", "source_basename", "BundleWriter", "LinkerDriver", "LinkResult"]
