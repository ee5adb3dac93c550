"""Dependency-ordered task runner for a multi-package JavaScript workspace.

Discovers packages under libs/, domains/, packages/ and apps/, sorts them so
internal dependencies come first, and runs a package script in each one,
either one at a time or as staggered long-running processes. Ships a Typer CLI.
"""

from .core import RunSummary, WorkspaceRun, select_scope, topo_sort  # re-export for convenience
from .discovery import Category, PackageDescriptor, discover_workspace

__all__ = [
    "Category",
    "PackageDescriptor",
    "RunSummary",
    "WorkspaceRun",
    "discover_workspace",
    "select_scope",
    "topo_sort",
]
