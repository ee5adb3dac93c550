"""Fault taxonomy for workspace runs.

Every fault derives from :class:`WorkspaceError` and carries the process exit
code the CLI reports for it. Library code raises; only the CLI exits.
"""

from __future__ import annotations

from typing import Sequence


class WorkspaceError(Exception):
    exit_code = 1


class UsageError(WorkspaceError):
    """Missing or malformed command-line arguments."""


class UnknownScopeError(WorkspaceError):
    def __init__(self, scope: str, valid: Sequence[str]):
        self.scope = scope
        self.valid = tuple(valid)
        super().__init__(
            f"Unknown package folder {scope!r}. Valid package folders: {', '.join(self.valid)}"
        )


class ConfigError(WorkspaceError):
    """Invalid runner configuration (file, environment or flags)."""


class ManifestParseError(WorkspaceError):
    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid manifest {path}: {reason}")


class DuplicatePackageError(WorkspaceError):
    def __init__(self, qualified_name: str, paths: Sequence):
        self.qualified_name = qualified_name
        self.paths = tuple(paths)
        super().__init__(
            f"Package name {qualified_name!r} is declared more than once: "
            + ", ".join(str(p) for p in self.paths)
        )


class CycleError(WorkspaceError):
    """Raised when the sorter re-enters a package that is still in progress.

    ``package`` is the node that triggered the re-entry; ``cycle`` is the
    dependency path from that node back to itself.
    """

    def __init__(self, package: str, cycle: Sequence[str] = ()):
        self.package = package
        self.cycle = tuple(cycle)
        msg = f"Circular dependency detected: {package}"
        if self.cycle:
            msg += f" ({' -> '.join(self.cycle)})"
        super().__init__(msg)


class SpawnError(WorkspaceError):
    def __init__(self, package: str, task: str, reason: str):
        self.package = package
        self.task = task
        self.reason = reason
        super().__init__(f'Failed to start "{task}" in {package}: {reason}')


class TaskExitError(WorkspaceError):
    def __init__(self, package: str, task: str, returncode: int):
        self.package = package
        self.task = task
        self.returncode = returncode
        super().__init__(
            f'Script "{task}" failed in {package} (exit code {returncode})'
        )


class ScaffoldError(WorkspaceError):
    """Scaffold target is invalid or already exists."""
