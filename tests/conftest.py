"""
Pytest fixtures: throwaway workspaces and a recording process runner.
"""

import json
from pathlib import Path

import pytest

from workspace_runner.config import RunnerConfig
from workspace_runner.discovery import Category, PackageDescriptor
from workspace_runner.errors import SpawnError, TaskExitError


PREFIX = "@arvasit/"


def write_package(
    root: Path,
    category: str,
    folder: str,
    name: str | None = None,
    deps: dict | None = None,
    dev_deps: dict | None = None,
    peer_deps: dict | None = None,
    scripts: dict | None = None,
) -> Path:
    """Write ``<root>/<category>/<folder>/package.json`` and return the folder."""
    pkg_dir = root / category / folder
    pkg_dir.mkdir(parents=True, exist_ok=True)
    manifest: dict = {"name": name or f"{PREFIX}{folder}", "version": "1.0.0"}
    if deps is not None:
        manifest["dependencies"] = deps
    if dev_deps is not None:
        manifest["devDependencies"] = dev_deps
    if peer_deps is not None:
        manifest["peerDependencies"] = peer_deps
    if scripts is not None:
        manifest["scripts"] = scripts
    (pkg_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    return pkg_dir


def descriptor(
    name: str,
    deps: tuple = (),
    category: Category = Category.LIBS,
    has_task: bool = True,
) -> PackageDescriptor:
    """Build a descriptor without touching the filesystem."""
    short = name.split("/")[-1]
    return PackageDescriptor(
        short_name=short,
        qualified_name=name,
        category=category,
        path=Path(category.value) / short,
        internal_dependencies=tuple(deps),
        has_target_task=has_task,
    )


class RecordingRunner:
    """Process runner double that records calls instead of spawning."""

    def __init__(self, fail_on: dict | None = None, spawn_fail_on: set | None = None):
        self.calls: list[tuple[str, str, str]] = []
        self.fail_on = fail_on or {}
        self.spawn_fail_on = spawn_fail_on or set()

    def run(self, package, task):
        name = package.qualified_name
        if name in self.spawn_fail_on:
            raise SpawnError(name, task, "executable not found")
        self.calls.append(("run", name, task))
        if name in self.fail_on:
            raise TaskExitError(name, task, self.fail_on[name])

    def start(self, package, task):
        name = package.qualified_name
        if name in self.spawn_fail_on:
            raise SpawnError(name, task, "executable not found")
        self.calls.append(("start", name, task))
        return object()

    @property
    def names(self) -> list[str]:
        return [name for _, name, _ in self.calls]


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Empty workspace root."""
    return tmp_path


@pytest.fixture
def config() -> RunnerConfig:
    return RunnerConfig(internal_prefix=PREFIX, settle_interval=0.0)


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def linear_workspace(workspace) -> Path:
    """libs: a <- b <- c, all with a build script."""
    write_package(workspace, "libs", "a", scripts={"build": "tsc"})
    write_package(workspace, "libs", "b", deps={f"{PREFIX}a": "workspace:*"}, scripts={"build": "tsc"})
    write_package(workspace, "libs", "c", deps={f"{PREFIX}b": "workspace:*"}, scripts={"build": "tsc"})
    return workspace
