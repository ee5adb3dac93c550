"""
Workspace package discovery.

Scans each category directory of the workspace and turns every package with a
valid manifest into a PackageDescriptor. A bad manifest excludes only that
package; discovery itself never aborts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import ManifestParseError
from .logging import get_logger
from .manifest import internal_dependencies, read_manifest


log = get_logger("discovery")


class Category(str, Enum):
    """Workspace groupings, in discovery order."""

    LIBS = "libs"
    DOMAINS = "domains"
    PACKAGES = "packages"
    APPS = "apps"


# Run-time selector meaning every category; never attached to a descriptor.
ALL = "all"


@dataclass(frozen=True)
class PackageDescriptor:
    short_name: str
    qualified_name: str
    category: Category
    path: Path
    internal_dependencies: tuple[str, ...] = ()
    has_target_task: bool = False


def discover_packages(
    root: Path,
    category: Category,
    task: str,
    internal_prefix: str,
    manifest_name: str = "package.json",
) -> list[PackageDescriptor]:
    """Discover the packages directly under ``root/<category>``."""
    category = Category(category)
    folder = root / category.value
    if not folder.is_dir():
        log.debug("No %s/ folder in %s", category.value, root)
        return []

    found: list[PackageDescriptor] = []
    for entry in sorted(folder.iterdir(), key=lambda p: p.name):
        if not entry.is_dir():
            continue
        manifest_path = entry / manifest_name
        if not manifest_path.is_file():
            continue
        try:
            manifest = read_manifest(manifest_path)
        except ManifestParseError as e:
            log.warning("Skipping %s/%s: %s", category.value, entry.name, e)
            continue
        found.append(
            PackageDescriptor(
                short_name=entry.name,
                qualified_name=manifest.name,
                category=category,
                path=Path(category.value) / entry.name,
                internal_dependencies=internal_dependencies(manifest, internal_prefix),
                has_target_task=manifest.has_script(task),
            )
        )
    log.debug("Discovered %d package(s) in %s/", len(found), category.value)
    return found


def discover_workspace(
    root: Path,
    task: str,
    internal_prefix: str,
    manifest_name: str = "package.json",
) -> list[PackageDescriptor]:
    """Discover packages across every category, libs first and apps last."""
    packages: list[PackageDescriptor] = []
    for category in Category:
        packages.extend(
            discover_packages(root, category, task, internal_prefix, manifest_name)
        )
    return packages
