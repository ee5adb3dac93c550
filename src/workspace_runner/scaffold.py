"""Create a new, minimal workspace package.

``scaffold("lib", "date-utils")`` writes ``libs/date-utils/`` with a
``package.json`` named ``<internal prefix>date-utils``, a ``tsconfig.json``
and an empty ``src/index.ts`` entry point.
"""

from __future__ import annotations

import json
from pathlib import Path

from .config import RunnerConfig
from .discovery import Category
from .errors import ScaffoldError
from .logging import get_logger
from .utils import is_kebab_case, title_from_kebab


log = get_logger("scaffold")

KINDS = {
    "lib": Category.LIBS,
    "domain": Category.DOMAINS,
    "package": Category.PACKAGES,
    "app": Category.APPS,
}

TSCONFIG = {
    "extends": "../../tsconfig.base.json",
    "compilerOptions": {"outDir": "dist", "rootDir": "src"},
    "include": ["src"],
}


def package_manifest(name: str, prefix: str) -> dict:
    return {
        "name": f"{prefix}{name}",
        "version": "0.0.0",
        "private": True,
        "description": title_from_kebab(name),
        "main": "src/index.ts",
        "scripts": {"build": "tsc -p tsconfig.json"},
        "dependencies": {},
        "devDependencies": {},
    }


def scaffold(root: Path, kind: str, name: str, config: RunnerConfig | None = None) -> Path:
    config = config or RunnerConfig()
    if kind not in KINDS:
        raise ScaffoldError(f"Unknown package type {kind!r}. Valid types: {', '.join(KINDS)}")
    if not is_kebab_case(name):
        raise ScaffoldError(f"Package name must be kebab-case without scope, got {name!r}")

    target = Path(root) / KINDS[kind].value / name
    if target.exists():
        raise ScaffoldError(f"{target} already exists")

    (target / "src").mkdir(parents=True)
    manifest = package_manifest(name, config.internal_prefix)
    (target / config.manifest_name).write_text(
        json.dumps(manifest, indent=2) + "\n", encoding="utf-8"
    )
    (target / "tsconfig.json").write_text(json.dumps(TSCONFIG, indent=2) + "\n", encoding="utf-8")
    (target / "src" / "index.ts").write_text("export {};\n", encoding="utf-8")
    log.info("Created %s (%s)", target, manifest["name"])
    return target
