"""
Package manifest parsing and internal dependency extraction.

A manifest is the ``package.json`` of a workspace package. Only the fields the
runner needs are modelled; everything else in the file is ignored.
"""

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ManifestParseError


class Manifest(BaseModel):
    """Validated view of a package manifest."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1, description="Globally unique package name")
    version: str | None = Field(default=None)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(default_factory=dict, alias="peerDependencies")
    scripts: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that are blank once whitespace is stripped."""
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @field_validator(
        "dependencies", "dev_dependencies", "peer_dependencies", "scripts", mode="before"
    )
    @classmethod
    def null_as_empty(cls, v):
        return {} if v is None else v

    def all_dependency_names(self) -> list[str]:
        """Dependency names in runtime, dev, peer order (may repeat)."""
        names: list[str] = []
        for collection in (self.dependencies, self.dev_dependencies, self.peer_dependencies):
            names.extend(collection)
        return names

    def has_script(self, task: str) -> bool:
        return bool(self.scripts.get(task))


def parse_manifest(data: object, source: Path | str = "<memory>") -> Manifest:
    """
    Validate already-decoded manifest data.

    Raises:
        ManifestParseError: If the data is not a mapping or fails validation
    """
    if not isinstance(data, dict):
        raise ManifestParseError(source, "manifest must be a JSON object")
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise ManifestParseError(source, problems) from e


def read_manifest(path: Path) -> Manifest:
    """
    Read and validate the manifest file at ``path``.

    Returns either a complete Manifest or raises ManifestParseError; a
    partially populated manifest is never produced.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestParseError(path, f"unreadable: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestParseError(path, f"invalid JSON: {e}") from e
    return parse_manifest(data, path)


def internal_dependencies(manifest: Manifest, prefix: str) -> tuple[str, ...]:
    """
    Collect the internal dependency names of a manifest.

    Names from all three dependency collections that start with ``prefix`` are
    kept, deduplicated in first-seen order. External names are dropped since
    they play no part in ordering.
    """
    seen: dict[str, None] = {}
    for name in manifest.all_dependency_names():
        if name.startswith(prefix):
            seen.setdefault(name, None)
    return tuple(seen)
