from __future__ import annotations

"""Small helpers for reading config mappings and naming packages."""

import re
from typing import Dict


_KEBAB = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def is_kebab_case(s: str) -> bool:
    return bool(_KEBAB.match(s or ""))


def title_from_kebab(s: str) -> str:
    return " ".join(part.capitalize() for part in (s or "").split("-") if part)
