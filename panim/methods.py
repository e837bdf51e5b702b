from __future__ import annotations
import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

_CATALOG_PATH = Path(__file__).with_name("methods.json")

@dataclass(frozen=True)
class Method:
    id: str
    name: str
    description: str
    level: int

@dataclass(frozen=True)
class Level:
    level: int
    title: str
    description: str
    methods: Tuple[Method, ...]

class Catalog:
    """Read-only method catalog grouped by level."""

    def __init__(self, levels: Iterable[Level]):
        self.levels: Tuple[Level, ...] = tuple(sorted(levels, key=lambda l: l.level))
        self._by_id: Dict[str, Method] = {}
        for lvl in self.levels:
            for m in lvl.methods:
                if m.id in self._by_id:
                    raise ValueError(f"duplicate method id in catalog: {m.id}")
                self._by_id[m.id] = m

    def get(self, method_id: str) -> Optional[Method]:
        return self._by_id.get(method_id)

    def resolve(self, method_ids: Iterable[str]) -> List[Method]:
        """Known methods in catalog order; unknown ids are skipped."""
        wanted = set(method_ids)
        return [m for lvl in self.levels for m in lvl.methods if m.id in wanted]

    def __iter__(self):
        for lvl in self.levels:
            yield from lvl.methods

    def __len__(self) -> int:
        return len(self._by_id)

def parse_catalog(data: dict) -> Catalog:
    levels = []
    for raw in data.get("levels", []):
        n = int(raw["level"])
        methods = tuple(
            Method(id=m["id"], name=m["name"], description=m.get("description") or m["name"], level=n)
            for m in raw.get("methods", [])
        )
        levels.append(Level(level=n, title=raw.get("title", ""), description=raw.get("description", ""), methods=methods))
    return Catalog(levels)

@lru_cache(maxsize=1)
def load_catalog(path: Optional[str] = None) -> Catalog:
    p = Path(path) if path else _CATALOG_PATH
    return parse_catalog(json.loads(p.read_text(encoding="utf-8")))
