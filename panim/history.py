"""
Branching history of analyses.

Items are kept newest first. Every item may point at a parent item, so the
whole store is a forest; parent links are indexed by id for ancestor and
children lookups. A parentId that does not resolve (for example after an
import from another session) is a dangling reference and is tolerated.

The store is written to its backend on every change of the item sequence and
read once when it is constructed.
"""
from __future__ import annotations
import json
import sys
import time
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError

from .db import Backend, MemoryBackend
from .errors import ImportFormatError, NotFound
from .models import AnalysisRecord, AnalysisSegment, HistoryItem

HISTORY_KEY = "70panim_history"
EXPORT_VERSION = 1

class ImportPolicy(str, Enum):
    APPEND = "append"                 # keep everything, duplicates included
    SKIP_EXISTING = "skip_existing"   # drop incoming items whose id is already present
    REPLACE = "replace"               # incoming items replace the store

def _now_ms() -> int:
    return time.time_ns() // 1_000_000

def parse_history(data: Any) -> List[HistoryItem]:
    """
    Accepts a JSON array of items or a {"version", "items"} envelope, as
    parsed data, text or bytes. Raises ImportFormatError on anything else.
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFormatError("history is not UTF-8 text") from e
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ImportFormatError(f"history is not valid JSON: {e}") from e

    if isinstance(data, dict):
        if "items" not in data:
            raise ImportFormatError('expected a list of items or an object with "items"')
        version = data.get("version", EXPORT_VERSION)
        if not isinstance(version, int) or version > EXPORT_VERSION:
            raise ImportFormatError(f"unsupported history version: {version!r}")
        data = data["items"]

    if not isinstance(data, list):
        raise ImportFormatError("expected a list of history items")

    items: List[HistoryItem] = []
    for i, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise ImportFormatError(f"item {i} is not an object")
        try:
            items.append(HistoryItem.model_validate(raw))
        except ValidationError as e:
            err = e.errors()[0]
            loc = ".".join(str(p) for p in err["loc"])
            raise ImportFormatError(f"item {i} is malformed: {loc}: {err['msg']}") from e
    return items

class HistoryStore:
    def __init__(
        self,
        backend: Optional[Backend] = None,
        key: str = HISTORY_KEY,
        import_policy: Union[ImportPolicy, str] = ImportPolicy.APPEND,
        clock: Callable[[], int] = _now_ms,
    ):
        self.backend = backend if backend is not None else MemoryBackend()
        self.key = key
        self.import_policy = ImportPolicy(import_policy)
        self._clock = clock
        self._items: List[HistoryItem] = []
        self._by_id: Dict[str, HistoryItem] = {}
        self._children: Dict[str, List[HistoryItem]] = defaultdict(list)
        self._current_id: Optional[str] = None
        self._selected: List[AnalysisSegment] = []
        self._load()

    # ---- persistence ----

    def _load(self) -> None:
        raw = self.backend.get(self.key)
        if raw is None:
            return
        try:
            items = parse_history(raw)
        except ImportFormatError as e:
            print(f"[history] discarding unreadable stored history: {e}", file=sys.stderr, flush=True)
            return
        self._items = items
        self._reindex()
        print(f"[history] loaded {len(items)} item(s)", file=sys.stderr, flush=True)

    def _save(self) -> None:
        payload = json.dumps(self.export(), ensure_ascii=False)
        self.backend.put(self.key, payload.encode("utf-8"))

    # ---- index ----

    def _index(self, item: HistoryItem) -> None:
        self._by_id.setdefault(item.id, item)
        if item.parent_id is not None:
            self._children[item.parent_id].append(item)

    def _reindex(self) -> None:
        self._by_id = {}
        self._children = defaultdict(list)
        for item in self._items:
            self._index(item)
        if self._current_id is not None and self._current_id not in self._by_id:
            self._current_id = None

    def _fresh_id(self, ts: int) -> str:
        candidate = ts
        while str(candidate) in self._by_id:
            candidate += 1
        return str(candidate)

    # ---- read ----

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HistoryItem]:
        return iter(list(self._items))

    @property
    def items(self) -> List[HistoryItem]:
        return list(self._items)

    @property
    def current(self) -> Optional[HistoryItem]:
        if self._current_id is None:
            return None
        return self._by_id.get(self._current_id)

    @property
    def current_id(self) -> Optional[str]:
        return self._current_id

    def get(self, item_id: str) -> HistoryItem:
        item = self._by_id.get(item_id)
        if item is None:
            raise NotFound(item_id)
        return item

    def select(self, item_id: str) -> HistoryItem:
        """Look an item up and make it current. Store order is not touched."""
        item = self.get(item_id)
        self._current_id = item.id
        return item

    def children(self, item_id: str) -> List[HistoryItem]:
        return list(self._children.get(item_id, ()))

    def ancestors(self, item_id: str) -> List[HistoryItem]:
        """Parent chain, nearest first. Stops at a dangling parent or a loop."""
        item = self.get(item_id)
        chain: List[HistoryItem] = []
        seen = {item.id}
        parent_id = item.parent_id
        while parent_id is not None and parent_id not in seen:
            parent = self._by_id.get(parent_id)
            if parent is None:
                break
            chain.append(parent)
            seen.add(parent.id)
            parent_id = parent.parent_id
        return chain

    def roots(self) -> List[HistoryItem]:
        return [i for i in self._items if i.parent_id is None or i.parent_id not in self._by_id]

    # ---- write ----

    def append(
        self,
        record: AnalysisRecord,
        parent_id: Optional[str] = None,
        context_segments: Iterable[AnalysisSegment] = (),
    ) -> HistoryItem:
        if parent_id is not None and parent_id not in self._by_id:
            print(f"[history] parent {parent_id} is not in the store, recording as a root", file=sys.stderr, flush=True)
            parent_id = None

        ts = self._clock()
        item = HistoryItem(
            id=self._fresh_id(ts),
            parent_id=parent_id,
            timestamp=ts,
            query=record.query,
            selected_methods=list(record.selected_methods),
            analysis=list(record.analysis),
            cards=list(record.cards),
            context_segments=list(context_segments),
        )
        self._items.insert(0, item)
        self._index(item)
        self._current_id = item.id

        consumed = {s.key() for s in item.context_segments}
        self._selected = [s for s in self._selected if s.key() not in consumed]

        self._save()
        return item

    def export(self, envelope: bool = True) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        items = [item.to_json_dict() for item in self._items]
        if not envelope:
            return items
        return {"version": EXPORT_VERSION, "items": items}

    def export_json(self, envelope: bool = True, indent: Optional[int] = 2) -> str:
        return json.dumps(self.export(envelope=envelope), ensure_ascii=False, indent=indent)

    def import_items(self, data: Any, policy: Union[ImportPolicy, str, None] = None) -> List[HistoryItem]:
        """
        Merge items from an exported history. The default policy appends the
        incoming items after the existing ones and keeps duplicate ids.
        Returns the items that were added.
        """
        policy = ImportPolicy(policy) if policy is not None else self.import_policy
        incoming = parse_history(data)

        if policy is ImportPolicy.REPLACE:
            added = incoming
            self._items = list(incoming)
        elif policy is ImportPolicy.SKIP_EXISTING:
            seen = set(self._by_id)
            added = []
            for item in incoming:
                if item.id in seen:
                    continue
                seen.add(item.id)
                added.append(item)
            self._items.extend(added)
        else:
            added = incoming
            self._items.extend(incoming)

        self._reindex()
        self._save()
        print(f"[history] imported {len(added)} item(s) ({policy.value}), store has {len(self._items)}", file=sys.stderr, flush=True)
        return added

    # ---- context selection ----

    @property
    def selected_segments(self) -> List[AnalysisSegment]:
        return list(self._selected)

    def toggle(self, segment: Union[AnalysisSegment, Dict[str, Any]]) -> List[AnalysisSegment]:
        if not isinstance(segment, AnalysisSegment):
            segment = AnalysisSegment.model_validate(segment)
        key = segment.key()
        if any(s.key() == key for s in self._selected):
            self._selected = [s for s in self._selected if s.key() != key]
        else:
            self._selected.append(segment)
        return list(self._selected)

    def is_selected(self, segment: AnalysisSegment) -> bool:
        return any(s.key() == segment.key() for s in self._selected)

    def clear_selection(self) -> None:
        self._selected = []
