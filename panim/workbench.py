from __future__ import annotations
from typing import List, Optional, Sequence

from .analysis import Collaborator, build
from .collaborator import GeminiCollaborator
from .config import Settings
from .db import SQLiteBackend
from .history import HistoryStore
from .methods import Catalog, load_catalog
from .models import AnalysisRecord, HistoryItem

class Workbench:
    """
    Ties the builder to the history store.

    The parent item and the context selection are taken when `analyze` is
    called. The record is appended only when the analysis succeeded and the
    call was not cancelled; a cancelled call leaves the store and the pending
    selection exactly as they were.
    """

    def __init__(self, store: HistoryStore, collaborator: Collaborator, catalog: Optional[Catalog] = None):
        self.store = store
        self.collaborator = collaborator
        self.catalog = catalog or load_catalog()
        self.last_item: Optional[HistoryItem] = None

    async def analyze(self, query: str, method_ids: Sequence[str]) -> AnalysisRecord:
        parent_id = self.store.current_id
        context = self.store.selected_segments

        record = await build(query, list(method_ids), context, self.collaborator, catalog=self.catalog)
        if not record.ok:
            return record

        self.last_item = self.store.append(record, parent_id=parent_id, context_segments=context)
        return record

    def load(self, item_id: str) -> HistoryItem:
        return self.store.select(item_id)

    def history(self) -> List[HistoryItem]:
        return self.store.items

def open_collaborator(settings: Optional[Settings] = None) -> GeminiCollaborator:
    settings = settings or Settings.from_env()
    return GeminiCollaborator(
        api_key=settings.api_key,
        model=settings.model,
        api_base=settings.api_base,
        timeout=settings.timeout,
    )

def open_workbench(settings: Optional[Settings] = None) -> Workbench:
    """Workbench backed by the SQLite store and the Gemini client named in settings."""
    settings = settings or Settings.from_env()
    store = HistoryStore(SQLiteBackend(settings.db_path), import_policy=settings.import_policy)
    return Workbench(store, open_collaborator(settings))
