from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Literal, Optional

from fastapi import Body, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from .ciphers import apply, get_scheme, list_schemes, scheme_pairs
from .errors import CollaboratorError, EmptyInputError, ImportFormatError, InvalidScheme, NotFound
from .gematria import letter_breakdown, score
from .history import ImportPolicy
from .models import AnalysisRecord, AnalysisSegment, HistoryItem
from .text import acronym, strip_marks, text_stats
from .verses import VerseSearch, find_verses
from .workbench import Workbench, open_workbench

class SchemeOut(BaseModel):
    name: str
    label: str
    aliases: List[str]
    description: str
    pairs: List[List[str]]

class CipherOut(BaseModel):
    scheme: str
    text: str
    result: str
    gematria: int

class MethodOut(BaseModel):
    id: str
    name: str
    description: str

class LevelOut(BaseModel):
    level: int
    title: str
    description: str
    methods: List[MethodOut]

class AnalyzeIn(BaseModel):
    query: str
    methods: List[str] = Field(default_factory=list)

def _workbench(request: Request) -> Workbench:
    return request.app.state.workbench

def _history_out(item: HistoryItem) -> Dict[str, Any]:
    return item.to_json_dict()

def create_app(workbench: Optional[Workbench] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # runs on startup
        if getattr(app.state, "workbench", None) is None:
            app.state.workbench = open_workbench()
        yield

    app = FastAPI(title="Panim workbench", lifespan=lifespan)
    app.state.workbench = workbench

    @app.get("/gematria")
    def api_gematria(
        text: str = Query(..., min_length=1, description="טקסט בעברית לחישוב גימטריה"),
    ):
        return {
            "text": text,
            "gematria": score(text),
            "letters": [{"letter": l, "value": v} for l, v in letter_breakdown(text)],
        }

    @app.get("/schemes", response_model=List[SchemeOut])
    def api_schemes():
        return [
            SchemeOut(
                name=s.name,
                label=s.label,
                aliases=list(s.aliases),
                description=s.description,
                pairs=[list(p) for p in scheme_pairs(s)],
            )
            for s in list_schemes()
        ]

    @app.get("/cipher", response_model=CipherOut)
    def api_cipher(
        text: str = Query(..., description="טקסט להמרה"),
        scheme: str = Query("mirror-22", description="mirror-22 | split-half | decade-sum"),
    ):
        try:
            s = get_scheme(scheme)
        except InvalidScheme as e:
            raise HTTPException(status_code=400, detail=str(e))
        result = apply(s, text)
        return CipherOut(scheme=s.name, text=text, result=result, gematria=score(result))

    @app.get("/acronym")
    def api_acronym(
        text: str = Query(..., description="טקסט לחילוץ ראשי תיבות"),
        mode: Literal["first", "last"] = "first",
    ):
        return {"text": text, "mode": mode, "result": acronym(text, mode=mode)}

    @app.get("/clean")
    def api_clean(text: str = Query(..., description="טקסט מנוקד")):
        return {"text": text, "result": strip_marks(text)}

    @app.get("/stats")
    def api_stats(text: str = Query("")):
        return text_stats(text).__dict__

    @app.get("/methods", response_model=List[LevelOut])
    def api_methods(request: Request):
        catalog = _workbench(request).catalog
        return [
            LevelOut(
                level=lvl.level,
                title=lvl.title,
                description=lvl.description,
                methods=[MethodOut(id=m.id, name=m.name, description=m.description) for m in lvl.methods],
            )
            for lvl in catalog.levels
        ]

    @app.get("/verses", response_model=VerseSearch)
    async def api_verses(
        request: Request,
        text: str = Query(..., description="שם או מילה לחיפוש פסוקים"),
        mode: Literal["name", "gematria"] = "name",
    ):
        try:
            return await find_verses(text, mode, _workbench(request).collaborator)
        except EmptyInputError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except CollaboratorError as e:
            raise HTTPException(status_code=502, detail=str(e))

    # Routes that touch the history store are async so that every store
    # access runs on the event loop thread, never in the worker threadpool.

    @app.post("/analyze")
    async def api_analyze(request: Request, body: AnalyzeIn):
        wb = _workbench(request)
        try:
            record: AnalysisRecord = await wb.analyze(body.query, body.methods)
        except EmptyInputError as e:
            raise HTTPException(status_code=400, detail=str(e))
        out = record.model_dump(by_alias=True, mode="json")
        out["item"] = _history_out(wb.last_item) if record.ok and wb.last_item else None
        return out

    @app.get("/history")
    async def api_history(request: Request):
        store = _workbench(request).store
        return {
            "current": store.current_id,
            "items": [_history_out(i) for i in store],
        }

    @app.get("/history/export")
    async def api_history_export(request: Request, envelope: bool = True):
        return _workbench(request).store.export(envelope=envelope)

    @app.post("/history/import")
    async def api_history_import(
        request: Request,
        data: Any = Body(...),
        policy: Optional[ImportPolicy] = None,
    ):
        store = _workbench(request).store
        try:
            added = store.import_items(data, policy=policy)
        except ImportFormatError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"imported": len(added), "total": len(store)}

    @app.get("/history/{item_id}")
    async def api_history_item(request: Request, item_id: str):
        try:
            return _history_out(_workbench(request).store.get(item_id))
        except NotFound as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.post("/history/{item_id}/select")
    async def api_history_select(request: Request, item_id: str):
        try:
            return _history_out(_workbench(request).load(item_id))
        except NotFound as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.get("/history/{item_id}/ancestors")
    async def api_history_ancestors(request: Request, item_id: str):
        try:
            return [_history_out(i) for i in _workbench(request).store.ancestors(item_id)]
        except NotFound as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.get("/history/{item_id}/children")
    async def api_history_children(request: Request, item_id: str):
        store = _workbench(request).store
        try:
            store.get(item_id)
        except NotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        return [_history_out(i) for i in store.children(item_id)]

    @app.get("/selection", response_model=List[AnalysisSegment])
    async def api_selection(request: Request):
        return _workbench(request).store.selected_segments

    @app.post("/selection/toggle", response_model=List[AnalysisSegment])
    async def api_selection_toggle(request: Request, segment: AnalysisSegment):
        return _workbench(request).store.toggle(segment)

    @app.delete("/selection", response_model=List[AnalysisSegment])
    async def api_selection_clear(request: Request):
        store = _workbench(request).store
        store.clear_selection()
        return store.selected_segments

    return app

app = create_app()
