"""
Analysis Record Builder.

Turns a query, a method selection and optional context segments into one
request for the analysis service, then shapes the reply into segments and
essence cards. Structural problems in the reply never reach the caller: they
come back as a single diagnostic segment.
"""
from __future__ import annotations
import json
import sys
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from pydantic import BaseModel, Field, ValidationError

from .errors import CollaboratorError, EmptyInputError
from .methods import Catalog, Method, load_catalog
from .models import AnalysisRecord, AnalysisSegment, EssenceCard

CARD_COUNT = 9
CARD_SENTENCES = 4
CONTEXT_SEPARATOR = "\n---\n"
FALLBACK_TITLE = "שגיאה"
FALLBACK_CONTENT = "אירעה שגיאה בעיבוד הנתונים."

class Collaborator(Protocol):
    async def generate(
        self, query: str, system_instruction: str = "", response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        ...

class _Reply(BaseModel):
    analysis: List[AnalysisSegment] = Field(default_factory=list)
    cards: List[EssenceCard] = Field(default_factory=list)

_TAGS = {"type": "ARRAY", "items": {"type": "STRING"}}

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analysis": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "level": {"type": "NUMBER"},
                    "content": {"type": "STRING"},
                    "tags": _TAGS,
                },
                "required": ["title", "level", "content"],
            },
        },
        "cards": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "element": {"type": "STRING"},
                    "energy": {"type": "STRING"},
                    "score": {"type": "NUMBER"},
                    "sentences": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "tags": _TAGS,
                },
                "required": ["title", "element", "energy", "score", "sentences"],
            },
        },
    },
    "required": ["analysis", "cards"],
}

def format_context(segments: Iterable[AnalysisSegment]) -> str:
    return CONTEXT_SEPARATOR.join(f"[Title: {s.title}]\n{s.content}" for s in segments)

def build_system_instruction(query: str, methods: Sequence[Method], context_segments: Sequence[AnalysisSegment] = ()) -> str:
    lines = ["Analyze the user input using the following selected methods:"]
    lines += [f"- {m.name}: {m.description}" for m in methods]
    lines.append("")

    if context_segments:
        lines += [
            "CONTEXT FROM PREVIOUS ANALYSIS:",
            "The user is continuing a conversation based on the following segments:",
            format_context(context_segments),
            "",
            f'Please answer the new query: "{query}" taking into account the context above.',
            "",
        ]

    lines += [
        'Return JSON with "analysis" (array of {title, level, content, tags: string[]}) and '
        f'"cards" (exactly {CARD_COUNT} {{title, element, energy, score, sentences:[{CARD_SENTENCES}], tags: string[]}}) keys.',
        "Use Nikud in cards sentences. Format content with markdown.",
        '"tags" should be a short list of keywords (1-3) related to the specific content of the segment/card.',
    ]
    return "\n".join(lines)

def _strip_fences(text: str) -> str:
    t = text.strip()
    if t.startswith("```"):
        t = t.replace("```json", "", 1).replace("```", "")
    return t.strip()

def fallback_record(query: str, method_ids: Sequence[str], diagnostic: str) -> AnalysisRecord:
    return AnalysisRecord(
        query=query,
        selected_methods=list(method_ids),
        analysis=[AnalysisSegment(title=FALLBACK_TITLE, level=1, content=FALLBACK_CONTENT)],
        cards=[],
        diagnostic=diagnostic,
    )

def parse_reply(query: str, method_ids: Sequence[str], text: Optional[str]) -> AnalysisRecord:
    try:
        data = json.loads(_strip_fences(text or ""))
    except ValueError:
        print("[analysis] reply is not valid JSON", file=sys.stderr, flush=True)
        return fallback_record(query, method_ids, "reply is not valid JSON")

    if not isinstance(data, dict):
        print(f"[analysis] reply is a {type(data).__name__}, expected an object", file=sys.stderr, flush=True)
        return fallback_record(query, method_ids, "reply is not a JSON object")

    try:
        reply = _Reply.model_validate({
            "analysis": data.get("analysis") or [],
            "cards": data.get("cards") or [],
        })
    except ValidationError as e:
        print(f"[analysis] reply failed validation: {e.error_count()} error(s)", file=sys.stderr, flush=True)
        return fallback_record(query, method_ids, f"reply failed validation: {e.errors()[0]['msg']}")

    if reply.cards and len(reply.cards) != CARD_COUNT:
        print(f"[analysis] expected {CARD_COUNT} cards, got {len(reply.cards)}", file=sys.stderr, flush=True)

    return AnalysisRecord(
        query=query,
        selected_methods=list(method_ids),
        analysis=reply.analysis,
        cards=reply.cards,
    )

async def build(
    query: str,
    selected_method_ids: Sequence[str],
    context_segments: Sequence[AnalysisSegment],
    collaborator: Collaborator,
    catalog: Optional[Catalog] = None,
    strict: bool = False,
) -> AnalysisRecord:
    if not query or not query.strip():
        raise EmptyInputError("query is empty")
    if not selected_method_ids:
        raise EmptyInputError("no analysis method selected")

    catalog = catalog or load_catalog()
    methods = catalog.resolve(selected_method_ids)
    if not methods:
        raise EmptyInputError("none of the selected methods is in the catalog")

    instruction = build_system_instruction(query, methods, list(context_segments or ()))
    try:
        text = await collaborator.generate(query, instruction, RESPONSE_SCHEMA)
    except CollaboratorError as e:
        if strict:
            raise
        print(f"[analysis] collaborator failed: {e}", file=sys.stderr, flush=True)
        return fallback_record(query, selected_method_ids, str(e))

    return parse_reply(query, selected_method_ids, text)
