from __future__ import annotations
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Number = Union[int, float]

_ITEM_KEYS = (
    "id", "parentId", "timestamp", "query", "selectedMethods",
    "analysis", "cards", "contextSegments",
)

class AnalysisSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    level: Number
    content: str
    tags: Optional[List[str]] = None

    def key(self) -> tuple:
        return (self.title, self.content)

class EssenceCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    element: str
    energy: str
    score: Number
    sentences: List[str]
    tags: Optional[List[str]] = None

class AnalysisRecord(BaseModel):
    """What one analysis produced. `diagnostic` is set on a fallback record."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str
    selected_methods: List[str] = Field(default_factory=list, alias="selectedMethods")
    analysis: List[AnalysisSegment] = Field(default_factory=list)
    cards: List[EssenceCard] = Field(default_factory=list)
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None

class HistoryItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    timestamp: int
    query: str
    selected_methods: List[str] = Field(default_factory=list, alias="selectedMethods")
    analysis: List[AnalysisSegment] = Field(default_factory=list)
    cards: List[EssenceCard] = Field(default_factory=list)
    context_segments: List[AnalysisSegment] = Field(default_factory=list, alias="contextSegments")

    @field_validator("context_segments", "analysis", "cards", "selected_methods", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return [] if v is None else v

    def to_json_dict(self) -> dict:
        data = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        data.setdefault("parentId", None)
        return {key: data[key] for key in _ITEM_KEYS if key in data}
