"""
Verse finder: asks the analysis service for Tanakh verses that fit a name
(same first and last letter) or share a gematria value.
"""
from __future__ import annotations
import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from .analysis import Collaborator
from .errors import EmptyInputError
from .gematria import score

MODES = ("name", "gematria")
VERSE_COUNT = 5
MIN_NAME_LETTERS = 2

_NON_LETTERS_RE = re.compile(r"[^\u05D0-\u05EA]")
_MARKUP_RE = re.compile(r"[*#]")

class VerseSearch(BaseModel):
    mode: str
    text: str
    value: Optional[int] = None
    first: Optional[str] = None
    last: Optional[str] = None
    verses: List[str] = Field(default_factory=list)

def name_letters(text: str) -> Tuple[str, str]:
    """First and last Hebrew letter of a name; at least two letters are required."""
    clean = _NON_LETTERS_RE.sub("", (text or "").strip())
    if len(clean) < MIN_NAME_LETTERS:
        raise EmptyInputError(f"a name needs at least {MIN_NAME_LETTERS} Hebrew letters")
    return clean[0], clean[-1]

def name_prompt(first: str, last: str) -> str:
    return "\n".join([
        f"Find {VERSE_COUNT} verses from the Tanakh (Hebrew Bible) that start with the letter "
        f"'{first}' and end with the letter '{last}'.",
        "Return ONLY the Hebrew verses, one per line. Do not include translation or citation.",
    ])

def gematria_prompt(value: int) -> str:
    return "\n".join([
        f"Find {VERSE_COUNT} verses from the Tanakh (Hebrew Bible) that have a Gematria value "
        f"(numerical value) of exactly {value}.",
        f"If exact matches are hard to find, find verses with a value close to {value} and mention the difference.",
        "Return the Hebrew verses and their citation.",
    ])

def parse_verses(text: Optional[str]) -> List[str]:
    lines = (_MARKUP_RE.sub("", line).strip() for line in (text or "").splitlines())
    return [line for line in lines if line]

async def find_verses(text: str, mode: str, collaborator: Collaborator) -> VerseSearch:
    """CollaboratorError propagates; there is no fallback result for a search."""
    if mode not in MODES:
        raise ValueError("mode must be: name | gematria")
    if not text or not text.strip():
        raise EmptyInputError("text is empty")

    if mode == "name":
        first, last = name_letters(text)
        search = VerseSearch(mode=mode, text=text, first=first, last=last)
        prompt = name_prompt(first, last)
    else:
        raw = text.strip()
        value = int(raw) if raw.isascii() and raw.isdigit() else score(text)
        search = VerseSearch(mode=mode, text=text, value=value)
        prompt = gematria_prompt(value)

    reply = await collaborator.generate(prompt)
    return search.model_copy(update={"verses": parse_verses(reply)})
