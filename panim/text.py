from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Literal

_HEBREW_MARKS_RE = re.compile(r"[\u0591-\u05C7]")
_NON_LETTERS_RE = re.compile(r"[^\u05D0-\u05EA]")
_SENTENCE_SPLIT_RE = re.compile(r"[.?!]+")

AcronymMode = Literal["first", "last"]

def strip_marks(text: str) -> str:
    """Remove nikud and cantillation marks (U+0591..U+05C7)."""
    if not text:
        return ""
    return _HEBREW_MARKS_RE.sub("", text)

def acronym(text: str, mode: AcronymMode = "first") -> str:
    """Roshei tevot (mode='first') or sofei tevot (mode='last') of a text."""
    if mode not in ("first", "last"):
        raise ValueError("mode must be: first | last")
    letters = []
    for word in (text or "").split():
        clean = _NON_LETTERS_RE.sub("", word)
        if clean:
            letters.append(clean[0] if mode == "first" else clean[-1])
    return "".join(letters)

@dataclass
class TextStats:
    chars: int
    chars_no_spaces: int
    words: int
    lines: int
    sentences: int

def text_stats(text: str) -> TextStats:
    text = text or ""
    stripped = text.strip()
    return TextStats(
        chars=len(text),
        chars_no_spaces=len(re.sub(r"\s", "", text)),
        words=len(stripped.split()) if stripped else 0,
        lines=len(text.split("\n")) if stripped else 0,
        sentences=len([s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]),
    )
