from __future__ import annotations
from typing import List, Tuple

from .letters import LETTER_VALUES, canonicalize
from .ciphers import apply

def score(text: str) -> int:
    if not text:
        return 0
    total = 0
    for ch in text:
        total += LETTER_VALUES.get(canonicalize(ch), 0)
    return total

def letter_breakdown(text: str) -> List[Tuple[str, int]]:
    """(letter, value) for every character that contributes to the score."""
    out: List[Tuple[str, int]] = []
    for ch in text or "":
        value = LETTER_VALUES.get(canonicalize(ch))
        if value is not None:
            out.append((ch, value))
    return out

def cipher_score(scheme: str, text: str) -> int:
    """Calculate gematria of the text after applying a cipher scheme."""
    return score(apply(scheme, text))
