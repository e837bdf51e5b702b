from __future__ import annotations
from typing import Dict, Tuple

ALEPH_BET = "אבגדהוזחטיכלמנסעפצקרשת"

_FINALS: Dict[str, str] = {
    "ך": "כ",
    "ם": "מ",
    "ן": "נ",
    "ף": "פ",
    "ץ": "צ",
}
_MEDIAL_TO_FINAL: Dict[str, str] = {v: k for k, v in _FINALS.items()}

FINAL_LETTERS: Tuple[str, ...] = tuple(_FINALS)

_FINALS_MAP = str.maketrans(_FINALS)

LETTER_VALUES: Dict[str, int] = {
    "א": 1, "ב": 2, "ג": 3, "ד": 4, "ה": 5, "ו": 6, "ז": 7, "ח": 8, "ט": 9,
    "י": 10, "כ": 20, "ל": 30, "מ": 40, "נ": 50, "ס": 60, "ע": 70, "פ": 80, "צ": 90,
    "ק": 100, "ר": 200, "ש": 300, "ת": 400,
}

def canonicalize(letter: str) -> str:
    """Final form -> medial form. Anything else comes back unchanged."""
    return _FINALS.get(letter, letter)

def canonicalize_text(text: str) -> str:
    return text.translate(_FINALS_MAP)

def is_final(letter: str) -> bool:
    return letter in _FINALS

def has_final_form(letter: str) -> bool:
    return letter in _MEDIAL_TO_FINAL

def final_form(letter: str) -> str:
    return _MEDIAL_TO_FINAL.get(letter, letter)
