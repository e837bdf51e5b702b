"""
Table-driven letter substitution ciphers (atbash family).

A scheme is data: the canonical letter pairs it swaps plus optional explicit
targets for final forms. Final forms without an override follow one rule for
every scheme: a final letter becomes the final form of its target when the
target has one, otherwise it is left as written. Every scheme is checked for
involution over all 27 letter forms when it is registered.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple, Union

from .errors import InvalidScheme, SchemeValidationError
from .letters import (
    ALEPH_BET,
    FINAL_LETTERS,
    LETTER_VALUES,
    canonicalize,
    final_form,
    has_final_form,
)

Pair = Tuple[str, str]

@dataclass(frozen=True)
class CipherScheme:
    name: str
    label: str
    pairs: Tuple[Pair, ...]
    aliases: Tuple[str, ...] = ()
    final_overrides: Tuple[Pair, ...] = ()
    description: str = ""

def _mirror_pairs() -> Tuple[Pair, ...]:
    return tuple((ALEPH_BET[i], ALEPH_BET[21 - i]) for i in range(11))

def _split_pairs() -> Tuple[Pair, ...]:
    return tuple((ALEPH_BET[i], ALEPH_BET[i + 11]) for i in range(11))

# Values are not contiguous across units/tens/hundreds, so the pairing is explicit.
_DECADE_SUM_PAIRS: Tuple[Pair, ...] = (
    ("א", "ט"), ("ב", "ח"), ("ג", "ז"), ("ד", "ו"), ("ה", "ה"),   # sum 10
    ("י", "צ"), ("כ", "פ"), ("ל", "ע"), ("מ", "ס"), ("נ", "נ"),   # sum 100
    ("ק", "ת"), ("ר", "ש"),                                       # sum 500
)

MIRROR_22 = CipherScheme(
    name="mirror-22",
    label='אתב"ש',
    pairs=_mirror_pairs(),
    aliases=("atbash",),
    description="First letter swaps with the last, second with the one before last (א-ת, ב-ש).",
)

SPLIT_HALF = CipherScheme(
    name="split-half",
    label='אלב"ם',
    pairs=_split_pairs(),
    aliases=("albam",),
    description="The alphabet is split 11/11 and each half is laid over the other (א-ל, ב-מ).",
)

DECADE_SUM = CipherScheme(
    name="decade-sum",
    label='אטב"ח',
    pairs=_DECADE_SUM_PAIRS,
    aliases=("atbah",),
    description="Letters pair so their values sum to 10, 100 or 500; ה and נ stay in place.",
)

_REGISTRY: Dict[str, CipherScheme] = {}
_NAMES: Dict[str, str] = {}
_TABLES: Dict[str, Dict[int, str]] = {}

def build_table(scheme: CipherScheme) -> Dict[str, str]:
    """Full substitution table over canonical and final letter forms."""
    canon: Dict[str, str] = {}
    for a, b in scheme.pairs:
        for src, dst in ((a, b), (b, a)):
            if src not in LETTER_VALUES or dst not in LETTER_VALUES:
                raise SchemeValidationError(
                    f"{scheme.name}: pair ({a}, {b}) is not over canonical letters"
                )
            if canon.get(src, dst) != dst:
                raise SchemeValidationError(
                    f"{scheme.name}: letter {src} is paired twice ({canon[src]}, {dst})"
                )
            canon[src] = dst

    table = dict(canon)
    for f in FINAL_LETTERS:
        target = canon.get(canonicalize(f))
        if target is None:
            continue
        table[f] = final_form(target) if has_final_form(target) else f
    table.update(dict(scheme.final_overrides))
    return table

def validate(scheme: CipherScheme) -> Dict[str, str]:
    table = build_table(scheme)
    broken = [src for src, dst in table.items() if table.get(dst, dst) != src]
    if broken:
        raise SchemeValidationError(
            f"{scheme.name} is not an involution for: {' '.join(sorted(broken))}"
        )
    return table

def register_scheme(scheme: CipherScheme) -> CipherScheme:
    table = validate(scheme)
    for key in (scheme.name, *scheme.aliases):
        owner = _NAMES.get(key.lower())
        if owner is not None and owner != scheme.name:
            raise SchemeValidationError(f"scheme name {key!r} already used by {owner}")
    _REGISTRY[scheme.name] = scheme
    _TABLES[scheme.name] = str.maketrans(table)
    for key in (scheme.name, *scheme.aliases):
        _NAMES[key.lower()] = scheme.name
    return scheme

for _scheme in (MIRROR_22, SPLIT_HALF, DECADE_SUM):
    register_scheme(_scheme)

def get_scheme(name: Union[str, CipherScheme]) -> CipherScheme:
    if isinstance(name, CipherScheme):
        return _REGISTRY.get(name.name) or register_scheme(name)
    key = _NAMES.get((name or "").strip().lower())
    if key is None:
        raise InvalidScheme(name)
    return _REGISTRY[key]

def list_schemes() -> List[CipherScheme]:
    return list(_REGISTRY.values())

def apply(scheme: Union[str, CipherScheme], text: str) -> str:
    s = get_scheme(scheme)
    if not text:
        return ""
    return text.translate(_TABLES[s.name])

def scheme_pairs(scheme: Union[str, CipherScheme]) -> Iterator[Pair]:
    """Canonical pairs in alphabet order, each listed once."""
    s = get_scheme(scheme)
    seen = set()
    for a, b in sorted(s.pairs, key=lambda p: ALEPH_BET.index(p[0])):
        if a in seen:
            continue
        seen.update((a, b))
        yield (a, b)
