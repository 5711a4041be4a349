import re
import unicodedata
from typing import List, Optional, Sequence
from .models import PlaceMatch, PlaceOfInterest, ResolvedPlace

ARTICLES = {"le", "la", "l", "de", "du", "des", "the", "a", "an"}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_name(value: str) -> str:
    """
    Canonical form used to compare place names across sources.

    "Café de l'Opéra" -> "cafe de l opera", "Le Marais" -> "marais".
    """
    decomposed = unicodedata.normalize("NFD", (value or "").lower())
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    tokens = _NON_ALNUM.sub(" ", ascii_only).split()
    if len(tokens) > 1 and tokens[0] in ARTICLES:
        tokens = tokens[1:]
    return " ".join(tokens)


def names_match(a: str, b: str) -> bool:
    left, right = normalize_name(a), normalize_name(b)
    if not left or not right:
        return False
    return left == right or left in right or right in left


def match_place(name: str, candidates: Sequence[ResolvedPlace]) -> Optional[ResolvedPlace]:
    for candidate in candidates:
        if names_match(name, candidate.name):
            return candidate
    return None


def match_places(pois: Sequence[PlaceOfInterest], candidates: Sequence[ResolvedPlace]) -> List[PlaceMatch]:
    return [PlaceMatch(name=poi.name, place=match_place(poi.name, candidates)) for poi in pois]
