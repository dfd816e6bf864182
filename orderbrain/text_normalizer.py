# orderbrain/text_normalizer.py
"""
Text normalization shared by every matcher.

All comparisons (catalog lookups, rule predicates, alias tables) happen in
the space produced by `normalize`, so keys in lookup tables must be written
already normalized: lowercase ASCII, single spaces.
"""

from __future__ import annotations

import re
import unicodedata
from typing import List

_PUNCT_RE = re.compile(r"[^\w\s]|_")
_SPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """
    Lowercase, strip diacritics, turn punctuation into spaces and collapse
    whitespace. Never raises; `None` is treated as empty text.

    >>> normalize("Gdzie zjeść w Piekarach Śląskich?")
    'gdzie zjesc w piekarach slaskich'
    """
    if not text:
        return ""
    lowered = str(text).lower()
    decomposed = unicodedata.normalize("NFD", lowered)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    # "ł" has no canonical decomposition
    stripped = stripped.replace("ł", "l")
    spaced = _PUNCT_RE.sub(" ", stripped)
    return _SPACE_RE.sub(" ", spaced).strip()


def tokens(text: str) -> List[str]:
    """Normalized whitespace tokens."""
    norm = normalize(text)
    return norm.split(" ") if norm else []


def contains_phrase(normalized_text: str, phrase: str) -> bool:
    """
    Whole-word phrase containment on already normalized text.

    "pizza" does not match inside "pizzeria"; "co w poblizu" matches
    "a co w poblizu jest".
    """
    if not phrase or not normalized_text:
        return False
    return f" {phrase} " in f" {normalized_text} "
