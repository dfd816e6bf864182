# orderbrain/entity_resolver.py
"""
Entity Resolver

Pulls the structured bits out of one utterance:
- location (Polish case endings rewritten to the nominative),
- cuisine phrase,
- restaurant (by pattern, by name in text, or by name within the last list),
- dishes with quantity and size,
- ordinal ("pierwszą", "numer 2").

Works on the raw text because location and restaurant patterns rely on
capitalization; every comparison is made on normalized text. Nothing in
here raises for odd input: missing fields mean "ask the context".
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .catalog import (
    GENERIC_RESTAURANT_WORDS,
    CatalogIndex,
    best_match,
    find_cuisine_phrase,
)
from .models import Restaurant
from .session_context import SessionContext
from .text_normalizer import contains_phrase, normalize

# ---------------------------------------------------------------------------
# Tables (normalized keys)
# ---------------------------------------------------------------------------

LOCATION_DENYLIST = {
    "tutaj", "tu", "szybko", "poblizu", "okolicy", "menu", "cos", "azjatyckiego",
    "azjatyckie", "szybkiego", "dobrego", "innego", "restauracji", "restauracja",
    "koszyku", "koszyka", "karte", "domu",
}

# longest suffix first; (suffix, replacement)
LOCATION_SUFFIX_RULES: Tuple[Tuple[str, str], ...] = (
    ("icach", "ice"),
    ("owie", "ów"),
    ("awie", "awa"),
    ("ach", "y"),
    ("ich", "ie"),
    ("ami", "y"),
    ("sku", "sk"),
    ("rzu", "rze"),
    ("im", "ie"),
    ("iu", ""),
)

SENTENCE_STARTERS = {
    "gdzie", "pokaz", "zamow", "chce", "chcialbym", "chcialabym", "poprosze",
    "szukam", "jakie", "co", "czy", "daj", "znajdz", "prosze", "hej", "czesc",
    "dzien", "dobry", "polec", "wybieram",
}

ORDER_VERBS = {
    "zamow", "zamowie", "zamawiam", "poprosze", "chce", "chcialbym",
    "chcialabym", "wezme", "biore", "dodaj", "dorzuc",
}

NUMBER_WORDS = {
    "jeden": 1, "jedna": 1, "jedno": 1,
    "dwa": 2, "dwie": 2, "dwoch": 2, "dwoje": 2,
    "trzy": 3, "trzech": 3, "troje": 3,
    "cztery": 4, "czterech": 4,
    "piec": 5, "pieciu": 5,
    "szesc": 6, "siedem": 7, "osiem": 8, "dziewiec": 9, "dziesiec": 10,
    "kilka": 2, "kilku": 2, "pare": 2,
}
# bare numbers that can answer "which one?"; genitive forms like "trzech" are quantities
CHOICE_NUMBER_WORDS = {"jeden", "jedna", "jedno", "dwa", "dwie", "trzy", "cztery", "piec", "szesc"}

QTY_UNITS = {"x", "razy", "szt", "sztuk", "sztuki", "sztuka", "porcje", "porcji", "porcja", "porcjami"}

SIZE_SYNONYMS = {
    "mala": "small", "maly": "small", "male": "small", "malej": "small",
    "small": "small", "s": "small",
    "srednia": "medium", "sredni": "medium", "srednie": "medium", "sredniej": "medium",
    "medium": "medium", "m": "medium",
    "duza": "large", "duzy": "large", "duze": "large", "duzej": "large",
    "wielka": "large", "wielki": "large", "maxi": "large", "large": "large", "l": "large",
    "mega": "xxl", "giga": "xxl", "xxl": "xxl", "xl": "xxl", "extra": "xxl",
    "extra duza": "xxl", "extra duzy": "xxl", "bardzo duza": "xxl", "mega duza": "xxl",
}

DISH_FILLERS = {
    "poprosze", "prosze", "zamow", "zamowie", "zamawiam", "chce", "chcialbym",
    "chcialabym", "wezme", "biore", "dodaj", "dorzuc", "mi", "dla", "mnie",
    "jeszcze", "tez", "takze", "tego", "do", "a", "to", "i", "oraz", "plus",
    "tak", "no", "sobie",
}

EDGE_PREPOSITIONS = {"z", "ze", "w", "we", "na", "u", "od"}

_HARD_ADJ_ENDINGS = ("a", "y", "e", "ej", "ego", "ym", "emu")
_SOFT_ADJ_ENDINGS = ("a", "i", "ie", "iej", "iego", "im", "iemu")
_NOUN_ENDINGS = ("a", "e", "i")

# whole inflected tokens only, so "trzech", "czwartek" or "piatek" never count
ORDINAL_WORDS: Dict[str, int] = {
    **{"pierwsz" + e: 1 for e in _HARD_ADJ_ENDINGS},
    **{"drug" + e: 2 for e in _SOFT_ADJ_ENDINGS},
    **{"trzec" + e: 3 for e in _SOFT_ADJ_ENDINGS},
    **{"czwart" + e: 4 for e in _HARD_ADJ_ENDINGS},
    **{"piat" + e: 5 for e in _HARD_ADJ_ENDINGS},
    **{"szost" + e: 6 for e in _HARD_ADJ_ENDINGS},
    **{"jedynk" + e: 1 for e in _NOUN_ENDINGS},
    **{"dwojk" + e: 2 for e in _NOUN_ENDINGS},
    **{"trojk" + e: 3 for e in _NOUN_ENDINGS},
}

_UPPER_START = "A-ZĄĆĘŁŃÓŚŹŻ"

_LOCATION_RE = re.compile(
    r"(?<!\w)(?:w|we|na|blisko|koło|kolo|niedaleko|obok|przy|pod)\s+"
    r"(\w[\w-]*(?:\s+\w[\w-]*){0,2})",
    re.IGNORECASE,
)
_BARE_MENU_RE = re.compile(
    r"^(?:(?:pokaz|daj|zobacz|wyswietl)\s+)?(?:mi\s+)?(?:menu|karte|karta)"
    r"(?:\s+(?:prosze|poprosze))?$"
)
_MENU_NAME_RE = re.compile(
    r"\bmenu\s+(?:(?:w|z|ze|u|restauracji|restauracja|pizzerii|pizzeria|lokalu)\s+)*(.+)$"
)
_AT_NAME_RE = re.compile(
    rf"(?<!\w)(?i:w|z|ze|u)\s+(?:(?i:restauracji|pizzerii|lokalu)\s+)?"
    rf"([{_UPPER_START}][\w'&-]*(?:\s+[{_UPPER_START}0-9][\w'&-]*)*)"
)
_ORDINAL_DIGIT_RE = re.compile(r"^(?:(?:numer|nr|ta|ten|to|opcja|pozycja)\s+)?(\d{1,2})$")
_QTY_TOKEN_RE = re.compile(r"^(?:x)?(\d{1,2})(?:x)?$")
_SPLIT_RE = re.compile(r",|;|(?<!\w)(?:i|oraz|plus|do tego)(?!\w)", re.IGNORECASE)
_PUNCT_EDGES = "\"'.,!?;:()[]"


@dataclass
class DishMention:
    name: str
    qty: int = 1
    size: Optional[str] = None


@dataclass
class Entities:
    location: Optional[str] = None
    cuisine: Optional[str] = None
    restaurant: Optional[Restaurant] = None
    # name the user said that may or may not resolve in the catalog
    restaurant_phrase: Optional[str] = None
    dishes: List[DishMention] = field(default_factory=list)
    size: Optional[str] = None
    ordinal: Optional[int] = None
    order_cue: bool = False
    bare_menu: bool = False

    def as_dict(self) -> dict:
        return {
            "location": self.location,
            "cuisine": self.cuisine,
            "restaurant": self.restaurant.name if self.restaurant else None,
            "restaurant_phrase": self.restaurant_phrase,
            "dishes": [d.__dict__ for d in self.dishes],
            "size": self.size,
            "ordinal": self.ordinal,
        }


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------

def denormalize_location_word(word: str) -> str:
    """
    Rewrite one locative/genitive word to the nominative.

    >>> denormalize_location_word("Piekarach")
    'Piekary'
    """
    lower = word.lower()
    for suffix, repl in LOCATION_SUFFIX_RULES:
        if lower.endswith(suffix) and len(word) > len(suffix) + 2:
            return word[: len(word) - len(suffix)] + repl
    return word


def denormalize_location(phrase: str) -> str:
    return " ".join(denormalize_location_word(w) for w in phrase.split())


def _is_capitalized(word: str) -> bool:
    return bool(word) and word[0].isupper()


def _capitalized_prefix(words: Sequence[str]) -> List[str]:
    out = []
    for w in words:
        if not _is_capitalized(w):
            break
        out.append(w)
    return out


def _names_restaurant(phrase: str, catalog: Optional[CatalogIndex]) -> bool:
    return catalog is not None and catalog.find_restaurant_in_text(phrase) is not None


def extract_location(text: str, catalog: Optional[CatalogIndex] = None) -> Optional[str]:
    """
    City after a preposition ("w Piekarach Śląskich" -> "Piekary Śląskie"),
    else any capitalized multi-word span. None when the only candidate is
    denylisted.
    """
    for match in _LOCATION_RE.finditer(text or ""):
        words = _capitalized_prefix(match.group(1).split())
        if not words:
            continue
        if normalize(words[0]) in LOCATION_DENYLIST:
            return None
        phrase = " ".join(words)
        if _names_restaurant(phrase, catalog):
            continue
        return denormalize_location(phrase)

    raw_tokens = [t.strip(_PUNCT_EDGES) for t in (text or "").split()]
    span: List[str] = []
    spans: List[List[str]] = []
    for tok in raw_tokens + [""]:
        if _is_capitalized(tok) and tok.isalpha():
            span.append(tok)
            continue
        if span:
            spans.append(span)
        span = []

    for candidate in spans:
        while candidate and normalize(candidate[0]) in SENTENCE_STARTERS:
            candidate = candidate[1:]
        if len(candidate) < 2:
            continue
        if any(normalize(w) in LOCATION_DENYLIST for w in candidate):
            continue
        phrase = " ".join(candidate)
        if _names_restaurant(phrase, catalog):
            continue
        return denormalize_location(phrase)
    return None


# ---------------------------------------------------------------------------
# Restaurant
# ---------------------------------------------------------------------------

def _clean_tokens(text: str) -> List[str]:
    """Whitespace tokens with edge punctuation removed, index-aligned with
    `text.split()`."""
    return [t.strip(_PUNCT_EDGES) for t in (text or "").split()]


def _order_pattern(tokens: List[str]) -> Optional[Tuple[int, int, int]]:
    """
    "zamów <dish> <Nazwa>": returns (verb index, name start, name end).
    """
    verb = next((i for i, t in enumerate(tokens) if normalize(t) in ORDER_VERBS), None)
    if verb is None:
        return None
    start = next(
        (j for j in range(verb + 2, len(tokens)) if _is_capitalized(tokens[j])), None
    )
    if start is None:
        return None
    end = start
    while end + 1 < len(tokens) and (
        _is_capitalized(tokens[end + 1]) or tokens[end + 1].isdigit() or tokens[end + 1] == "&"
    ):
        end += 1
    return verb, start, end


def _same_place(phrase: str, location: Optional[str]) -> bool:
    if not location:
        return False
    return normalize(denormalize_location(phrase)) == normalize(location)


def extract_restaurant(
    text: str,
    catalog: CatalogIndex,
    location: Optional[str] = None,
) -> Tuple[Optional[Restaurant], Optional[str], bool]:
    """
    Ordered patterns, first match wins.

    Returns (restaurant, phrase the user said, bare_menu). A bare
    "pokaż menu" yields (None, None, True): use the session's restaurant.
    """
    norm = normalize(text)
    if _BARE_MENU_RE.match(norm):
        return None, None, True

    tokens = _clean_tokens(text)
    order = _order_pattern(tokens)
    if order is not None:
        _, start, end = order
        phrase = " ".join(tokens[start:end + 1])
        if not _same_place(phrase, location):
            return catalog.find_restaurant_by_name(phrase), phrase, False

    menu_match = _MENU_NAME_RE.search(norm)
    if menu_match:
        phrase = menu_match.group(1).strip()
        words = [w for w in phrase.split() if w not in {"prosze", "poprosze"}]
        phrase = " ".join(words)
        if phrase and phrase.split()[0] not in LOCATION_DENYLIST and not _same_place(phrase, location):
            return catalog.find_restaurant_by_name(phrase), phrase, False

    for match in _AT_NAME_RE.finditer(text or ""):
        phrase = match.group(1).strip(_PUNCT_EDGES)
        if normalize(phrase).split(" ")[0] in LOCATION_DENYLIST or _same_place(phrase, location):
            continue
        found = catalog.find_restaurant_by_name(phrase)
        if found is not None:
            return found, phrase, False

    found = catalog.find_restaurant_in_text(text)
    if found is not None:
        return found, found.name, False
    return None, None, False


def match_in_list(text: str, restaurants: Sequence[Restaurant]) -> Optional[Restaurant]:
    """Fuzzy pick among the restaurants the user was just shown."""
    norm = normalize(text)
    if len(norm) < 4 or not restaurants:
        return None
    candidates = [(normalize(r.name), r) for r in restaurants]
    found = best_match(norm, candidates)
    if found is not None:
        return found
    # a distinctive word of the name said on its own ("ta z Monte")
    words = set(norm.split(" "))
    for name, r in candidates:
        if any(
            len(w) >= 4 and w not in GENERIC_RESTAURANT_WORDS and w in words
            for w in name.split(" ")
        ):
            return r
    return None


# ---------------------------------------------------------------------------
# Dishes, quantity, size
# ---------------------------------------------------------------------------

def find_size(normalized_text: str) -> Optional[str]:
    """
    Canonical size tag of the longest size synonym present, or None.
    Keys of one or two letters only match whole tokens.
    """
    best: Optional[str] = None
    for syn in SIZE_SYNONYMS:
        if contains_phrase(normalized_text, syn) and (best is None or len(syn) > len(best)):
            best = syn
    return SIZE_SYNONYMS[best] if best else None


def _strip_size_words(words: List[str]) -> List[str]:
    text = " ".join(words)
    for syn in sorted(SIZE_SYNONYMS, key=len, reverse=True):
        if contains_phrase(text, syn):
            text = f" {text} ".replace(f" {syn} ", " ").strip()
    return [w for w in text.split(" ") if w]


def parse_dish_part(part: str, drop_phrases: Sequence[str] = ()) -> Optional[DishMention]:
    """
    One dish fragment -> DishMention. "2x duża margherita" gives
    ("margherita", 2, "large").
    """
    norm = normalize(part)
    for phrase in drop_phrases:
        if phrase and contains_phrase(norm, phrase):
            norm = f" {norm} ".replace(f" {phrase} ", " ").strip()
    if not norm:
        return None

    size = find_size(norm)
    words = norm.split(" ")
    qty: Optional[int] = None
    kept: List[str] = []
    for word in words:
        digit = _QTY_TOKEN_RE.match(word)
        if qty is None and digit:
            qty = int(digit.group(1))
            continue
        if qty is None and word in NUMBER_WORDS:
            qty = NUMBER_WORDS[word]
            continue
        if word in QTY_UNITS or word in DISH_FILLERS:
            continue
        kept.append(word)

    kept = _strip_size_words(kept)
    while kept and kept[0] in EDGE_PREPOSITIONS:
        kept.pop(0)
    while kept and kept[-1] in EDGE_PREPOSITIONS:
        kept.pop()
    if not kept:
        return None
    return DishMention(name=" ".join(kept), qty=max(1, qty or 1), size=size)


def extract_dishes(
    text: str,
    restaurant: Optional[Restaurant] = None,
    location: Optional[str] = None,
) -> Tuple[List[DishMention], bool]:
    """
    Dish mentions after the ordering verb (or in the whole utterance when it
    starts with a quantity). Returns (dishes, order_cue).
    """
    tokens = _clean_tokens(text)
    raw_tokens = (text or "").split()
    norm_tokens = [normalize(t) for t in raw_tokens]
    order_cue = any(t in ORDER_VERBS for t in norm_tokens)

    source: List[str] = []
    order = _order_pattern(tokens)
    trailing_place = False
    if order is not None:
        _, start, end = order
        phrase = " ".join(tokens[start:end + 1])
        trailing_place = restaurant is not None or _same_place(phrase, location)
    if order is not None and trailing_place:
        # the capitalized run is the restaurant or the city, not a dish
        verb, start, _ = order
        source = raw_tokens[verb + 1:start]
    elif order_cue:
        verb = next(i for i, t in enumerate(norm_tokens) if t in ORDER_VERBS)
        source = raw_tokens[verb + 1:]
    elif norm_tokens and (
        norm_tokens[0] in NUMBER_WORDS or _QTY_TOKEN_RE.match(norm_tokens[0] or "")
    ):
        source = raw_tokens

    if not source:
        return [], order_cue

    drop: List[str] = []
    if restaurant is not None:
        name = normalize(restaurant.name)
        drop.append(name)
        drop.extend(w for w in name.split(" ") if len(w) >= 4)
    if location:
        drop.append(normalize(location))

    dishes = []
    for part in _SPLIT_RE.split(" ".join(source)):
        mention = parse_dish_part(part, drop)
        if mention is not None:
            dishes.append(mention)
    return dishes, order_cue


# ---------------------------------------------------------------------------
# Ordinal
# ---------------------------------------------------------------------------

def extract_ordinal(text: str) -> Optional[int]:
    """
    1-based position the user points at: "pierwszą" -> 1, "numer 2" -> 2.
    """
    norm = normalize(text)
    if not norm:
        return None
    digit = _ORDINAL_DIGIT_RE.match(norm)
    if digit:
        value = int(digit.group(1))
        return value if value > 0 else None
    words = norm.split(" ")
    for word in words:
        if word in ORDINAL_WORDS:
            return ORDINAL_WORDS[word]
    if len(words) == 1 and words[0] in CHOICE_NUMBER_WORDS:
        return NUMBER_WORDS[words[0]]
    return None


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

def extract_entities(
    text: str,
    session: Optional[SessionContext],
    catalog: CatalogIndex,
) -> Entities:
    norm = normalize(text)
    entities = Entities()
    if not norm:
        return entities

    entities.location = extract_location(text, catalog)
    entities.cuisine = find_cuisine_phrase(norm)
    restaurant, phrase, bare_menu = extract_restaurant(text, catalog, entities.location)
    if restaurant is None and phrase is None and not bare_menu and session is not None:
        restaurant = match_in_list(text, session.last_restaurants)
        phrase = restaurant.name if restaurant else None
    entities.restaurant = restaurant
    entities.restaurant_phrase = phrase
    entities.bare_menu = bare_menu

    entities.dishes, entities.order_cue = extract_dishes(text, restaurant, entities.location)
    entities.size = find_size(norm)
    entities.ordinal = extract_ordinal(text)
    return entities
