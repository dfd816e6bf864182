# orderbrain/catalog.py
"""
Catalog Index

Immutable, queryable projection of the restaurants and menu items loaded
from the external store.

Lookups use three tiers, cheapest first:
- exact match on normalized names,
- substring containment ("margherita" -> "Pizza Margherita"),
- Levenshtein distance as last resort, bounded by query length.

A `None` result means "not found" and is never an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from rapidfuzz.distance import Levenshtein

from .models import MenuItem, Restaurant
from .text_normalizer import contains_phrase, normalize

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_SUBSTRING_QUERY = 3
MAX_EDIT_DISTANCE = 3

# ---------------------------------------------------------------------------
# Static tables (keys already normalized)
# ---------------------------------------------------------------------------

# canonical cuisine tag -> natural-language synonyms
CUISINE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "Amerykańska": (
        "amerykanska", "amerykanskie", "burger", "burgera", "burgery", "burgerow",
        "fast food", "fastfood", "na szybko", "cos szybkiego", "szybkie jedzenie",
    ),
    "Kebab": (
        "kebab", "kebaba", "kebaby", "kebabu", "fast food", "fastfood",
        "na szybko", "cos szybkiego", "szybkie jedzenie",
    ),
    "Włoska": (
        "wloska", "wloskie", "wloskiej", "pizza", "pizze", "pizzy", "pizzeria",
        "pizzerie", "makaron",
    ),
    "Wietnamska": (
        "wietnamska", "wietnamskie", "wietnamskiej", "azjatyckie", "azjatycka",
        "azjatyckiej", "azjatyckiego", "orientalne", "orientalna",
    ),
    "Chińska": (
        "chinska", "chinskie", "chinskiej", "azjatyckie", "azjatycka",
        "azjatyckiej", "azjatyckiego", "orientalne", "orientalna",
    ),
    "Tajska": (
        "tajska", "tajskie", "tajskiej", "azjatyckie", "azjatycka", "azjatyckiej",
        "azjatyckiego",
    ),
    "Polska": (
        "polska", "polskie", "polskiej", "domowe", "domowa", "domowej",
        "lokalne", "regionalne", "pierogi",
    ),
    "Śląska / Europejska": (
        "slaska", "slaskie", "slaskiej", "europejska", "europejskie",
        "europejskiej", "domowe", "domowa", "domowej", "lokalne", "regionalne",
    ),
    "Czeska / Polska": (
        "czeska", "czeskie", "czeskiej", "europejska", "europejskie",
        "europejskiej", "lokalne", "regionalne",
    ),
    "Wegetariańska": (
        "wege", "wegetarianska", "wegetarianskie", "wegetarianskiej",
        "weganska", "weganskie", "roslinne",
    ),
}

CUISINE_FRIENDLY_NAMES: Dict[str, str] = {
    "Amerykańska": "fast-foody i burgery",
    "Kebab": "kebaby",
    "Włoska": "pizzerie",
    "Polska": "kuchnię polską",
    "Wietnamska": "kuchnię azjatycką",
    "Chińska": "kuchnię azjatycką",
    "Tajska": "kuchnię azjatycką",
    "Śląska / Europejska": "kuchnię śląską",
    "Czeska / Polska": "kuchnię czeską",
    "Wegetariańska": "kuchnię wegetariańską",
}

# colloquial dish names -> canonical (normalized) dish names
DISH_ALIASES: Dict[str, str] = {
    "cola": "coca cola",
    "coli": "coca cola",
    "cole": "coca cola",
    "kola": "coca cola",
    "frytki": "fries",
    "frytek": "fries",
    "burgery": "burger",
    "burgera": "burger",
    "vegas": "smak vegas",
    "margarita": "margherita",
    "margerita": "margherita",
    "margherite": "margherita",
    "pizze": "pizza",
    "pizzy": "pizza",
    "kebaba": "kebab",
    "kebsa": "kebab",
}

# words that do not identify a restaurant on their own
GENERIC_RESTAURANT_WORDS = {
    "restauracja", "restauracji", "pizzeria", "pizzerii", "bar", "bistro",
    "pub", "kuchnia", "kebab", "grill",
}

MENU_PREVIEW_LIMIT = 6
BANNED_PREVIEW_CATEGORIES = ("napoje", "napoj", "drinki", "alkohol", "sosy", "sos", "dodatki", "extra")
BANNED_PREVIEW_NAMES = ("cappy", "coca cola", "cola", "fanta", "sprite", "pepsi", "sos", "dodat", "napoj")


def cuisine_tags_for(phrase: Optional[str]) -> List[str]:
    """
    Canonical cuisine tags a user phrase or tag refers to.

    >>> cuisine_tags_for("azjatyckie")
    ['Wietnamska', 'Chińska', 'Tajska']
    """
    norm = normalize(phrase or "")
    if not norm:
        return []
    by_synonym = [tag for tag, syns in CUISINE_SYNONYMS.items() if norm in syns]
    if by_synonym:
        return by_synonym
    by_tag = [tag for tag in CUISINE_SYNONYMS if normalize(tag) == norm]
    if by_tag:
        return by_tag
    return [tag for tag in CUISINE_SYNONYMS if contains_phrase(normalize(tag), norm)]


def find_cuisine_phrase(normalized_text: str) -> Optional[str]:
    """
    Longest cuisine synonym present in the text, or None.
    """
    best: Optional[str] = None
    for synonyms in CUISINE_SYNONYMS.values():
        for syn in synonyms:
            if contains_phrase(normalized_text, syn) and (best is None or len(syn) > len(best)):
                best = syn
    return best


def friendly_cuisine(phrase: Optional[str]) -> Optional[str]:
    tags = cuisine_tags_for(phrase)
    if not tags:
        return None
    names: List[str] = []
    for tag in tags:
        friendly = CUISINE_FRIENDLY_NAMES.get(tag, tag.lower())
        if friendly not in names:
            names.append(friendly)
    return " i ".join(names)


def menu_preview(menu: Sequence[MenuItem], limit: int = MENU_PREVIEW_LIMIT) -> List[MenuItem]:
    """
    First `limit` dishes, skipping drinks and sauces unless that leaves
    nothing to show.
    """
    def _is_main(item: MenuItem) -> bool:
        category = normalize(item.category or "")
        name = normalize(item.name)
        if any(b in category for b in BANNED_PREVIEW_CATEGORIES):
            return False
        return not any(b in name for b in BANNED_PREVIEW_NAMES)

    mains = [m for m in menu if _is_main(m)]
    return list(mains or menu)[:limit]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def _windows(name_tokens: List[str], size: int) -> Iterable[str]:
    if size >= len(name_tokens):
        yield " ".join(name_tokens)
        return
    for start in range(len(name_tokens) - size + 1):
        yield " ".join(name_tokens[start:start + size])


def _distance(query: str, name: str) -> int:
    """
    Edit distance between the query and the name, or the closest run of
    name words of the same length as the query.
    """
    best = Levenshtein.distance(query, name)
    q_len = len(query.split(" "))
    for window in _windows(name.split(" "), q_len):
        best = min(best, Levenshtein.distance(query, window))
    return best


def _max_distance(query: str) -> int:
    return min(MAX_EDIT_DISTANCE, max(1, len(query) // 4))


def best_match(
    query: str, candidates: Sequence[Tuple[str, T]], fuzzy: bool = True
) -> Optional[T]:
    """
    Three-tier match of a normalized query against (normalized name, value)
    pairs. Ties go to the shorter name, then the first listed.

    With `fuzzy=False` only the exact and containment tiers run.
    """
    if not query:
        return None

    exact = [value for name, value in candidates if name == query]
    if exact:
        return exact[0]

    if len(query) >= MIN_SUBSTRING_QUERY:
        # name contains query: the shortest such name is the closest fit
        inside = [
            (len(name), idx, value)
            for idx, (name, value) in enumerate(candidates)
            if contains_phrase(name, query)
        ]
        if inside:
            return min(inside, key=lambda t: (t[0], t[1]))[2]
        # query contains name: prefer the most specific (longest) name
        around = [
            (len(name), idx, value)
            for idx, (name, value) in enumerate(candidates)
            if len(name) >= MIN_SUBSTRING_QUERY and contains_phrase(query, name)
        ]
        if around:
            return min(around, key=lambda t: (-t[0], t[1]))[2]

    if not fuzzy:
        return None

    limit = _max_distance(query)
    scored = []
    for idx, (name, value) in enumerate(candidates):
        dist = _distance(query, name)
        if dist <= limit:
            scored.append((dist, len(name), idx, value))
    if not scored:
        return None
    return min(scored, key=lambda t: t[:3])[3]


def apply_dish_aliases(query: str) -> str:
    """Rewrite colloquial dish words to their canonical form."""
    if query in DISH_ALIASES:
        return DISH_ALIASES[query]
    return " ".join(DISH_ALIASES.get(tok, tok) for tok in query.split(" "))


def _core_name(normalized_name: str) -> str:
    words = [w for w in normalized_name.split(" ") if w not in GENERIC_RESTAURANT_WORDS]
    return " ".join(words)


@dataclass(frozen=True)
class CatalogIndex:
    """
    Snapshot of the catalog. Build a new one to refresh; never mutate.
    """
    restaurants: Tuple[Restaurant, ...] = ()
    menu_items: Tuple[MenuItem, ...] = ()

    @classmethod
    def build(
        cls, restaurants: Iterable[Restaurant], menu_items: Iterable[MenuItem]
    ) -> "CatalogIndex":
        return cls(restaurants=tuple(restaurants), menu_items=tuple(menu_items))

    # -------------------------------------------------------------------------
    # Restaurants
    # -------------------------------------------------------------------------
    def _restaurant_candidates(self) -> List[Tuple[str, Restaurant]]:
        return [(normalize(r.name), r) for r in self.restaurants]

    def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        for r in self.restaurants:
            if r.id == restaurant_id:
                return r
        return None

    def find_restaurant_by_name(self, query: Optional[str]) -> Optional[Restaurant]:
        norm = normalize(query or "")
        if not norm:
            return None
        candidates = self._restaurant_candidates()
        found = best_match(norm, candidates)
        if found is None:
            # "Monte Carlo" for "Pizzeria Monte Carlo"
            cores = [(_core_name(name), r) for name, r in candidates if _core_name(name)]
            found = best_match(_core_name(norm) or norm, cores)
        return found

    def find_restaurant_in_text(self, text: str) -> Optional[Restaurant]:
        """
        Restaurant whose name (or distinctive part of it) occurs verbatim in
        the text; the longest such name wins.
        """
        norm = normalize(text)
        best: Optional[Tuple[int, Restaurant]] = None
        for name, r in self._restaurant_candidates():
            for variant in (name, _core_name(name)):
                if len(variant) < 4 or not contains_phrase(norm, variant):
                    continue
                if best is None or len(variant) > best[0]:
                    best = (len(variant), r)
        return best[1] if best else None

    def cities(self) -> List[str]:
        seen: List[str] = []
        for r in self.restaurants:
            if r.city and r.city not in seen:
                seen.append(r.city)
        return seen

    def filter_by_location_and_cuisine(
        self, location: Optional[str] = None, cuisine: Optional[str] = None
    ) -> List[Restaurant]:
        """
        Restaurants in `location` (substring on city, either direction) that
        serve `cuisine` (a tag or any of its synonyms). Missing filters match
        everything; catalog order is kept.
        """
        loc = normalize(location or "")
        tags = {normalize(t) for t in cuisine_tags_for(cuisine)} if cuisine else None

        result = []
        for r in self.restaurants:
            if loc:
                city = normalize(r.city)
                if not city or not (loc in city or city in loc):
                    continue
            if tags is not None and normalize(r.cuisine) not in tags:
                continue
            result.append(r)
        return result

    # -------------------------------------------------------------------------
    # Menu items
    # -------------------------------------------------------------------------
    def menu_for(self, restaurant_id: str, include_unavailable: bool = False) -> List[MenuItem]:
        return [
            m
            for m in self.menu_items
            if m.restaurant_id == restaurant_id and (include_unavailable or m.available)
        ]

    def find_menu_item_by_name(
        self, restaurant_id: str, query: Optional[str]
    ) -> Optional[MenuItem]:
        norm = normalize(query or "")
        if not norm:
            return None
        candidates = [(normalize(m.name), m) for m in self.menu_for(restaurant_id)]
        if not candidates:
            return None

        # the words the user said beat any alias rewrite of them
        literal = best_match(norm, candidates, fuzzy=False)
        if literal is not None:
            return literal

        aliased = apply_dish_aliases(norm)
        if aliased != norm:
            found = best_match(aliased, candidates)
            if found is not None:
                logger.debug("Dish alias %r -> %r matched %s", norm, aliased, found.name)
                return found

        return best_match(norm, candidates)

    def find_menu_items_in_text(self, restaurant_id: str, text: str) -> List[MenuItem]:
        """
        Menu items whose full name appears in the text, longest names first,
        skipping names already covered by a longer match.
        """
        norm = apply_dish_aliases(normalize(text))
        items = sorted(
            self.menu_for(restaurant_id), key=lambda m: len(normalize(m.name)), reverse=True
        )
        found: List[MenuItem] = []
        covered: List[str] = []
        for item in items:
            name = normalize(item.name)
            if not name or not contains_phrase(norm, name):
                continue
            if any(contains_phrase(longer, name) for longer in covered):
                continue
            found.append(item)
            covered.append(name)
        return found


# normalized city -> nearby cities worth suggesting when nothing was found
NEARBY_CITY_SUGGESTIONS: Dict[str, Tuple[str, ...]] = {
    "bytom": ("Piekary Śląskie", "Katowice", "Zabrze"),
    "katowice": ("Piekary Śląskie", "Bytom", "Chorzów"),
    "zabrze": ("Piekary Śląskie", "Bytom", "Gliwice"),
    "gliwice": ("Zabrze", "Piekary Śląskie"),
    "chorzow": ("Katowice", "Piekary Śląskie", "Bytom"),
}


def nearby_cities(location: Optional[str]) -> List[str]:
    return list(NEARBY_CITY_SUGGESTIONS.get(normalize(location or ""), ()))
