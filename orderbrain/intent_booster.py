# orderbrain/intent_booster.py
"""
Intent Booster

Deterministic correction layer on top of the probabilistic classifier.

- A provisional intent with confidence >= 0.8 is trusted as is.
- Otherwise the ordered rule table `BOOST_RULES` is evaluated and the first
  rule that fires decides the intent.
- No rule fired: the provisional intent passes through.

Each rule is a named (predicate, result) pair so rule order and coverage can
be tested one rule at a time, and logs can say which rule made the call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

from .config import settings
from .entity_resolver import extract_ordinal
from .models import IntentName
from .session_context import ExpectedContext, SessionContext
from .text_normalizer import contains_phrase, normalize

logger = logging.getLogger(__name__)

SHORT_REPLY_MAX_TOKENS = 6

AFFIRMATIVE_WORDS = {
    "tak", "ok", "okej", "okey", "jasne", "dobrze", "pewnie", "zgoda",
    "potwierdzam", "poprosze", "chetnie", "oczywiscie", "super", "swietnie",
    "dawaj", "moze", "byc",
}
AFFIRMATIVE_FILLERS = {"prosze", "bardzo", "to", "tak", "jak", "najbardziej", "no"}
CHANGE_WORDS = {
    "inna", "inne", "innego", "inny", "innej", "zmien", "zmienmy", "zmiana",
    "zmienic",
}
CANCEL_WORDS = {
    "anuluj", "anuluje", "anulowac", "odwolaj", "odwoluje", "stop",
    "rezygnuje", "rezygnuj", "wycofaj", "wycofuje",
}
CANCEL_PHRASES = ("nie chce", "nie zamawiam", "nie zamawiaj")
# words allowed around a bare "nie" / change request; anything else is a real sentence
NEGATIVE_FILLERS = {
    "nie", "dzieki", "dziekuje", "ta", "ten", "to", "tej", "tego", "restauracja",
    "restauracje", "restauracji", "miejsce", "lokal", "zadna", "zadne", "zaden",
    "jednak", "raczej", "prosze", "cos", "no",
}

RECOMMEND_PHRASES = ("co warto", "co dobre", "co dobrego", "co najlepsze", "co najlepszego")
QUICK_PHRASES = (
    "na szybko", "cos szybkiego", "szybkie jedzenie", "fast food", "fastfood",
    "szybko zjesc",
)
DESIRE_PHRASES = (
    "mam ochote", "ochote na", "chce cos", "szukam czegos", "szukam",
    "zjadlbym", "zjadlabym",
)
AVAILABILITY_PHRASES = (
    "co jest dostepne", "co dostepne", "co w poblizu", "co w okolicy",
    "w poblizu", "w okolicy", "niedaleko", "gdzie zjesc", "gdzie zjem",
    "gdzie moge zjesc", "jakie restauracje", "co jest otwarte",
)
DIETARY_STEMS = ("wege", "wegetarian", "wegan", "roslinn", "bezmies")
ORDER_HERE_PHRASES = (
    "zamow tutaj", "zamow tu", "zamow to", "chce to zamowic", "zamawiam tutaj",
    "zamawiam to", "biore to", "wezme to",
)
MENU_WORDS = {"menu", "karta", "karte", "karty"}
MENU_PHRASES = ("co maja", "co serwuja", "zobacz co", "co oferuja", "co jest w menu")
FOOD_STEMS = (
    "restaurac", "zjesc", "zjem", "jedzeni", "posilek", "posilk", "obiad",
    "kolacj", "sniadani", "glodn", "jesc",
)


@dataclass(frozen=True)
class BoostInput:
    """Everything a rule may look at: normalized text plus session cues."""
    text: str
    tokens: Tuple[str, ...]
    provisional: str
    expected: ExpectedContext
    choices: int
    ordinal: Optional[int]

    @classmethod
    def build(cls, text: str, provisional: str, session: Optional[SessionContext]) -> "BoostInput":
        norm = normalize(text)
        return cls(
            text=norm,
            tokens=tuple(norm.split(" ")) if norm else (),
            provisional=provisional,
            expected=session.expected_context if session else ExpectedContext.NEUTRAL,
            choices=len(session.last_restaurants) if session else 0,
            ordinal=extract_ordinal(norm),
        )

    def has_phrase(self, phrases: Sequence[str]) -> bool:
        return any(contains_phrase(self.text, p) for p in phrases)

    def has_stem(self, stems: Sequence[str]) -> bool:
        return any(tok.startswith(stem) for tok in self.tokens for stem in stems)

    @property
    def is_short(self) -> bool:
        return 0 < len(self.tokens) <= SHORT_REPLY_MAX_TOKENS

    @property
    def is_affirmative(self) -> bool:
        if not self.tokens:
            return False
        allowed = AFFIRMATIVE_WORDS | AFFIRMATIVE_FILLERS
        return all(t in allowed for t in self.tokens) and any(
            t in AFFIRMATIVE_WORDS for t in self.tokens
        )

    @property
    def is_cancel(self) -> bool:
        return any(t in CANCEL_WORDS for t in self.tokens) or self.has_phrase(CANCEL_PHRASES)

    @property
    def is_negative(self) -> bool:
        if not self.tokens:
            return False
        allowed = NEGATIVE_FILLERS | CHANGE_WORDS
        return all(t in allowed for t in self.tokens) and (
            self.tokens[0] == "nie" or any(t in CHANGE_WORDS for t in self.tokens)
        )


RuleResult = Union[str, Callable[[BoostInput], Optional[str]]]


@dataclass(frozen=True)
class BoostRule:
    name: str
    predicate: Callable[[BoostInput], bool]
    result: RuleResult

    def apply(self, inp: BoostInput) -> Optional[str]:
        if not self.predicate(inp):
            return None
        if callable(self.result):
            return self.result(inp)
        return self.result


# ---------------------------------------------------------------------------
# Rule 1: short replies read through the expected context
# ---------------------------------------------------------------------------

def _is_contextual_reply(inp: BoostInput) -> bool:
    if not inp.is_short:
        return False
    if inp.ordinal is not None and inp.expected == ExpectedContext.SELECT_RESTAURANT:
        return True
    return inp.is_affirmative or inp.is_negative or inp.is_cancel


def _contextual_intent(inp: BoostInput) -> Optional[str]:
    expected = inp.expected

    if expected == ExpectedContext.SELECT_RESTAURANT:
        if inp.ordinal is not None and not inp.is_negative:
            return IntentName.SELECT_RESTAURANT.value
        if inp.is_cancel:
            return IntentName.CANCEL_ORDER.value
        if inp.is_negative:
            return IntentName.CHANGE_RESTAURANT.value
        if inp.is_affirmative and inp.choices == 1:
            return IntentName.SELECT_RESTAURANT.value
        return None

    # cancel/stop wins over plain negation in every other context
    if inp.is_cancel:
        return IntentName.CANCEL_ORDER.value
    if inp.is_negative:
        return IntentName.CHANGE_RESTAURANT.value
    if not inp.is_affirmative:
        return None
    if expected == ExpectedContext.CONFIRM_ORDER:
        return IntentName.CONFIRM_ORDER.value
    if expected == ExpectedContext.CONFIRM_MENU:
        return IntentName.MENU_REQUEST.value
    return IntentName.CONFIRM.value


# ---------------------------------------------------------------------------
# Rule table (order matters: first match wins)
# ---------------------------------------------------------------------------

BOOST_RULES: Tuple[BoostRule, ...] = (
    BoostRule("contextual_reply", _is_contextual_reply, _contextual_intent),
    BoostRule(
        "recommend",
        lambda i: i.has_stem(("polec",)) or i.has_phrase(RECOMMEND_PHRASES),
        IntentName.RECOMMEND.value,
    ),
    BoostRule("quick_food", lambda i: i.has_phrase(QUICK_PHRASES), IntentName.FIND_NEARBY.value),
    BoostRule("desire", lambda i: i.has_phrase(DESIRE_PHRASES), IntentName.FIND_NEARBY.value),
    BoostRule(
        "availability", lambda i: i.has_phrase(AVAILABILITY_PHRASES), IntentName.FIND_NEARBY.value
    ),
    BoostRule("dietary", lambda i: i.has_stem(DIETARY_STEMS), IntentName.FIND_NEARBY.value),
    BoostRule(
        "order_here", lambda i: i.has_phrase(ORDER_HERE_PHRASES), IntentName.CREATE_ORDER.value
    ),
    BoostRule(
        "menu_keyword",
        lambda i: any(t in MENU_WORDS for t in i.tokens) or i.has_phrase(MENU_PHRASES),
        IntentName.MENU_REQUEST.value,
    ),
    BoostRule(
        "food_nouns_fallback",
        lambda i: i.provisional == IntentName.UNKNOWN.value and i.has_stem(FOOD_STEMS),
        IntentName.FIND_NEARBY.value,
    ),
)


class IntentBooster:
    def __init__(
        self,
        rules: Sequence[BoostRule] = BOOST_RULES,
        trust_confidence: Optional[float] = None,
    ) -> None:
        self.rules = tuple(rules)
        self.trust_confidence = (
            settings.BOOST_TRUST_CONFIDENCE if trust_confidence is None else trust_confidence
        )

    def explain(
        self,
        text: str,
        provisional: str,
        confidence: float,
        session: Optional[SessionContext] = None,
    ) -> Tuple[str, Optional[str]]:
        """
        Final intent plus the name of the rule that produced it (None when
        the provisional intent was kept).
        """
        if confidence >= self.trust_confidence:
            return provisional, None

        inp = BoostInput.build(text, provisional, session)
        for rule in self.rules:
            result = rule.apply(inp)
            if result is not None:
                logger.debug("Boost rule %s: %s -> %s", rule.name, provisional, result)
                return result, rule.name
        return provisional, None

    def boost(
        self,
        text: str,
        provisional: str,
        confidence: float,
        session: Optional[SessionContext] = None,
    ) -> str:
        return self.explain(text, provisional, confidence, session)[0]


def boost(
    text: str,
    provisional: str,
    confidence: float,
    session: Optional[SessionContext] = None,
) -> str:
    return IntentBooster().boost(text, provisional, confidence, session)
