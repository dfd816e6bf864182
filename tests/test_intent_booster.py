from datetime import datetime, timezone

import pytest

from orderbrain.intent_booster import BOOST_RULES, IntentBooster, boost
from orderbrain.session_context import ExpectedContext, SessionContext

from conftest import RESTAURANTS


def _session(expected=ExpectedContext.NEUTRAL, choices=0) -> SessionContext:
    ctx = SessionContext.new(session_id="s", created_at=datetime.now(timezone.utc))
    ctx.expected_context = expected
    ctx.last_restaurants = list(RESTAURANTS[:choices])
    return ctx


@pytest.mark.parametrize("confidence", [0.8, 0.9, 1.0])
@pytest.mark.parametrize("text", ["anuluj", "tak", "co polecasz", "pokaż menu", ""])
def test_trusted_classifier_verdict_is_never_overridden(text, confidence):
    session = _session(ExpectedContext.CONFIRM_ORDER)
    assert boost(text, "find_nearby", confidence, session) == "find_nearby"


def test_boost_is_deterministic():
    session = _session(ExpectedContext.CONFIRM_ORDER)
    results = {boost("nie, inna restauracja", "unknown", 0.3, session) for _ in range(20)}
    assert results == {"change_restaurant"}


def test_rule_table_order():
    assert [r.name for r in BOOST_RULES] == [
        "contextual_reply",
        "recommend",
        "quick_food",
        "desire",
        "availability",
        "dietary",
        "order_here",
        "menu_keyword",
        "food_nouns_fallback",
    ]


@pytest.mark.parametrize(
    "text,expected,intent",
    [
        ("tak", ExpectedContext.CONFIRM_ORDER, "confirm_order"),
        ("tak poproszę", ExpectedContext.CONFIRM_ORDER, "confirm_order"),
        ("tak", ExpectedContext.CONFIRM_MENU, "menu_request"),
        ("okej", ExpectedContext.NEUTRAL, "confirm"),
        ("nie, inna restauracja", ExpectedContext.CONFIRM_ORDER, "change_restaurant"),
        ("anuluj", ExpectedContext.CONFIRM_ORDER, "cancel_order"),
        ("nie chcę", ExpectedContext.CONFIRM_ORDER, "cancel_order"),
        ("nie", ExpectedContext.CONFIRM_MENU, "change_restaurant"),
    ],
)
def test_short_replies_follow_expected_context(text, expected, intent):
    booster = IntentBooster(trust_confidence=0.8)
    final, rule = booster.explain(text, "unknown", 0.0, _session(expected))
    assert final == intent
    assert rule == "contextual_reply"


def test_select_restaurant_context():
    session = _session(ExpectedContext.SELECT_RESTAURANT, choices=2)
    assert boost("pierwszą", "unknown", 0.0, session) == "select_restaurant"
    assert boost("numer 2", "unknown", 0.0, session) == "select_restaurant"
    assert boost("nie, żadna", "unknown", 0.0, session) == "change_restaurant"
    # "tak" is ambiguous with two options on the list
    assert boost("tak", "unknown", 0.0, session) == "unknown"

    single = _session(ExpectedContext.SELECT_RESTAURANT, choices=1)
    assert boost("tak", "unknown", 0.0, single) == "select_restaurant"


@pytest.mark.parametrize(
    "text,intent,rule",
    [
        ("co polecasz?", "recommend", "recommend"),
        ("coś na szybko", "find_nearby", "quick_food"),
        ("mam ochotę na sushi", "find_nearby", "desire"),
        ("co jest w pobliżu", "find_nearby", "availability"),
        ("coś wegańskiego", "find_nearby", "dietary"),
        ("zamów tutaj", "create_order", "order_here"),
        ("pokaż kartę", "menu_request", "menu_keyword"),
        ("jestem głodny", "find_nearby", "food_nouns_fallback"),
    ],
)
def test_lexical_rules(text, intent, rule):
    booster = IntentBooster(trust_confidence=0.8)
    assert booster.explain(text, "unknown", 0.0, _session()) == (intent, rule)


def test_earlier_rule_wins():
    booster = IntentBooster(trust_confidence=0.8)
    assert booster.explain("polecisz coś na szybko?", "unknown", 0.0, _session()) == (
        "recommend",
        "recommend",
    )


def test_food_fallback_only_for_unknown_provisional():
    assert boost("jestem głodny", "smalltalk", 0.5, _session()) == "smalltalk"


def test_provisional_kept_when_no_rule_fires():
    booster = IntentBooster(trust_confidence=0.8)
    assert booster.explain("xyz abc", "menu_request", 0.5, _session()) == ("menu_request", None)
    assert boost("xyz abc", "unknown", 0.0, None) == "unknown"


def test_custom_rule_table():
    booster = IntentBooster(rules=BOOST_RULES[-1:], trust_confidence=0.8)
    # contextual rule removed: a bare "tak" is left alone
    assert booster.boost("tak", "unknown", 0.0, _session(ExpectedContext.CONFIRM_ORDER)) == "unknown"


@pytest.mark.parametrize(
    "expected", [ExpectedContext.NEUTRAL, ExpectedContext.CONFIRM_ORDER]
)
def test_sentence_starting_with_nie_is_not_a_refusal(expected):
    booster = IntentBooster(trust_confidence=0.8)
    assert booster.explain("nie wiem, co polecasz", "unknown", 0.0, _session(expected)) == (
        "recommend",
        "recommend",
    )
    assert boost("nie jestem pewien", "unknown", 0.0, _session(expected)) == "unknown"
