from datetime import datetime, timezone

import pytest

from orderbrain.entity_resolver import (
    denormalize_location_word,
    extract_dishes,
    extract_entities,
    extract_location,
    extract_ordinal,
    extract_restaurant,
    find_size,
    match_in_list,
    parse_dish_part,
)
from orderbrain.session_context import SessionContext

from conftest import RESTAURANTS


def _session() -> SessionContext:
    return SessionContext.new(session_id="s", created_at=datetime.now(timezone.utc))


@pytest.mark.parametrize(
    "word,expected",
    [
        ("Piekarach", "Piekary"),
        ("Śląskich", "Śląskie"),
        ("Katowicach", "Katowice"),
        ("Bytomiu", "Bytom"),
        ("Chorzowie", "Chorzów"),
        ("Warszawie", "Warszawa"),
        ("Bytom", "Bytom"),
    ],
)
def test_denormalize_location_word(word, expected):
    assert denormalize_location_word(word) == expected


def test_extract_location_after_preposition(catalog):
    assert extract_location("Gdzie zjeść w Piekarach Śląskich", catalog) == "Piekary Śląskie"
    assert extract_location("Szukam czegoś w Bytomiu", catalog) == "Bytom"


def test_extract_location_capitalized_span_without_preposition(catalog):
    assert extract_location("Piekary Śląskie jakieś pizzerie", catalog) == "Piekary Śląskie"


def test_extract_location_denylist_and_misses(catalog):
    assert extract_location("Jestem w Domu", catalog) is None
    assert extract_location("co jest w okolicy", catalog) is None
    assert extract_location("", catalog) is None


def test_restaurant_name_is_not_a_location(catalog):
    assert extract_location("Zamów pizzę w Monte Carlo", catalog) is None


def test_extract_restaurant_from_menu_request(catalog):
    restaurant, phrase, bare = extract_restaurant("Pokaż menu Monte Carlo", catalog)
    assert restaurant is not None and restaurant.id == "r1"
    assert phrase == "monte carlo"
    assert bare is False


def test_extract_restaurant_bare_menu(catalog):
    assert extract_restaurant("pokaż menu", catalog) == (None, None, True)


def test_extract_restaurant_keeps_unresolved_phrase(catalog):
    restaurant, phrase, bare = extract_restaurant("pokaż menu zupełnie obcej", catalog)
    assert restaurant is None
    assert phrase == "zupelnie obcej"
    assert bare is False


def test_match_in_list():
    shown = RESTAURANTS[:2]
    assert match_in_list("ta z monte", shown).id == "r1"
    assert match_in_list("burger", shown).id == "r2"
    assert match_in_list("tak", shown) is None
    assert match_in_list("burger", []) is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("extra duza pizza", "xxl"),
        ("mala pizza", "small"),
        ("rozmiar m", "medium"),
        ("duza margherita", "large"),
        ("pizza", None),
    ],
)
def test_find_size_prefers_longest_synonym(text, expected):
    assert find_size(text) == expected


def test_parse_dish_part_quantity_and_size():
    mention = parse_dish_part("2x duża margherita")
    assert (mention.name, mention.qty, mention.size) == ("margherita", 2, "large")
    assert parse_dish_part("poproszę") is None


def test_extract_dishes_multiple_items():
    dishes, cue = extract_dishes("Zamów 2x dużą margheritę i colę")
    assert cue is True
    assert [(d.name, d.qty, d.size) for d in dishes] == [
        ("margherite", 2, "large"),
        ("cole", 1, None),
    ]


def test_extract_dishes_number_words():
    dishes, cue = extract_dishes("Poproszę trzy pierogi")
    assert cue is True
    assert [(d.name, d.qty) for d in dishes] == [("pierogi", 3)]


def test_extract_dishes_stops_before_restaurant_name():
    dishes, _ = extract_dishes("Zamów cheeseburgera z Burger House", restaurant=RESTAURANTS[1])
    assert [(d.name, d.qty) for d in dishes] == [("cheeseburgera", 1)]


def test_extract_dishes_without_order_cue():
    assert extract_dishes("Jakie restauracje są w Bytomiu") == ([], False)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("pierwszą", 1),
        ("numer 2", 2),
        ("drugą", 2),
        ("ta trzecia", 3),
        ("poprosze szóstą", 6),
        ("jedynka", 1),
        ("dwa", 2),
        ("0", None),
        ("pizza", None),
        ("trzech", None),
        ("w czwartek", None),
        ("na piątek", None),
        ("drugie danie na piątek", 2),
    ],
)
def test_extract_ordinal(text, expected):
    assert extract_ordinal(text) == expected


def test_quantity_word_is_not_an_ordinal(catalog):
    entities = extract_entities("Poproszę trzech burgerów", None, catalog)
    assert entities.ordinal is None


def test_extract_entities_order_with_restaurant(catalog):
    entities = extract_entities("Zamów dwie margherity z Monte Carlo", None, catalog)
    assert entities.restaurant is not None and entities.restaurant.id == "r1"
    assert entities.location is None
    assert entities.order_cue is True
    assert [(d.name, d.qty) for d in entities.dishes] == [("margherity", 2)]


def test_extract_entities_falls_back_to_last_list(catalog):
    session = _session()
    session.last_restaurants = list(RESTAURANTS[:2])
    entities = extract_entities("ten burger", session, catalog)
    assert entities.restaurant is not None and entities.restaurant.id == "r2"


def test_extract_entities_location_round_trip(catalog):
    entities = extract_entities("Gdzie zjeść w Piekarach Śląskich", None, catalog)
    assert entities.location == "Piekary Śląskie"
    assert entities.restaurant is None
    assert entities.dishes == []
    assert entities.as_dict()["location"] == "Piekary Śląskie"


def test_extract_entities_empty_text(catalog):
    entities = extract_entities("   ", None, catalog)
    assert entities.location is None and entities.restaurant is None
