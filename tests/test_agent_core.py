import asyncio

from conftest import (
    ExplodingClassifier,
    FakeClassifier,
    RecordingOrderGateway,
    make_core,
    run_turn,
)


def _ordering_session(core, session_id="s1"):
    """Nearby search -> pick first -> menu -> order two margheritas."""
    run_turn(core, session_id, "Gdzie zjeść w Piekarach Śląskich")
    run_turn(core, session_id, "pierwszą")
    run_turn(core, session_id, "tak")
    return run_turn(core, session_id, "Poproszę dwie margherity")


def test_location_round_trip(core):
    resp = run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    assert resp.ok is True
    assert resp.intent == "find_nearby"
    assert [r.id for r in resp.restaurants] == ["r1", "r2"]
    assert resp.context.last_location == "Piekary Śląskie"
    assert resp.context.expected_context == "select_restaurant"
    assert "Pizzeria Monte Carlo" in resp.reply


def test_ordinal_selection_picks_from_last_list(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    resp = run_turn(core, "s1", "pierwszą")
    assert resp.intent == "select_restaurant"
    assert resp.restaurant.id == "r1"
    assert resp.context.last_restaurant.id == "r1"
    assert resp.context.expected_context == "confirm_menu"


def test_ordinal_out_of_range(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    resp = run_turn(core, "s1", "piąta")
    assert resp.intent == "select_restaurant"
    assert resp.context.last_restaurant is None
    assert "tylko 2" in resp.reply


def test_empty_search_clears_previous_list(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    resp = run_turn(core, "s1", "Gdzie zjeść w Chorzowie")
    assert resp.intent == "find_nearby"
    assert resp.context.last_restaurants == []
    assert resp.context.expected_context == "neutral"

    resp = run_turn(core, "s1", "pierwszą")
    assert resp.context.last_restaurant is None
    assert resp.restaurant is None


def test_select_by_name_from_list(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    resp = run_turn(core, "s1", "Burger House")
    assert resp.intent == "select_restaurant"
    assert resp.context.last_restaurant.id == "r2"


def test_affirmative_after_selection_shows_menu(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    run_turn(core, "s1", "pierwszą")
    resp = run_turn(core, "s1", "tak")
    assert resp.intent == "menu_request"
    assert "Pizza Margherita" in resp.reply
    assert "Coca-Cola" not in resp.reply
    assert len(resp.context.last_menu) == 4
    assert resp.context.expected_context == "neutral"


def test_full_order_flow(catalog_store):
    gateway = RecordingOrderGateway()
    core = make_core(catalog_store, order_gateway=gateway)

    resp = _ordering_session(core)
    assert resp.intent == "create_order"
    assert resp.context.expected_context == "confirm_order"
    pending = resp.context.pending_order
    assert pending.restaurant_id == "r1"
    assert [(i.name, i.qty) for i in pending.items] == [("Pizza Margherita", 2)]
    assert pending.total == 56.0

    resp = run_turn(core, "s1", "tak")
    assert resp.intent == "confirm_order"
    assert resp.context.pending_order is None
    assert resp.context.cart.total == 56.0
    assert len(resp.context.cart.items) == 1
    assert resp.context.last_order.total == 56.0
    assert len(gateway.orders) == 1

    resp = run_turn(core, "s1", "co mam w koszyku")
    assert resp.intent == "show_cart"
    assert "56.00 zł" in resp.reply


def test_same_restaurant_orders_merge(core):
    _ordering_session(core)
    resp = run_turn(core, "s1", "Dodaj pepperoni")
    assert resp.intent == "create_order"
    assert resp.reply.startswith("Dopisuję")
    pending = resp.context.pending_order
    assert [i.name for i in pending.items] == ["Pizza Margherita", "Pizza Pepperoni"]
    assert pending.total == 88.0


def test_order_from_another_restaurant_is_rejected(core):
    _ordering_session(core)
    resp = run_turn(core, "s1", "Zamów cheeseburgera z Burger House")
    assert resp.intent == "create_order"
    assert "niepotwierdzone" in resp.reply
    pending = resp.context.pending_order
    assert pending.restaurant_id == "r1"
    assert len(pending.items) == 1


def test_negative_with_change_request_switches_restaurant(core):
    _ordering_session(core)
    resp = run_turn(core, "s1", "nie, inna restauracja")
    assert resp.intent == "change_restaurant"
    assert resp.context.pending_order is None
    assert resp.context.last_restaurant is None
    assert [r.id for r in resp.restaurants] == ["r2"]
    assert resp.context.cart.items == []


def test_undecided_reply_keeps_pending_order(core):
    _ordering_session(core)
    resp = run_turn(core, "s1", "nie wiem, co polecasz")
    assert resp.intent == "recommend"
    pending = resp.context.pending_order
    assert pending is not None
    assert [(i.name, i.qty) for i in pending.items] == [("Pizza Margherita", 2)]


def test_cancel_keeps_cart(core):
    _ordering_session(core)
    run_turn(core, "s1", "tak")
    run_turn(core, "s1", "Dodaj pepperoni")
    resp = run_turn(core, "s1", "anuluj")
    assert resp.intent == "cancel_order"
    assert resp.context.pending_order is None
    assert resp.context.cart.total == 56.0


def test_confirm_and_cancel_without_pending_are_noops(core):
    assert "Nie ma żadnego zamówienia" in run_turn(core, "s1", "anuluj").reply
    resp = run_turn(core, "s2", "potwierdzam zamówienie")
    assert resp.ok is True
    assert resp.context.cart.items == []


def test_order_without_restaurant_asks_for_one(core):
    resp = run_turn(core, "s1", "Poproszę dwie margherity")
    assert resp.intent == "create_order"
    assert resp.context.pending_order is None
    assert "Najpierw wybierz restaurację" in resp.reply


def test_unknown_dish_and_unknown_restaurant_get_different_replies(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    run_turn(core, "s1", "pierwszą")
    dish = run_turn(core, "s1", "Zamów sushi")
    assert dish.intent == "create_order"
    assert "Nie znalazłam „sushi” w menu Pizzeria Monte Carlo" in dish.reply
    assert dish.context.pending_order is None

    restaurant = run_turn(core, "s2", "pokaż menu zupełnie obcej")
    assert restaurant.intent == "menu_request"
    assert "Nie znalazłam restauracji" in restaurant.reply


def test_menu_by_name(core):
    resp = run_turn(core, "s1", "Pokaż menu Monte Carlo")
    assert resp.intent == "menu_request"
    assert resp.restaurant.id == "r1"
    assert "Pizza Pepperoni" in resp.reply


def test_empty_location_suggests_nearby_cities(core):
    resp = run_turn(core, "s1", "Gdzie zjeść w Chorzowie")
    assert resp.intent == "find_nearby"
    assert "Nie znalazłam" in resp.reply
    assert "Katowice" in resp.reply
    assert resp.context.expected_context == "neutral"


def test_recommend_orders_by_rating(core):
    run_turn(core, "s1", "Gdzie zjeść w Bytomiu")
    resp = run_turn(core, "s1", "co polecasz?")
    assert resp.intent == "recommend"
    assert [r.id for r in resp.restaurants] == ["r3", "r4"]


def test_smalltalk(core):
    resp = run_turn(core, "s1", "Cześć")
    assert resp.intent == "smalltalk"
    assert resp.ok is True


def test_empty_input_is_rejected_without_creating_a_session(core):
    resp = run_turn(core, "s1", "")
    assert resp.ok is False
    assert resp.intent == "unknown"
    assert "tekstu" in resp.reply
    assert resp.context.turn_count == 0
    assert len(core.memory_store) == 0


def test_invalid_input_does_not_mutate_existing_session(core):
    run_turn(core, "s1", "Gdzie zjeść w Piekarach Śląskich")
    for text in ("   ", "a" * 1001, "<script>alert(1)</script>"):
        resp = run_turn(core, "s1", text)
        assert resp.ok is False
        assert resp.context.turn_count == 1
        assert resp.context.expected_context == "select_restaurant"


def test_trusted_classifier_verdict_wins(catalog_store):
    core = make_core(catalog_store, classifier=FakeClassifier("smalltalk", 0.95))
    resp = run_turn(core, "s1", "anuluj")
    assert resp.intent == "smalltalk"


def test_classifier_receives_raw_text(catalog_store):
    classifier = FakeClassifier()
    core = make_core(catalog_store, classifier=classifier)
    run_turn(core, "s1", "Gdzie zjeść w Bytomiu")
    assert classifier.calls == ["Gdzie zjeść w Bytomiu"]


def test_internal_fault_resets_dialogue_state(core):
    _ordering_session(core)
    run_turn(core, "s1", "tak")
    run_turn(core, "s1", "Dodaj pepperoni")

    core.classifier = ExplodingClassifier()
    resp = run_turn(core, "s1", "tak")
    assert resp.ok is False
    assert resp.context.pending_order is None
    assert resp.context.expected_context == "neutral"
    assert resp.context.cart.total == 56.0

    core.classifier = FakeClassifier()
    assert run_turn(core, "s1", "Gdzie zjeść w Bytomiu").ok is True


def test_concurrent_turns_for_one_session_are_applied_in_order(core):
    async def main():
        return await asyncio.gather(
            core.process_turn("s1", "Gdzie zjeść w Piekarach Śląskich"),
            core.process_turn("s1", "pierwszą"),
        )

    first, second = asyncio.run(main())
    assert first.context.turn_count == 1
    assert second.context.turn_count == 2
    assert second.intent == "select_restaurant"
    assert second.context.last_restaurant.id == "r1"
