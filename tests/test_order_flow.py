from datetime import datetime, timezone

import pytest

from orderbrain.order_flow import (
    OrderState,
    StageOutcome,
    cancel_pending,
    cart_summary,
    confirm_pending,
    format_price,
    order_state,
    stage_items,
)
from orderbrain.session_context import ExpectedContext, OrderLine, SessionContext

from conftest import RESTAURANTS

MONTE, BURGER = RESTAURANTS[0], RESTAURANTS[1]


def _session() -> SessionContext:
    return SessionContext.new(session_id="s", created_at=datetime.now(timezone.utc))


def _line(name="Pizza Margherita", price=28.0, qty=1) -> OrderLine:
    return OrderLine(name=name, price=price, qty=qty)


def test_stage_creates_pending_and_expects_confirmation():
    ctx = _session()
    assert order_state(ctx) == OrderState.NO_ORDER

    assert stage_items(ctx, MONTE, [_line(qty=2)]) == StageOutcome.CREATED
    assert order_state(ctx) == OrderState.PENDING
    assert ctx.pending_order.restaurant_id == "r1"
    assert ctx.pending_order.items[0].restaurant_name == "Pizzeria Monte Carlo"
    assert ctx.pending_order.total == 56.0
    assert ctx.expected_context == ExpectedContext.CONFIRM_ORDER


def test_stage_requires_items():
    with pytest.raises(ValueError):
        stage_items(_session(), MONTE, [])


def test_same_restaurant_merges():
    ctx = _session()
    stage_items(ctx, MONTE, [_line()])
    assert stage_items(ctx, MONTE, [_line("Pizza Pepperoni", 32.0)]) == StageOutcome.MERGED
    assert [line.name for line in ctx.pending_order.items] == ["Pizza Margherita", "Pizza Pepperoni"]
    assert ctx.pending_order.total == 60.0


def test_different_restaurant_is_rejected_without_changes():
    ctx = _session()
    stage_items(ctx, MONTE, [_line()])
    assert stage_items(ctx, BURGER, [_line("Cheeseburger", 31.0)]) == StageOutcome.CONFLICT
    assert ctx.pending_order.restaurant_id == "r1"
    assert len(ctx.pending_order.items) == 1


def test_confirm_moves_items_to_cart():
    ctx = _session()
    stage_items(ctx, BURGER, [_line("Fries", 12.0)])
    confirm_pending(ctx)
    before_total, before_len = ctx.cart.total, len(ctx.cart.items)

    stage_items(ctx, MONTE, [_line(qty=2), _line("Coca-Cola", 7.0, qty=3)])
    pending_sum = sum(l.price * l.qty for l in ctx.pending_order.items)
    pending_len = len(ctx.pending_order.items)

    confirmed = confirm_pending(ctx)
    assert confirmed.restaurant_id == "r1"
    assert ctx.cart.total == round(before_total + pending_sum, 2)
    assert len(ctx.cart.items) == before_len + pending_len
    assert ctx.pending_order is None
    assert ctx.last_order.total == 77.0
    assert ctx.expected_context == ExpectedContext.NEUTRAL
    assert order_state(ctx) == OrderState.NO_ORDER


def test_last_order_is_a_snapshot():
    ctx = _session()
    stage_items(ctx, MONTE, [_line()])
    confirm_pending(ctx)
    ctx.cart.items[0].qty = 10
    assert ctx.last_order.items[0].qty == 1


def test_confirm_without_pending_is_a_noop():
    ctx = _session()
    assert confirm_pending(ctx) is None
    assert ctx.cart.items == []


def test_cancel_never_touches_the_cart():
    ctx = _session()
    stage_items(ctx, MONTE, [_line()])
    confirm_pending(ctx)
    cart_before = [(l.name, l.qty) for l in ctx.cart.items]

    stage_items(ctx, MONTE, [_line("Pizza Pepperoni", 32.0)])
    dropped = cancel_pending(ctx)
    assert dropped.items[0].name == "Pizza Pepperoni"
    assert ctx.pending_order is None
    assert [(l.name, l.qty) for l in ctx.cart.items] == cart_before
    assert ctx.cart.total == 28.0
    assert ctx.expected_context == ExpectedContext.NEUTRAL

    assert cancel_pending(ctx) is None


def test_cart_summary_and_price_format():
    ctx = _session()
    stage_items(ctx, MONTE, [OrderLine(name="Pizza Margherita", price=28.0, qty=2, size="large")])
    confirm_pending(ctx)
    assert cart_summary(ctx.cart) == [
        "- 2x Pizza Margherita (large) z Pizzeria Monte Carlo: 56.00 zł"
    ]
    assert format_price(7) == "7.00 zł"
