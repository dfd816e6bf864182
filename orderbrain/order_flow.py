# orderbrain/order_flow.py
"""
Pending-order / cart state machine.

    NO_ORDER --stage--> PENDING --stage(same restaurant)--> PENDING
    PENDING  --confirm--> cart (CONFIRMED) --> NO_ORDER
    PENDING  --cancel---> dropped (CANCELLED) --> NO_ORDER

Staging items for a different restaurant while an order is pending is
rejected; the caller asks the user to confirm or cancel first.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import List, Optional

from .models import Restaurant
from .session_context import (
    Cart,
    ExpectedContext,
    OrderLine,
    PendingOrder,
    SessionContext,
)

logger = logging.getLogger(__name__)


class OrderState(str, Enum):
    NO_ORDER = "no_order"
    PENDING = "pending"


class StageOutcome(str, Enum):
    CREATED = "created"
    MERGED = "merged"
    CONFLICT = "conflict"


def order_state(ctx: SessionContext) -> OrderState:
    return OrderState.PENDING if ctx.pending_order is not None else OrderState.NO_ORDER


def stage_items(
    ctx: SessionContext, restaurant: Restaurant, lines: List[OrderLine]
) -> StageOutcome:
    """
    Put `lines` into the pending order for `restaurant`.

    Creates the pending order, appends to it (same restaurant) or reports a
    conflict (different restaurant, nothing changes).
    """
    if not lines:
        raise ValueError("cannot stage an order without items")

    pending = ctx.pending_order
    if pending is not None and pending.restaurant_id != restaurant.id:
        logger.info(
            "Rejecting order for %s while %s is pending (session=%s)",
            restaurant.id,
            pending.restaurant_id,
            ctx.session_id,
        )
        return StageOutcome.CONFLICT

    stamped = [_stamp(line, restaurant) for line in lines]
    if pending is None:
        ctx.pending_order = PendingOrder(
            restaurant_id=restaurant.id,
            restaurant=restaurant.name,
            items=stamped,
        )
        outcome = StageOutcome.CREATED
    else:
        pending.items.extend(stamped)
        outcome = StageOutcome.MERGED

    ctx.expected_context = ExpectedContext.CONFIRM_ORDER
    return outcome


def confirm_pending(ctx: SessionContext) -> Optional[PendingOrder]:
    """
    Fold the pending order into the cart.

    Returns the confirmed order snapshot, or None when nothing was pending.
    """
    pending = ctx.pending_order
    if pending is None:
        return None

    for line in pending.items:
        ctx.cart.items.append(copy.copy(line))
    ctx.last_order = copy.deepcopy(pending)
    ctx.pending_order = None
    if ctx.expected_context == ExpectedContext.CONFIRM_ORDER:
        ctx.expected_context = ExpectedContext.NEUTRAL
    return ctx.last_order


def cancel_pending(ctx: SessionContext) -> Optional[PendingOrder]:
    """
    Drop the pending order. The cart is never touched.
    """
    pending = ctx.pending_order
    ctx.pending_order = None
    if ctx.expected_context == ExpectedContext.CONFIRM_ORDER:
        ctx.expected_context = ExpectedContext.NEUTRAL
    return pending


def cart_summary(cart: Cart) -> List[str]:
    lines = []
    for line in cart.items:
        label = f"{line.qty}x {line.name}"
        if line.size:
            label += f" ({line.size})"
        if line.restaurant_name:
            label += f" z {line.restaurant_name}"
        lines.append(f"- {label}: {format_price(line.line_total)}")
    return lines


def format_price(amount: float) -> str:
    return f"{amount:.2f} zł"


def _stamp(line: OrderLine, restaurant: Restaurant) -> OrderLine:
    return OrderLine(
        name=line.name,
        price=line.price,
        qty=max(1, int(line.qty)),
        size=line.size,
        item_id=line.item_id,
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name,
    )
