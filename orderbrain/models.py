# orderbrain/models.py
"""
Pydantic models for catalog records, the turn request/response contract and
the serializable session snapshot returned with every turn.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IntentName(str, Enum):
    FIND_NEARBY = "find_nearby"
    MENU_REQUEST = "menu_request"
    SELECT_RESTAURANT = "select_restaurant"
    CREATE_ORDER = "create_order"
    CONFIRM_ORDER = "confirm_order"
    CANCEL_ORDER = "cancel_order"
    CHANGE_RESTAURANT = "change_restaurant"
    RECOMMEND = "recommend"
    CONFIRM = "confirm"
    SHOW_CART = "show_cart"
    SMALLTALK = "smalltalk"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Catalog records (owned by the external store, read-only here)
# ---------------------------------------------------------------------------

class Restaurant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    city: str = ""
    cuisine: str = ""
    address: Optional[str] = None
    rating: Optional[float] = None


class MenuItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    restaurant_id: str
    name: str
    price: float
    available: bool = True
    category: Optional[str] = None


# ---------------------------------------------------------------------------
# Classifier contract
# ---------------------------------------------------------------------------

class Classification(BaseModel):
    """
    Provisional verdict of the probabilistic intent source.

    `confidence` is in [0, 1]; anything the adapter could not trust is
    reported as intent "unknown" with confidence 0.
    """
    intent: str = IntentName.UNKNOWN.value
    confidence: float = 0.0
    slots: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def unknown(cls) -> "Classification":
        return cls(intent=IntentName.UNKNOWN.value, confidence=0.0)


# ---------------------------------------------------------------------------
# Turn contract
# ---------------------------------------------------------------------------

class TurnRequest(BaseModel):
    """
    Incoming payload from the voice/text client.
    """
    session_id: str = Field(..., description="Opaque conversation identifier controlled by client")
    text: str = Field("", description="User utterance (STT transcript or typed text)")


class OrderLineView(BaseModel):
    name: str
    price: float
    qty: int
    size: Optional[str] = None
    item_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    restaurant_name: Optional[str] = None


class PendingOrderView(BaseModel):
    restaurant_id: str
    restaurant: str
    items: List[OrderLineView]
    total: float


class CartView(BaseModel):
    items: List[OrderLineView] = Field(default_factory=list)
    total: float = 0.0


class SessionSnapshot(BaseModel):
    """
    Serializable projection of the session, returned with every turn.
    """
    session_id: str
    expected_context: str = "neutral"
    last_intent: Optional[str] = None
    last_restaurant: Optional[Restaurant] = None
    last_restaurants: List[Restaurant] = Field(default_factory=list)
    last_location: Optional[str] = None
    last_cuisine: Optional[str] = None
    last_menu: List[MenuItem] = Field(default_factory=list)
    pending_order: Optional[PendingOrderView] = None
    cart: CartView = Field(default_factory=CartView)
    last_order: Optional[PendingOrderView] = None
    turn_count: int = 0
    last_user_message_at: Optional[datetime] = None

    @classmethod
    def empty(cls, session_id: str) -> "SessionSnapshot":
        return cls(session_id=session_id)

    @classmethod
    def from_ctx(cls, ctx) -> "SessionSnapshot":
        return cls(
            session_id=ctx.session_id,
            expected_context=ctx.expected_context.value,
            last_intent=ctx.last_intent,
            last_restaurant=ctx.last_restaurant,
            last_restaurants=list(ctx.last_restaurants),
            last_location=ctx.last_location,
            last_cuisine=ctx.last_cuisine,
            last_menu=list(ctx.last_menu),
            pending_order=_order_view(ctx.pending_order),
            cart=CartView(
                items=[_line_view(line) for line in ctx.cart.items],
                total=ctx.cart.total,
            ),
            last_order=_order_view(ctx.last_order),
            turn_count=ctx.turn_count,
            last_user_message_at=ctx.last_user_message_at,
        )


class TurnResponse(BaseModel):
    """
    Outgoing payload: the reply plus the structured outcome of the turn.
    """
    ok: bool = True
    intent: str
    reply: str
    restaurant: Optional[Restaurant] = None
    restaurants: Optional[List[Restaurant]] = None
    context: SessionSnapshot


def _line_view(line) -> OrderLineView:
    return OrderLineView(
        name=line.name,
        price=line.price,
        qty=line.qty,
        size=line.size,
        item_id=line.item_id,
        restaurant_id=line.restaurant_id,
        restaurant_name=line.restaurant_name,
    )


def _order_view(order) -> Optional[PendingOrderView]:
    if order is None:
        return None
    return PendingOrderView(
        restaurant_id=order.restaurant_id,
        restaurant=order.restaurant,
        items=[_line_view(line) for line in order.items],
        total=order.total,
    )
