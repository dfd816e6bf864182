# orderbrain/session_context.py
"""
SessionContext

Represents the full conversation "brain state" for a single session.

Contains:
- Identity and timestamps (session_id, created_at, last_seen_at).
- Dialogue state (expected_context, last_intent, last filters).
- The resolved restaurant context (restaurant + its menu, one value object).
- Ordering state (pending_order, cart, last_order).
- Short-term memory (capped turn history, turn count).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Deque, List, Literal, Optional, Sequence, Tuple

from .models import MenuItem, Restaurant


Role = Literal["user", "assistant"]

DEFAULT_HISTORY_MAX_TURNS = 50


class ExpectedContext(str, Enum):
    """
    What kind of follow-up the previous reply invited.

    Drives the reading of short replies like "tak" / "nie" / "pierwszą".
    """
    NEUTRAL = "neutral"
    SELECT_RESTAURANT = "select_restaurant"
    CONFIRM_MENU = "confirm_menu"
    CONFIRM_ORDER = "confirm_order"


@dataclass
class Message:
    """
    One message in the short-term history.
    """
    role: Role
    text: str
    timestamp: datetime
    intent: Optional[str] = None


@dataclass(frozen=True)
class RestaurantContext:
    """
    The currently resolved restaurant together with the menu shown for it.

    Immutable: switching restaurant means building a new object, so a menu
    can never outlive the restaurant it belongs to.
    """
    restaurant: Restaurant
    menu: Tuple[MenuItem, ...] = ()

    def with_menu(self, menu: Sequence[MenuItem]) -> "RestaurantContext":
        items = tuple(m for m in menu if m.restaurant_id == self.restaurant.id)
        return replace(self, menu=items)


@dataclass
class OrderLine:
    name: str
    price: float
    qty: int = 1
    size: Optional[str] = None
    item_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    restaurant_name: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.qty


@dataclass
class PendingOrder:
    """
    In-progress, unconfirmed order for exactly one restaurant.
    """
    restaurant_id: str
    restaurant: str
    items: List[OrderLine] = field(default_factory=list)

    @property
    def total(self) -> float:
        return round(sum(line.line_total for line in self.items), 2)


@dataclass
class Cart:
    """
    Durable accumulation of confirmed items. The total is always derived
    from the lines.
    """
    items: List[OrderLine] = field(default_factory=list)

    @property
    def total(self) -> float:
        return round(sum(line.line_total for line in self.items), 2)


@dataclass
class SessionContext:
    """
    Top-level object representing everything we know about this session.
    """
    session_id: str
    created_at: datetime
    last_seen_at: datetime

    expected_context: ExpectedContext = ExpectedContext.NEUTRAL
    last_intent: Optional[str] = None
    restaurant_context: Optional[RestaurantContext] = None
    last_restaurants: List[Restaurant] = field(default_factory=list)
    last_location: Optional[str] = None
    last_cuisine: Optional[str] = None

    pending_order: Optional[PendingOrder] = None
    cart: Cart = field(default_factory=Cart)
    last_order: Optional[PendingOrder] = None

    history: Deque[Message] = field(
        default_factory=lambda: deque(maxlen=DEFAULT_HISTORY_MAX_TURNS)
    )
    turn_count: int = 0
    last_user_message_at: Optional[datetime] = None

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------
    @classmethod
    def new(
        cls,
        *,
        session_id: str,
        created_at: datetime,
        history_max_turns: int = DEFAULT_HISTORY_MAX_TURNS,
    ) -> "SessionContext":
        return cls(
            session_id=session_id,
            created_at=created_at,
            last_seen_at=created_at,
            history=deque(maxlen=max(1, history_max_turns)),
        )

    # -------------------------------------------------------------------------
    # Restaurant context
    # -------------------------------------------------------------------------
    @property
    def last_restaurant(self) -> Optional[Restaurant]:
        if self.restaurant_context is None:
            return None
        return self.restaurant_context.restaurant

    @property
    def last_menu(self) -> Tuple[MenuItem, ...]:
        if self.restaurant_context is None:
            return ()
        return self.restaurant_context.menu

    def set_restaurant(self, restaurant: Restaurant) -> None:
        """
        Make `restaurant` the current one. The shown menu survives only when
        the restaurant does not change.
        """
        current = self.restaurant_context
        if current is not None and current.restaurant.id == restaurant.id:
            self.restaurant_context = RestaurantContext(restaurant=restaurant, menu=current.menu)
            return
        self.restaurant_context = RestaurantContext(restaurant=restaurant)

    def set_menu(self, restaurant: Restaurant, menu: Sequence[MenuItem]) -> None:
        self.restaurant_context = RestaurantContext(restaurant=restaurant).with_menu(menu)

    def clear_restaurant(self) -> None:
        self.restaurant_context = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def touch(self, now: datetime) -> None:
        self.last_seen_at = now

    def append_user_message(self, text: str, timestamp: datetime) -> None:
        """
        Add a user message to history and bump short-term counters.
        """
        self.history.append(Message(role="user", text=text, timestamp=timestamp))
        self.turn_count += 1
        self.last_user_message_at = timestamp
        self.touch(timestamp)

    def append_assistant_message(
        self, text: str, timestamp: datetime, intent: Optional[str] = None
    ) -> None:
        self.history.append(
            Message(role="assistant", text=text, timestamp=timestamp, intent=intent)
        )
        self.touch(timestamp)

    def reset_dialogue_state(self) -> None:
        """
        Return to the neutral default after an internal fault. The cart and
        history are kept.
        """
        self.pending_order = None
        self.expected_context = ExpectedContext.NEUTRAL

    def summary(self) -> dict:
        """Compact view handed to the intent classifier."""
        restaurant = self.last_restaurant
        return {
            "last_intent": self.last_intent,
            "last_restaurant": restaurant.name if restaurant else None,
            "has_pending_order": self.pending_order is not None,
            "expected_context": self.expected_context.value,
        }
