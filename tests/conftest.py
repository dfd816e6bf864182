import asyncio
from typing import List, Optional

import pytest

from orderbrain.agent_core import AgentCore
from orderbrain.catalog import CatalogIndex
from orderbrain.catalog_gateway import CatalogStore, StaticCatalogSource
from orderbrain.intent_booster import IntentBooster
from orderbrain.memory_store import MemoryStore
from orderbrain.models import Classification, MenuItem, Restaurant


RESTAURANTS = [
    Restaurant(id="r1", name="Pizzeria Monte Carlo", city="Piekary Śląskie", cuisine="Włoska", rating=4.6),
    Restaurant(id="r2", name="Burger House", city="Piekary Śląskie", cuisine="Amerykańska", rating=4.2),
    Restaurant(id="r3", name="Sajgon Bistro", city="Bytom", cuisine="Wietnamska", rating=4.4),
    Restaurant(id="r4", name="Kebab Ali", city="Bytom", cuisine="Kebab", rating=3.8),
]

MENU_ITEMS = [
    MenuItem(id="m1", restaurant_id="r1", name="Pizza Margherita", price=28.0, category="Pizze"),
    MenuItem(id="m2", restaurant_id="r1", name="Pizza Pepperoni", price=32.0, category="Pizze"),
    MenuItem(id="m3", restaurant_id="r1", name="Spaghetti Carbonara", price=30.0, category="Makarony"),
    MenuItem(id="m4", restaurant_id="r1", name="Coca-Cola", price=7.0, category="Napoje"),
    MenuItem(id="m5", restaurant_id="r2", name="Classic Burger", price=29.0),
    MenuItem(id="m6", restaurant_id="r2", name="Cheeseburger", price=31.0),
    MenuItem(id="m7", restaurant_id="r2", name="Fries", price=12.0, category="Dodatki"),
    MenuItem(id="m8", restaurant_id="r3", name="Pho Bo", price=34.0),
    MenuItem(id="m9", restaurant_id="r3", name="Sajgonki", price=18.0),
    MenuItem(id="m10", restaurant_id="r4", name="Kebab w bułce", price=25.0),
    MenuItem(id="m11", restaurant_id="r4", name="Kebab na talerzu", price=31.0, available=False),
]


class FakeClassifier:
    """Returns a fixed verdict; records what it was asked."""

    def __init__(self, intent: str = "unknown", confidence: float = 0.0) -> None:
        self.intent = intent
        self.confidence = confidence
        self.calls: List[str] = []

    async def classify(self, text, session=None) -> Classification:
        self.calls.append(text)
        return Classification(intent=self.intent, confidence=self.confidence)


class ExplodingClassifier:
    async def classify(self, text, session=None) -> Classification:
        raise RuntimeError("boom")


class RecordingOrderGateway:
    def __init__(self) -> None:
        self.orders = []

    async def submit(self, ctx, order) -> bool:
        self.orders.append(order)
        return True


@pytest.fixture
def catalog() -> CatalogIndex:
    return CatalogIndex.build(RESTAURANTS, MENU_ITEMS)


@pytest.fixture
def catalog_store(catalog) -> CatalogStore:
    return CatalogStore(StaticCatalogSource(RESTAURANTS, MENU_ITEMS), index=catalog)


def make_core(
    catalog_store: CatalogStore,
    classifier=None,
    order_gateway=None,
    store: Optional[MemoryStore] = None,
) -> AgentCore:
    return AgentCore(
        memory_store=store or MemoryStore(ttl_minutes=60, max_entries=100),
        catalog=catalog_store,
        classifier=classifier or FakeClassifier(),
        booster=IntentBooster(trust_confidence=0.8),
        order_gateway=order_gateway,
        analytics_gateway=None,
        history_max_turns=20,
        max_input_chars=1000,
    )


@pytest.fixture
def core(catalog_store) -> AgentCore:
    return make_core(catalog_store)


def run_turn(core: AgentCore, session_id: str, text: str):
    return asyncio.run(core.process_turn(session_id, text))
