# orderbrain/catalog_gateway.py
"""
Catalog Gateway

Loads restaurants and menu items from the external store and keeps the
current `CatalogIndex` snapshot.

- HttpCatalogSource  : GET {base}/restaurants, GET {base}/restaurants/{id}/menu
- StaticCatalogSource: fixed lists (local dev, tests, JSON seed file)
- CatalogStore       : builds a fresh index from a source and swaps the
                       reference, so readers see either the old or the new
                       snapshot, never a half-built one.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

import httpx

from .catalog import CatalogIndex
from .config import settings
from .models import MenuItem, Restaurant

logger = logging.getLogger(__name__)

# transport failures plus payloads that do not parse into catalog records
REFRESH_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


class CatalogSource(Protocol):
    async def list_restaurants(self) -> List[Restaurant]:
        ...

    async def list_menu_items(self, restaurant_id: str) -> List[MenuItem]:
        ...


def _rows(data: Any, *keys: str) -> List[Dict[str, Any]]:
    """Accept either a bare JSON list or {"<key>": [...]}."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            rows = data.get(key)
            if isinstance(rows, list):
                return rows
    return []


def _restaurant(row: Dict[str, Any]) -> Restaurant:
    return Restaurant(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        city=str(row.get("city") or ""),
        cuisine=str(row.get("cuisine_type") or row.get("cuisine") or ""),
        address=row.get("address"),
        rating=float(row["rating"]) if row.get("rating") is not None else None,
    )


def _menu_item(row: Dict[str, Any], restaurant_id: str) -> MenuItem:
    price = row.get("price_pln", row.get("price", 0))
    return MenuItem(
        id=str(row["id"]),
        restaurant_id=str(row.get("restaurant_id") or restaurant_id),
        name=str(row.get("name") or ""),
        price=float(price or 0),
        available=bool(row.get("available", True)),
        category=row.get("category"),
    )


class HttpCatalogSource:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0) -> None:
        self.base_url = (base_url if base_url is not None else settings.CATALOG_BASE_URL).rstrip("/")
        self.timeout = timeout

    async def _get(self, path: str) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(f"{self.base_url}{path}")
            resp.raise_for_status()
            return resp.json()

    async def list_restaurants(self) -> List[Restaurant]:
        data = await self._get("/restaurants")
        return [_restaurant(row) for row in _rows(data, "restaurants", "data")]

    async def list_menu_items(self, restaurant_id: str) -> List[MenuItem]:
        data = await self._get(f"/restaurants/{restaurant_id}/menu")
        return [_menu_item(row, restaurant_id) for row in _rows(data, "menu", "items", "data")]


class StaticCatalogSource:
    def __init__(
        self,
        restaurants: Iterable[Restaurant] = (),
        menu_items: Iterable[MenuItem] = (),
    ) -> None:
        self.restaurants = list(restaurants)
        self.menu_items = list(menu_items)

    @classmethod
    def from_json(cls, path: str) -> "StaticCatalogSource":
        """
        Seed file shape: {"restaurants": [...], "menu_items": [...]}.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        restaurants = [_restaurant(row) for row in _rows(data, "restaurants")]
        items = [
            _menu_item(row, str(row.get("restaurant_id", "")))
            for row in _rows(data, "menu_items", "menu")
        ]
        return cls(restaurants, items)

    async def list_restaurants(self) -> List[Restaurant]:
        return list(self.restaurants)

    async def list_menu_items(self, restaurant_id: str) -> List[MenuItem]:
        return [m for m in self.menu_items if m.restaurant_id == restaurant_id]


def source_from_settings() -> CatalogSource:
    if settings.CATALOG_BASE_URL:
        return HttpCatalogSource()
    if settings.CATALOG_SEED_PATH:
        return StaticCatalogSource.from_json(settings.CATALOG_SEED_PATH)
    logger.warning("No catalog source configured; starting with an empty catalog")
    return StaticCatalogSource()


class CatalogStore:
    """
    Holder of the current catalog snapshot.
    """

    def __init__(
        self,
        source: CatalogSource,
        refresh_seconds: Optional[int] = None,
        index: Optional[CatalogIndex] = None,
    ) -> None:
        self.source = source
        self.refresh_seconds = (
            settings.CATALOG_REFRESH_SECONDS if refresh_seconds is None else refresh_seconds
        )
        self._index = index or CatalogIndex()
        self._refreshed_at: Optional[float] = None if index is None else time.monotonic()
        self._refresh_lock = asyncio.Lock()

    @property
    def index(self) -> CatalogIndex:
        return self._index

    @property
    def is_stale(self) -> bool:
        if self._refreshed_at is None:
            return True
        return time.monotonic() - self._refreshed_at > self.refresh_seconds

    async def refresh(self) -> CatalogIndex:
        """
        Reload everything from the source and swap the snapshot.

        On failure the previous snapshot stays in place and the error
        propagates to the caller.
        """
        async with self._refresh_lock:
            restaurants = await self.source.list_restaurants()
            menus = await asyncio.gather(
                *(self.source.list_menu_items(r.id) for r in restaurants)
            )
            items = [item for menu in menus for item in menu]
            self._index = CatalogIndex.build(restaurants, items)
            self._refreshed_at = time.monotonic()
            logger.info(
                "Catalog refreshed: %d restaurants, %d menu items", len(restaurants), len(items)
            )
            return self._index

    async def refresh_if_stale(self) -> CatalogIndex:
        if not self.is_stale:
            return self._index
        try:
            return await self.refresh()
        except REFRESH_ERRORS as exc:
            logger.warning("Catalog refresh failed, keeping previous snapshot: %s", exc)
            return self._index
