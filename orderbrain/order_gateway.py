# orderbrain/order_gateway.py
"""
Order Gateway

Hands a confirmed order to the external order store (webhook).

The session is not the system of record for orders; this call is
"best-effort" and must NOT affect the conversation if it fails.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from .config import settings
from .session_context import PendingOrder, SessionContext

logger = logging.getLogger(__name__)


class OrderGateway:
    def __init__(self, url: Optional[str] = None, timeout: float = 10.0) -> None:
        self.url = settings.ORDER_WEBHOOK_URL if url is None else url
        self.timeout = timeout

    async def submit(self, ctx: SessionContext, order: PendingOrder) -> bool:
        if not self.url:
            # Integration not configured
            return False

        payload = {
            "session_id": ctx.session_id,
            "restaurant_id": order.restaurant_id,
            "restaurant": order.restaurant,
            "items": [
                {
                    "menu_item_id": line.item_id,
                    "name": line.name,
                    "price": line.price,
                    "qty": line.qty,
                    "size": line.size,
                }
                for line in order.items
            ],
            "total": order.total,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Order handoff failed for session %s: %s", ctx.session_id, exc)
            return False
        return True
