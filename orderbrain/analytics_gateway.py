# orderbrain/analytics_gateway.py
"""
Analytics Gateway

Sends turn-level events to a webhook:
- session info
- provisional and final intent, with the boost rule that fired
- user_text / reply
- extracted entities
- pending order / cart snapshot

This enables tracing misclassified turns back to one specific rule.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from .config import settings
from .entity_resolver import Entities
from .models import Classification
from .session_context import SessionContext

logger = logging.getLogger(__name__)


class AnalyticsGateway:
    def __init__(self, url: Optional[str] = None, timeout: float = 5.0) -> None:
        self.analytics_url = settings.ANALYTICS_WEBHOOK_URL if url is None else url
        self.timeout = timeout

    async def send_turn(
        self,
        *,
        ctx: SessionContext,
        text: str,
        classification: Classification,
        intent: str,
        boost_rule: Optional[str],
        entities: Entities,
        reply: str,
        timestamp: datetime,
    ) -> None:
        if not self.analytics_url:
            return

        pending = ctx.pending_order
        payload: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(),
            "session_id": ctx.session_id,
            "turn": {
                "number": ctx.turn_count,
                "user_text": text,
                "reply": reply,
                "expected_context": ctx.expected_context.value,
            },
            "intent": {
                "provisional": classification.intent,
                "confidence": classification.confidence,
                "final": intent,
                "boost_rule": boost_rule,
            },
            "entities": entities.as_dict(),
            "order_snapshot": {
                "pending_restaurant": pending.restaurant if pending else None,
                "pending_items": len(pending.items) if pending else 0,
                "cart_total": ctx.cart.total,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                await client.post(self.analytics_url, json=payload)
        except httpx.HTTPError as exc:
            logger.debug("Analytics event dropped: %s", exc)
