# app.py
"""
FastAPI entrypoint for the ordering brain.

Exposes:
- POST /brain            → one conversational turn
- POST /catalog/refresh  → reload the restaurant/menu snapshot now
- GET  /health           → simple health check

Designed to be:
- A thin transport layer (all dialogue logic lives in AgentCore)
- Stateless across requests (state kept in MemoryStore)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from orderbrain.agent_core import AgentCore
from orderbrain.analytics_gateway import AnalyticsGateway
from orderbrain.catalog_gateway import REFRESH_ERRORS, CatalogStore, source_from_settings
from orderbrain.config import settings
from orderbrain.intent_booster import IntentBooster
from orderbrain.intent_classifier import LLMIntentClassifier
from orderbrain.memory_store import MemoryStore
from orderbrain.models import TurnRequest, TurnResponse
from orderbrain.order_gateway import OrderGateway

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("orderbrain.app")

# ---------------------------------------------------------------------------
# Dependencies wiring
# ---------------------------------------------------------------------------

# Shared in-process singletons
memory_store = MemoryStore()
catalog_store = CatalogStore(source_from_settings())
classifier = LLMIntentClassifier()
booster = IntentBooster()
order_gateway = OrderGateway()
analytics_gateway = AnalyticsGateway()

agent_core = AgentCore(
    memory_store=memory_store,
    catalog=catalog_store,
    classifier=classifier,
    booster=booster,
    order_gateway=order_gateway,
    analytics_gateway=analytics_gateway,
)


async def _maintenance_loop() -> None:
    """
    Periodic catalog refresh plus expired-session sweep.
    """
    while True:
        await asyncio.sleep(max(1, settings.CATALOG_REFRESH_SECONDS))
        await catalog_store.refresh_if_stale()
        memory_store.purge_expired()


@asynccontextmanager
async def lifespan(_: FastAPI):
    try:
        await catalog_store.refresh()
    except REFRESH_ERRORS as exc:
        logger.warning("Initial catalog load failed, starting empty: %s", exc)

    task = asyncio.create_task(_maintenance_loop())
    try:
        yield
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="OrderBrain", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health() -> dict:
    """
    Simple health endpoint for uptime checks.
    """
    index = catalog_store.index
    return {
        "status": "ok",
        "service": "orderbrain",
        "restaurants": len(index.restaurants),
        "sessions": len(memory_store),
    }


@app.post("/brain", response_model=TurnResponse)
async def brain(req: TurnRequest) -> TurnResponse:
    """
    One conversational turn.

    The voice client sends:
    {
      "session_id": "some-conversation-id",
      "text": "user's message from STT"
    }
    """
    return await agent_core.handle(req)


@app.post("/catalog/refresh")
async def refresh_catalog() -> dict:
    try:
        index = await catalog_store.refresh()
    except REFRESH_ERRORS as exc:
        logger.warning("Manual catalog refresh failed: %s", exc)
        raise HTTPException(status_code=502, detail="Catalog source unavailable")
    return {
        "status": "ok",
        "restaurants": len(index.restaurants),
        "menu_items": len(index.menu_items),
    }


# For local dev convenience:
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
