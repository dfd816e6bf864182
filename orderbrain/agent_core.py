# orderbrain/agent_core.py
"""
AgentCore

This is the main "brain" of the ordering assistant.

Responsibilities:
- Validate the utterance before anything touches the session.
- Serialize turns per session (store lock) and load/create the SessionContext.
- Resolve entities (location, cuisine, restaurant, dishes, ordinal).
- Ask the LLM classifier for a provisional intent, then let the booster
  correct it with lexical rules and the expected context.
- Route to a handler that mutates the session (restaurant list, restaurant
  context, pending order, cart) and builds the reply.
- Hand confirmed orders to the order store and emit a turn event.
- Return the reply plus a serializable session snapshot.

This module does NOT:
- Deal with HTTP / FastAPI directly (that happens in app.py).
- Deal with audio (only text).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .analytics_gateway import AnalyticsGateway
from .catalog import (
    CatalogIndex,
    friendly_cuisine,
    menu_preview,
    nearby_cities,
)
from .catalog_gateway import CatalogStore
from .config import settings
from .entity_resolver import Entities, extract_entities
from .intent_booster import IntentBooster
from .intent_classifier import LLMIntentClassifier
from .memory_store import SessionStore
from .models import (
    Classification,
    IntentName,
    Restaurant,
    SessionSnapshot,
    TurnRequest,
    TurnResponse,
)
from .order_flow import (
    StageOutcome,
    cancel_pending,
    cart_summary,
    confirm_pending,
    format_price,
    stage_items,
)
from .session_context import ExpectedContext, OrderLine, PendingOrder, SessionContext
from .text_normalizer import contains_phrase, normalize
from .validation import REJECTION_REPLIES, validate_input

logger = logging.getLogger(__name__)

MAX_LISTED_RESTAURANTS = 5
MAX_RECOMMENDED = 3

CART_WORDS = ("koszyk", "koszyka", "koszyku")
GREETING_WORDS = ("czesc", "hej", "witam", "dzien dobry", "dziekuje", "dzieki", "siema")

FALLBACK_REPLY = "Coś poszło nie tak po mojej stronie. Spróbuj proszę jeszcze raz."


@dataclass
class TurnOutcome:
    """What a handler decided: the reply and the entities it surfaced."""
    reply: str
    restaurant: Optional[Restaurant] = None
    restaurants: Optional[List[Restaurant]] = None
    confirmed_order: Optional[PendingOrder] = None
    ok: bool = True


def _plural_places(n: int) -> str:
    if n == 1:
        return "miejsce"
    if 2 <= n % 10 <= 4 and not 12 <= n % 100 <= 14:
        return "miejsca"
    return "miejsc"


def _format_restaurants(restaurants: List[Restaurant]) -> List[str]:
    lines = []
    for idx, r in enumerate(restaurants, start=1):
        details = ", ".join(part for part in (r.cuisine, r.city) if part)
        lines.append(f"{idx}. {r.name}" + (f" ({details})" if details else ""))
    return lines


def _describe_lines(lines: List[OrderLine]) -> str:
    parts = []
    for line in lines:
        label = f"{line.qty}x {line.name}"
        if line.size:
            label += f" [{line.size}]"
        parts.append(f"{label} ({format_price(line.line_total)})")
    return ", ".join(parts)


class AgentCore:
    """
    The core orchestrator engine.

    You typically create this once at startup and reuse it for all requests.
    """

    def __init__(
        self,
        memory_store: SessionStore,
        catalog: CatalogStore,
        classifier: LLMIntentClassifier,
        booster: Optional[IntentBooster] = None,
        order_gateway=None,
        analytics_gateway: Optional[AnalyticsGateway] = None,
        history_max_turns: Optional[int] = None,
        max_input_chars: Optional[int] = None,
    ) -> None:
        self.memory_store = memory_store
        self.catalog = catalog
        self.classifier = classifier
        self.booster = booster or IntentBooster()
        self.order_gateway = order_gateway
        self.analytics_gateway = analytics_gateway
        self.history_max_turns = (
            settings.HISTORY_MAX_TURNS if history_max_turns is None else history_max_turns
        )
        self.max_input_chars = (
            settings.MAX_INPUT_CHARS if max_input_chars is None else max_input_chars
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    async def process_turn(self, session_id: str, text: str) -> TurnResponse:
        return await self.handle(TurnRequest(session_id=session_id, text=text))

    async def handle(self, req: TurnRequest) -> TurnResponse:
        """
        Main entrypoint for one user turn.

        Flow:
        - Reject invalid input without touching the session.
        - Under the session lock: load/create context, run the pipeline,
          save the context.
        - Outside the lock: order handoff and analytics (best-effort).
        """
        now = datetime.now(timezone.utc)

        # 1) Validate before entering the pipeline
        rejection = validate_input(req.text, self.max_input_chars)
        if rejection is not None:
            existing = self.memory_store.load(req.session_id)
            snapshot = (
                SessionSnapshot.from_ctx(existing)
                if existing is not None
                else SessionSnapshot.empty(req.session_id)
            )
            logger.info("Rejected input for session %s: %s", req.session_id, rejection)
            return TurnResponse(
                ok=False,
                intent=IntentName.UNKNOWN.value,
                reply=REJECTION_REPLIES[rejection],
                context=snapshot,
            )

        async with self.memory_store.lock_for(req.session_id):
            # 2) Resolve / create session context
            ctx = self._resolve_session(req.session_id, now)
            ctx.append_user_message(text=req.text, timestamp=now)

            classification = Classification.unknown()
            entities = Entities()
            boost_rule: Optional[str] = None
            try:
                # 3) Entities, intent, routing
                index = self.catalog.index
                entities = extract_entities(req.text, ctx, index)
                classification = await self.classifier.classify(req.text, ctx)
                intent, boost_rule = self.booster.explain(
                    req.text, classification.intent, classification.confidence, ctx
                )
                intent = self._infer_from_entities(intent, entities, ctx, req.text)
                outcome = await self._route_intent(intent, ctx, entities, index, req.text)
            except Exception:
                logger.exception("Turn failed for session %s; resetting dialogue state", req.session_id)
                ctx.reset_dialogue_state()
                intent = IntentName.UNKNOWN.value
                outcome = TurnOutcome(reply=FALLBACK_REPLY, ok=False)

            # 4) Commit
            ctx.last_intent = intent
            ctx.append_assistant_message(outcome.reply, timestamp=now, intent=intent)
            self.memory_store.save(ctx)
            snapshot = SessionSnapshot.from_ctx(ctx)

        logger.info(
            "session=%s intent=%s provisional=%s(%.2f) rule=%s",
            req.session_id,
            intent,
            classification.intent,
            classification.confidence,
            boost_rule,
        )

        # 5) Best-effort side effects
        if outcome.confirmed_order is not None and self.order_gateway is not None:
            await self.order_gateway.submit(ctx, outcome.confirmed_order)
        if self.analytics_gateway is not None:
            await self.analytics_gateway.send_turn(
                ctx=ctx,
                text=req.text,
                classification=classification,
                intent=intent,
                boost_rule=boost_rule,
                entities=entities,
                reply=outcome.reply,
                timestamp=now,
            )

        # 6) Build response
        return TurnResponse(
            ok=outcome.ok,
            intent=intent,
            reply=outcome.reply,
            restaurant=outcome.restaurant,
            restaurants=outcome.restaurants,
            context=snapshot,
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _resolve_session(self, session_id: str, now: datetime) -> SessionContext:
        """
        Either load an existing SessionContext from the store, or create a new one.
        """
        ctx = self.memory_store.load(session_id)
        if ctx is None:
            ctx = SessionContext.new(
                session_id=session_id,
                created_at=now,
                history_max_turns=self.history_max_turns,
            )
        return ctx

    def _infer_from_entities(
        self, intent: str, entities: Entities, ctx: SessionContext, text: str
    ) -> str:
        """
        Last resort when neither the classifier nor the booster could tell:
        let the resolved entities decide.
        """
        if intent != IntentName.UNKNOWN.value:
            return intent

        norm = normalize(text)
        has_restaurant = entities.restaurant is not None or ctx.last_restaurant is not None
        if entities.ordinal is not None and ctx.last_restaurants and not entities.order_cue:
            return IntentName.SELECT_RESTAURANT.value
        if entities.dishes and entities.order_cue and has_restaurant:
            return IntentName.CREATE_ORDER.value
        if entities.restaurant is not None:
            return IntentName.SELECT_RESTAURANT.value
        if entities.location or entities.cuisine:
            return IntentName.FIND_NEARBY.value
        if entities.dishes and entities.order_cue:
            return IntentName.CREATE_ORDER.value
        if any(contains_phrase(norm, w) for w in CART_WORDS):
            return IntentName.SHOW_CART.value
        if any(contains_phrase(norm, w) for w in GREETING_WORDS):
            return IntentName.SMALLTALK.value
        return intent

    async def _route_intent(
        self,
        intent: str,
        ctx: SessionContext,
        entities: Entities,
        index: CatalogIndex,
        text: str,
    ) -> TurnOutcome:
        """
        Switch on intent and call the appropriate handler.
        """
        if intent == IntentName.FIND_NEARBY.value:
            return self._handle_find_nearby(ctx, entities, index)

        elif intent == IntentName.SELECT_RESTAURANT.value:
            return self._handle_select_restaurant(ctx, entities)

        elif intent == IntentName.MENU_REQUEST.value:
            return self._handle_menu_request(ctx, entities, index)

        elif intent == IntentName.CREATE_ORDER.value:
            return self._handle_create_order(ctx, entities, index, text)

        elif intent == IntentName.CONFIRM_ORDER.value:
            return self._handle_confirm_order(ctx)

        elif intent == IntentName.CANCEL_ORDER.value:
            return self._handle_cancel_order(ctx)

        elif intent == IntentName.CHANGE_RESTAURANT.value:
            return self._handle_change_restaurant(ctx, entities, index)

        elif intent == IntentName.RECOMMEND.value:
            return self._handle_recommend(ctx, entities, index)

        elif intent == IntentName.CONFIRM.value:
            return self._handle_confirm(ctx, entities, index)

        elif intent == IntentName.SHOW_CART.value:
            return self._handle_show_cart(ctx)

        elif intent == IntentName.SMALLTALK.value:
            return TurnOutcome(
                reply=(
                    "Cześć! Mogę znaleźć restauracje w okolicy, pokazać menu "
                    "i przyjąć zamówienie. Gdzie chcesz zjeść?"
                )
            )

        return self._handle_unknown(ctx)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------
    def _handle_find_nearby(
        self, ctx: SessionContext, entities: Entities, index: CatalogIndex
    ) -> TurnOutcome:
        """
        Handler: Find Nearby

        New filters replace the remembered ones; a turn without any filter
        repeats the last search ("pokaż więcej").
        """
        location = entities.location or ctx.last_location
        # a new city starts a fresh search unless a cuisine was named too
        cuisine = entities.cuisine or (None if entities.location else ctx.last_cuisine)

        if not location and not cuisine:
            ctx.expected_context = ExpectedContext.NEUTRAL
            return TurnOutcome(
                reply="Gdzie mam szukać? Podaj miasto, np. „w Piekarach Śląskich”."
            )

        results = index.filter_by_location_and_cuisine(location, cuisine)
        friendly = friendly_cuisine(cuisine)
        note = ""
        if not results and cuisine and location:
            results = index.filter_by_location_and_cuisine(location, None)
            if results:
                note = f"Nie mam {friendly or cuisine} w tej okolicy, ale są inne miejsca.\n"
                cuisine = None
                friendly = None

        ctx.last_location = location
        ctx.last_cuisine = cuisine
        if not results:
            ctx.last_restaurants = []
            ctx.expected_context = ExpectedContext.NEUTRAL
            reply = f"Nie znalazłam restauracji ({location or friendly or cuisine})."
            suggestions = nearby_cities(location)
            if suggestions:
                reply += f" Może sprawdzimy: {', '.join(suggestions)}?"
            return TurnOutcome(reply=reply)

        shown = results[:MAX_LISTED_RESTAURANTS]
        ctx.last_restaurants = list(shown)
        ctx.expected_context = ExpectedContext.SELECT_RESTAURANT

        header = f"Mam {len(results)} {_plural_places(len(results))}"
        if friendly:
            header += f" ({friendly})"
        if location:
            header += f", okolica: {location}"
        lines = [note + header + ":"]
        lines.extend(_format_restaurants(shown))
        lines.append("Które Cię interesuje?")
        return TurnOutcome(reply="\n".join(lines), restaurants=list(shown))

    def _handle_select_restaurant(self, ctx: SessionContext, entities: Entities) -> TurnOutcome:
        """
        Handler: Select Restaurant

        Ordinal first (against the last shown list), then an explicit name,
        then the only option on the list.
        """
        choices = ctx.last_restaurants
        restaurant: Optional[Restaurant] = None

        if entities.ordinal is not None and choices:
            pos = entities.ordinal - 1
            if not 0 <= pos < len(choices):
                ctx.expected_context = ExpectedContext.SELECT_RESTAURANT
                return TurnOutcome(
                    reply=f"Na liście mam tylko {len(choices)}. Wybierz numer od 1 do {len(choices)}.",
                    restaurants=list(choices),
                )
            restaurant = choices[pos]
        elif entities.restaurant is not None:
            restaurant = entities.restaurant
        elif entities.restaurant_phrase:
            return self._restaurant_not_found(ctx, entities.restaurant_phrase)
        elif len(choices) == 1:
            restaurant = choices[0]

        if restaurant is None:
            if choices:
                ctx.expected_context = ExpectedContext.SELECT_RESTAURANT
                lines = ["Którą restaurację wybierasz?"] + _format_restaurants(choices)
                return TurnOutcome(reply="\n".join(lines), restaurants=list(choices))
            return TurnOutcome(reply="Którą restaurację masz na myśli? Podaj nazwę albo miasto.")

        ctx.set_restaurant(restaurant)
        ctx.expected_context = ExpectedContext.CONFIRM_MENU
        where = f" ({restaurant.city})" if restaurant.city else ""
        return TurnOutcome(
            reply=f"Wybrano {restaurant.name}{where}. Pokazać menu?",
            restaurant=restaurant,
        )

    def _handle_menu_request(
        self, ctx: SessionContext, entities: Entities, index: CatalogIndex
    ) -> TurnOutcome:
        """
        Handler: Menu Request

        A named restaurant wins; a bare "pokaż menu" uses the session's
        restaurant. The shown menu is stored with its restaurant.
        """
        restaurant = entities.restaurant
        if restaurant is None and entities.restaurant_phrase:
            return self._restaurant_not_found(ctx, entities.restaurant_phrase)
        if restaurant is None and entities.ordinal is not None and ctx.last_restaurants:
            pos = entities.ordinal - 1
            if 0 <= pos < len(ctx.last_restaurants):
                restaurant = ctx.last_restaurants[pos]
        restaurant = restaurant or ctx.last_restaurant

        if restaurant is None:
            return self._ask_for_restaurant(ctx, "Najpierw wybierz restaurację, a pokażę menu.")

        menu = index.menu_for(restaurant.id)
        ctx.set_menu(restaurant, menu)
        ctx.expected_context = ExpectedContext.NEUTRAL
        if not menu:
            return TurnOutcome(
                reply=f"W {restaurant.name} nie mam teraz dostępnych pozycji menu.",
                restaurant=restaurant,
            )

        lines = [f"W {restaurant.name} dostępne m.in.:"]
        for item in menu_preview(menu):
            lines.append(f"- {item.name} ({format_price(item.price)})")
        lines.append("Co zamawiasz?")
        return TurnOutcome(reply="\n".join(lines), restaurant=restaurant)

    def _handle_create_order(
        self, ctx: SessionContext, entities: Entities, index: CatalogIndex, text: str
    ) -> TurnOutcome:
        """
        Handler: Create Order

        Steps:
        - Resolve the restaurant (named, else the session's).
        - Resolve dishes against that restaurant's current menu.
        - Stage them into the pending order (create / merge / conflict).
        - Ask for confirmation.
        """
        restaurant = entities.restaurant
        if restaurant is None and entities.restaurant_phrase and ctx.last_restaurant is None:
            return self._restaurant_not_found(ctx, entities.restaurant_phrase)
        restaurant = restaurant or ctx.last_restaurant

        if restaurant is None:
            return self._ask_for_restaurant(
                ctx, "Najpierw wybierz restaurację, zanim złożysz zamówienie."
            )

        lines, missing = self._resolve_order_lines(index, restaurant, entities, text)
        if not lines:
            menu = index.menu_for(restaurant.id)
            ctx.set_menu(restaurant, menu)
            if missing:
                reply = f"Nie znalazłam „{', '.join(missing)}” w menu {restaurant.name}."
            else:
                reply = f"Co chcesz zamówić z {restaurant.name}?"
            preview = menu_preview(menu)
            if preview:
                reply += " Mamy m.in.: " + ", ".join(m.name for m in preview) + "."
            return TurnOutcome(reply=reply, restaurant=restaurant)

        outcome = stage_items(ctx, restaurant, lines)
        if outcome == StageOutcome.CONFLICT:
            pending = ctx.pending_order
            return TurnOutcome(
                reply=(
                    f"Masz już niepotwierdzone zamówienie z {pending.restaurant}. "
                    f"Potwierdź je albo anuluj, zanim zamówisz z {restaurant.name}."
                ),
                restaurant=ctx.last_restaurant,
            )

        ctx.set_restaurant(restaurant)
        pending = ctx.pending_order
        prefix = "Dopisuję do zamówienia: " if outcome == StageOutcome.MERGED else "Rozumiem: "
        reply = (
            f"{prefix}{_describe_lines(lines)}. "
            f"Razem {format_price(pending.total)}. Dodać do koszyka?"
        )
        if missing:
            reply += f" Nie znalazłam w menu: {', '.join(missing)}."
        return TurnOutcome(reply=reply, restaurant=restaurant)

    def _resolve_order_lines(
        self,
        index: CatalogIndex,
        restaurant: Restaurant,
        entities: Entities,
        text: str,
    ) -> Tuple[List[OrderLine], List[str]]:
        lines: List[OrderLine] = []
        missing: List[str] = []
        for mention in entities.dishes:
            item = index.find_menu_item_by_name(restaurant.id, mention.name)
            if item is None:
                missing.append(mention.name)
                continue
            lines.append(
                OrderLine(
                    name=item.name,
                    price=item.price,
                    qty=mention.qty,
                    size=mention.size,
                    item_id=item.id,
                )
            )
        if lines:
            return lines, missing

        # nothing parsed cleanly: look for full dish names anywhere in the text
        found = index.find_menu_items_in_text(restaurant.id, text)
        if not found:
            return [], missing
        qty = entities.dishes[0].qty if len(entities.dishes) == 1 and len(found) == 1 else 1
        for item in found:
            lines.append(
                OrderLine(
                    name=item.name,
                    price=item.price,
                    qty=qty,
                    size=entities.size,
                    item_id=item.id,
                )
            )
        return lines, []

    def _handle_confirm_order(self, ctx: SessionContext) -> TurnOutcome:
        """
        Handler: Confirm Order (PENDING -> cart)
        """
        if ctx.pending_order is None:
            if ctx.expected_context == ExpectedContext.CONFIRM_ORDER:
                ctx.expected_context = ExpectedContext.NEUTRAL
            return TurnOutcome(reply="Nie ma nic do potwierdzenia. Co chcesz zamówić?")

        order = confirm_pending(ctx)
        return TurnOutcome(
            reply=(
                f"Dodałam do koszyka: {_describe_lines(order.items)}. "
                f"W koszyku masz teraz {format_price(ctx.cart.total)}."
            ),
            restaurant=ctx.last_restaurant,
            confirmed_order=order,
        )

    def _handle_cancel_order(self, ctx: SessionContext) -> TurnOutcome:
        """
        Handler: Cancel Order (PENDING -> dropped). The cart is untouched.
        """
        dropped = cancel_pending(ctx)
        if dropped is None:
            return TurnOutcome(reply="Nie ma żadnego zamówienia do anulowania.")
        reply = f"Anulowałam zamówienie z {dropped.restaurant}."
        if ctx.cart.items:
            reply += f" Koszyk bez zmian ({format_price(ctx.cart.total)})."
        return TurnOutcome(reply=reply)

    def _handle_change_restaurant(
        self, ctx: SessionContext, entities: Entities, index: CatalogIndex
    ) -> TurnOutcome:
        """
        Handler: Change Restaurant

        Drops the unconfirmed order and the current restaurant, then offers
        the other places in the same area.
        """
        dropped = cancel_pending(ctx)
        current = ctx.last_restaurant
        ctx.clear_restaurant()
        prefix = f"Anulowałam niepotwierdzone zamówienie z {dropped.restaurant}. " if dropped else ""

        location = entities.location or ctx.last_location
        if location:
            options = [
                r
                for r in index.filter_by_location_and_cuisine(location, entities.cuisine)
                if current is None or r.id != current.id
            ][:MAX_LISTED_RESTAURANTS]
            if options:
                ctx.last_restaurants = options
                ctx.last_location = location
                ctx.expected_context = ExpectedContext.SELECT_RESTAURANT
                lines = [f"{prefix}Jasne, inne miejsca (okolica: {location}):"]
                lines.extend(_format_restaurants(options))
                lines.append("Które wybierasz?")
                return TurnOutcome(reply="\n".join(lines), restaurants=options)

        ctx.expected_context = ExpectedContext.NEUTRAL
        return TurnOutcome(reply=f"{prefix}Jasne. W jakim mieście mam poszukać innej restauracji?")

    def _handle_recommend(
        self, ctx: SessionContext, entities: Entities, index: CatalogIndex
    ) -> TurnOutcome:
        """
        Handler: Recommend. Best rated places for the current filters.
        """
        location = entities.location or ctx.last_location
        cuisine = entities.cuisine or ctx.last_cuisine
        candidates = index.filter_by_location_and_cuisine(location, cuisine)
        if not candidates and cuisine:
            candidates = index.filter_by_location_and_cuisine(location, None)
        if not candidates:
            return TurnOutcome(
                reply="Nie mam jeszcze czego polecić. W jakim mieście szukasz jedzenia?"
            )

        ranked = sorted(candidates, key=lambda r: -(r.rating or 0.0))[:MAX_RECOMMENDED]
        ctx.last_restaurants = ranked
        if location:
            ctx.last_location = location
        ctx.expected_context = ExpectedContext.SELECT_RESTAURANT

        lines = ["Polecam:"]
        for idx, r in enumerate(ranked, start=1):
            rating = f", ocena {r.rating:.1f}" if r.rating is not None else ""
            lines.append(f"{idx}. {r.name} ({r.cuisine}{rating})")
        lines.append("Która Cię interesuje?")
        return TurnOutcome(reply="\n".join(lines), restaurants=ranked)

    def _handle_confirm(
        self, ctx: SessionContext, entities: Entities, index: CatalogIndex
    ) -> TurnOutcome:
        """
        Handler: bare "tak" with nothing specific expected. Continue the most
        recent thread.
        """
        if ctx.pending_order is not None:
            return self._handle_confirm_order(ctx)
        if ctx.last_restaurant is not None:
            return self._handle_menu_request(ctx, Entities(), index)
        if ctx.last_location:
            return self._handle_find_nearby(ctx, entities, index)
        return TurnOutcome(
            reply="Okej! Co robimy dalej? Mogę poszukać restauracji albo pokazać menu."
        )

    def _handle_show_cart(self, ctx: SessionContext) -> TurnOutcome:
        if not ctx.cart.items:
            reply = "Koszyk jest pusty."
            if ctx.pending_order is not None:
                reply += f" Czeka niepotwierdzone zamówienie z {ctx.pending_order.restaurant}."
            return TurnOutcome(reply=reply)
        lines = ["W koszyku:"] + cart_summary(ctx.cart)
        lines.append(f"Razem: {format_price(ctx.cart.total)}")
        return TurnOutcome(reply="\n".join(lines))

    def _handle_unknown(self, ctx: SessionContext) -> TurnOutcome:
        restaurant = ctx.last_restaurant
        if restaurant is not None:
            ctx.expected_context = ExpectedContext.CONFIRM_MENU
            return TurnOutcome(
                reply=f"Nie jestem pewna, o co chodzi. Pokazać menu {restaurant.name}?",
                restaurant=restaurant,
            )
        if ctx.last_location:
            return TurnOutcome(
                reply=(
                    "Nie jestem pewna, o co chodzi. Powiedz „tak”, a pokażę restauracje "
                    f"(okolica: {ctx.last_location})."
                )
            )
        return TurnOutcome(
            reply=(
                "Nie jestem pewna, co masz na myśli. Możesz powiedzieć np. "
                "„gdzie zjeść w Bytomiu” albo „pokaż menu”."
            )
        )

    # -------------------------------------------------------------------------
    # Clarifications
    # -------------------------------------------------------------------------
    def _restaurant_not_found(self, ctx: SessionContext, phrase: str) -> TurnOutcome:
        reply = f"Nie znalazłam restauracji o nazwie „{phrase}”."
        if ctx.last_restaurants:
            ctx.expected_context = ExpectedContext.SELECT_RESTAURANT
            lines = [reply + " Może któraś z tych?"] + _format_restaurants(ctx.last_restaurants)
            return TurnOutcome(reply="\n".join(lines), restaurants=list(ctx.last_restaurants))
        return TurnOutcome(reply=reply + " Podaj proszę inną nazwę albo miasto.")

    def _ask_for_restaurant(self, ctx: SessionContext, reply: str) -> TurnOutcome:
        if ctx.last_restaurants:
            ctx.expected_context = ExpectedContext.SELECT_RESTAURANT
            lines = [reply] + _format_restaurants(ctx.last_restaurants)
            return TurnOutcome(reply="\n".join(lines), restaurants=list(ctx.last_restaurants))
        return TurnOutcome(reply=reply + " Powiedz np. „gdzie zjeść w Bytomiu”.")
