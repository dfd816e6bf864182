# orderbrain/intent_classifier.py
"""
LLM Intent Classifier

Wraps the probabilistic intent source (an OpenAI model) behind a small
contract:

    classify(text, session) -> Classification(intent, confidence)

The call runs under a hard time budget. Timeouts, API errors, malformed
JSON and unknown labels all come back as `unknown` with confidence 0, and
confidences under the threshold are coerced to `unknown`, so the rule-based
booster downstream always gets a usable verdict.

We keep this layer separate so you can:
- Swap models
- Change prompts
- Unit-test routing logic with a fake client
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from .config import settings
from .models import Classification, IntentName
from .session_context import SessionContext

logger = logging.getLogger(__name__)

KNOWN_INTENTS = {i.value for i in IntentName}

# labels the model tends to produce -> canonical intent
INTENT_ALIASES: Dict[str, str] = {
    "show_menu": IntentName.MENU_REQUEST.value,
    "get_menu": IntentName.MENU_REQUEST.value,
    "menu": IntentName.MENU_REQUEST.value,
    "add_to_cart": IntentName.CREATE_ORDER.value,
    "place_order": IntentName.CREATE_ORDER.value,
    "order": IntentName.CREATE_ORDER.value,
    "nearby": IntentName.FIND_NEARBY.value,
    "search_restaurants": IntentName.FIND_NEARBY.value,
    "chitchat": IntentName.SMALLTALK.value,
    "greeting": IntentName.SMALLTALK.value,
    "cart": IntentName.SHOW_CART.value,
    "none": IntentName.UNKNOWN.value,
}

SYSTEM_PROMPT = """
Jesteś klasyfikatorem intencji asystenta zamawiania jedzenia (język polski).
Zwróć WYŁĄCZNIE obiekt JSON: {"intent": "<intent>", "confidence": <0..1>}.

Dozwolone intencje:
- find_nearby        : szukanie restauracji (miasto, kuchnia, "gdzie zjeść")
- menu_request       : prośba o menu / kartę
- select_restaurant  : wybór restauracji z listy lub po nazwie
- create_order       : zamawianie konkretnych dań
- confirm_order      : potwierdzenie zamówienia
- cancel_order       : anulowanie zamówienia
- change_restaurant  : prośba o inną restaurację
- recommend          : prośba o polecenie
- show_cart          : pytanie o koszyk
- smalltalk          : powitanie, podziękowanie, rozmowa
- unknown            : wszystko inne
""".strip()


class LLMIntentClassifier:
    """
    Uses the OpenAI Responses API to turn an utterance into a provisional
    (intent, confidence) pair.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        timeout_s: Optional[float] = None,
        min_confidence: Optional[float] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        self.enabled = settings.LLM_ENABLED if enabled is None else enabled
        if client is None and self.enabled and settings.OPENAI_API_KEY:
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client
        self.model = model or settings.LLM_ROUTER_MODEL
        self.timeout_s = settings.CLASSIFIER_TIMEOUT_S if timeout_s is None else timeout_s
        self.min_confidence = (
            settings.CLASSIFIER_MIN_CONFIDENCE if min_confidence is None else min_confidence
        )

    async def classify(self, text: str, session: Optional[SessionContext] = None) -> Classification:
        if not self.enabled or self.client is None:
            return Classification.unknown()

        summary = session.summary() if session is not None else {}
        try:
            resp = await asyncio.wait_for(self._call(text, summary), timeout=self.timeout_s)
            content = resp.output_text
        except asyncio.TimeoutError:
            logger.warning("Intent classifier timed out after %.1fs", self.timeout_s)
            return Classification.unknown()
        except Exception as exc:
            # Any provider failure degrades to rule-based detection
            logger.warning("Intent classifier failed: %s", exc)
            return Classification.unknown()

        return self.parse(content)

    async def _call(self, text: str, summary: Dict[str, Any]):
        return await self.client.responses.create(
            model=self.model,
            input=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Kontekst sesji: {json.dumps(summary, ensure_ascii=False)}\n\n"
                               f"Użytkownik: {text}",
                },
            ],
        )

    def parse(self, content: Optional[str]) -> Classification:
        """
        Turn the model's raw text into a trusted Classification.
        """
        try:
            data = json.loads(content or "")
        except (TypeError, ValueError):
            logger.warning("Intent classifier returned non-JSON payload")
            return Classification.unknown()
        if not isinstance(data, dict):
            return Classification.unknown()

        intent = str(data.get("intent") or "unknown").lower().strip()
        intent = INTENT_ALIASES.get(intent, intent)
        if intent not in KNOWN_INTENTS:
            logger.debug("Unknown intent label from model: %r", intent)
            return Classification.unknown()

        try:
            confidence = float(data.get("confidence", 0.0))
        except (TypeError, ValueError):
            return Classification.unknown()
        confidence = min(1.0, max(0.0, confidence))

        if confidence < self.min_confidence:
            return Classification(intent=IntentName.UNKNOWN.value, confidence=confidence)
        return Classification(intent=intent, confidence=confidence)
