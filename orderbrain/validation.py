# orderbrain/validation.py
"""Input checks run before a turn enters the pipeline."""

from __future__ import annotations

import re
from typing import Optional

from .config import settings

FORBIDDEN_CHARS_RE = re.compile(r"[<>{}\[\]\\|`~]")

EMPTY = "empty"
TOO_LONG = "too_long"
FORBIDDEN_CHARS = "forbidden_chars"

REJECTION_REPLIES = {
    EMPTY: "Nie usłyszałam żadnego tekstu. Powiedz proszę, czego szukasz.",
    TOO_LONG: "To trochę za długa wiadomość. Spróbuj proszę krócej.",
    FORBIDDEN_CHARS: "Wiadomość zawiera niedozwolone znaki. Spróbuj proszę inaczej.",
}


def validate_input(text: Optional[str], max_chars: Optional[int] = None) -> Optional[str]:
    """
    Returns a rejection code, or None when the text can be processed.
    """
    limit = settings.MAX_INPUT_CHARS if max_chars is None else max_chars
    if text is None or not str(text).strip():
        return EMPTY
    if len(text) > limit:
        return TOO_LONG
    if FORBIDDEN_CHARS_RE.search(text):
        return FORBIDDEN_CHARS
    return None
