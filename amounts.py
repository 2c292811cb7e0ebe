"""Direct amount extraction from message text.

Language models are unreliable at copying numbers: they drop trailing zeros,
round, or lose digits. The regex extractor here reads the amount straight
from the message so the parser can check the model's figure against it.
"""

import re
from decimal import Decimal
from typing import Optional

from models.transaction import to_money

_CURRENCY = r"(?:£|\$|€|gbp|usd|eur)?\s*"
_NUMBER = r"(?:\d{1,3}(?:,\d{3})+|\d+)"

# Tried in order; the first pattern that matches anywhere wins
_PATTERNS = (
    re.compile(_CURRENCY + r"(" + _NUMBER + r"\.\d{2})", re.IGNORECASE),
    re.compile(_CURRENCY + r"(" + _NUMBER + r"\.\d)", re.IGNORECASE),
    re.compile(_CURRENCY + r"\b(" + _NUMBER + r")\b", re.IGNORECASE),
)


class AmountExtractor:
    """Extracts a monetary amount from free text."""

    def extract(self, text: Optional[str]) -> Optional[Decimal]:
        """Find the amount in a message.

        Prefers numbers written with two decimal places, then one, then a
        bare integer.

        Args:
            text: Raw message text.

        Returns:
            Amount rounded half-up to two decimal places, or None if the text
            has no number.
        """
        if not text:
            return None

        for pattern in _PATTERNS:
            match = pattern.search(text)
            if match:
                return to_money(match.group(1).replace(",", ""))

        return None
