"""Natural-language transaction parsing.

Turns a free-text chat message ("Spent 4.50 on coffee", "Received salary
£3900") into a validated Transaction using a language model.

The model's reply is advisory. It is trusted for what a regex cannot do
(deciding the transaction type, picking a category, writing a description)
and checked where models are known to be weak:

- transaction_type and category are coerced onto the configured taxonomy
- the amount is compared against the number read directly from the message,
  and the direct reading wins when they disagree

Any hard failure (service error, unreadable reply, missing field) makes
parse() return None. Callers treat None as "could not understand".
"""

import json
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from amounts import AmountExtractor
from categorization import CategoryRegistry, normalize_type
from errors import InferenceError
from llm.prompts.loader import PromptManager
from llm.providers.base import LLMProvider
from logger import get_logger
from models.transaction import TRANSACTION_TYPES, Transaction, to_money

logger = get_logger()

PROMPT_NAME = "transaction_parsing"

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_AMOUNT_NOISE = re.compile(r"[£$€\s]|gbp|usd|eur", re.IGNORECASE)
_THOUSANDS = re.compile(r"[+-]?\d{1,3}(?:,\d{3})+(?:\.\d+)?")


class ModelReply(BaseModel):
    """The JSON object the model is asked to produce.

    All four fields must be present and non-empty. transaction_type and
    category are kept as free text here; they are normalized afterwards.
    """

    model_config = ConfigDict(extra="ignore")

    transaction_type: str
    amount: Decimal
    category: str
    description: str

    @field_validator("transaction_type", "category", "description", mode="before")
    @classmethod
    def _non_empty_text(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise ValueError("must be a non-empty string")
        text = str(value).strip()
        if not text:
            raise ValueError("must be a non-empty string")
        return text

    @field_validator("amount", mode="before")
    @classmethod
    def _numeric_amount(cls, value: Any) -> Decimal:
        if isinstance(value, bool) or value is None:
            raise ValueError("must be a number")
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            raise ValueError("must be a number")
        text = _AMOUNT_NOISE.sub("", value)
        if "," in text:
            # "1,200.50" is a thousands separator; "4,50" is ambiguous and refused
            if not _THOUSANDS.fullmatch(text):
                raise ValueError(f"ambiguous comma in amount: {value!r}")
            text = text.replace(",", "")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")
        if not amount.is_finite():
            raise ValueError(f"not a finite number: {value!r}")
        return amount


def decode_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Decode a model reply that should contain one JSON object.

    First the whole text is decoded. If that fails, the first brace-delimited
    span is decoded instead, which handles markdown fences and surrounding
    prose.

    Args:
        text: Raw reply text.

    Returns:
        The decoded object, or None if neither attempt yields a JSON object.
    """
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if not match:
            return None
        try:
            decoded = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None

    return decoded if isinstance(decoded, dict) else None


def reconcile_amount(
    model_amount: Decimal,
    direct_amount: Optional[Decimal],
    tolerance: Decimal = Decimal("0.01"),
) -> Decimal:
    """Choose between the model's amount and the one read from the message.

    Args:
        model_amount: Amount reported by the model.
        direct_amount: Amount extracted from the message text, if any.
        tolerance: Largest difference at which the model's figure is kept.

    Returns:
        The chosen amount rounded half-up to two decimal places.
    """
    if direct_amount is not None and abs(model_amount - direct_amount) > tolerance:
        logger.info(
            f"Model amount {model_amount} disagrees with message amount "
            f"{direct_amount}; using message amount"
        )
        return to_money(direct_amount)
    return to_money(model_amount)


class TransactionParser:
    """Extracts transactions from chat messages.

    Args:
        provider: LLM provider used to interpret the message.
        registry: Category taxonomy used in the prompt and for validation.
        extractor: Direct amount extractor. Defaults to AmountExtractor().
        prompt_manager: Prompt loader. Defaults to the bundled prompts.
        amount_tolerance: Maximum model/message amount difference tolerated.
        clock: Returns the current time; used to stamp created_at.
    """

    def __init__(
        self,
        provider: LLMProvider,
        registry: CategoryRegistry,
        extractor: Optional[AmountExtractor] = None,
        prompt_manager: Optional[PromptManager] = None,
        amount_tolerance: Decimal = Decimal("0.01"),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.provider = provider
        self.registry = registry
        self.extractor = extractor or AmountExtractor()
        self.prompt_manager = prompt_manager or PromptManager()
        self.amount_tolerance = amount_tolerance
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def category_hints(self) -> str:
        """Render the prompt's keyword hints for the configured categories.

        Hints for categories missing from the registry are left out, so a
        custom taxonomy never sees hints pointing at names it does not have.
        """
        hints = self.prompt_manager.load_prompt(PROMPT_NAME).get("category_hints") or {}
        lines = [
            f"- {hints[category]} = {category}"
            for transaction_type in TRANSACTION_TYPES
            for category in self.registry.categories_for(transaction_type)
            if category in hints
        ]
        return "\n".join(lines) or "- none"

    def build_prompt(self, text: str) -> Dict[str, Any]:
        """Render the extraction prompt for a message."""
        return self.prompt_manager.render_prompt(
            PROMPT_NAME,
            {
                "message": text,
                "expense_categories": ", ".join(self.registry.categories_for("expense")),
                "income_categories": ", ".join(self.registry.categories_for("income")),
                "savings_categories": ", ".join(self.registry.categories_for("savings")),
                "category_hints": self.category_hints(),
            },
        )

    def parse(self, text: Optional[str]) -> Optional[Transaction]:
        """Parse a chat message into a transaction.

        Args:
            text: The message as typed by the user.

        Returns:
            A Transaction without id/user/family fields, or None if the message
            could not be understood.
        """
        if not text or not text.strip():
            return None

        # Read independently of the model so a model failure cannot skip it
        direct_amount = self.extractor.extract(text)

        logger.info(f"Parsing transaction message: {text!r}")

        rendered = self.build_prompt(text)
        parameters = rendered["parameters"]

        try:
            raw_reply = self.provider.complete(
                rendered["system_prompt"],
                rendered["user_prompt"],
                model=parameters.get("model"),
                temperature=parameters.get("temperature", 0.1),
                max_tokens=parameters.get("max_tokens", 150),
                json_mode=True,
            )
        except InferenceError as e:
            logger.error(f"Transaction parsing failed, model unavailable: {e}")
            return None

        logger.debug(f"Model raw response: {raw_reply}")

        payload = decode_json_object(raw_reply)
        if payload is None:
            logger.warning(f"No JSON object in model response: {raw_reply!r}")
            return None

        try:
            reply = ModelReply.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                f"Incomplete model response {payload}: "
                f"{e.error_count()} invalid field(s)"
            )
            return None

        transaction_type = normalize_type(reply.transaction_type)
        if transaction_type != reply.transaction_type:
            logger.info(
                f"Transaction type {reply.transaction_type!r} coerced to {transaction_type!r}"
            )

        category = self.registry.normalize(transaction_type, reply.category)
        if category != reply.category:
            logger.info(f"Category {reply.category!r} coerced to {category!r}")

        amount = reconcile_amount(reply.amount, direct_amount, self.amount_tolerance)
        if amount <= 0:
            logger.warning(f"Rejecting non-positive amount {amount} for {text!r}")
            return None

        transaction = Transaction(
            type=transaction_type,
            amount=amount,
            category=category,
            description=reply.description,
            created_at=self.clock(),
        )

        logger.info(
            f"Parsed {transaction.type}: {transaction.amount} "
            f"{transaction.category} ({transaction.description})"
        )
        return transaction
