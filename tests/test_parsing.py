"""Tests for natural-language transaction parsing."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from categorization import CategoryRegistry
from config import DEFAULT_CATEGORIES, DEFAULT_CATEGORY_FALLBACKS
from errors import InferenceError
from parsing import TransactionParser, decode_json_object, reconcile_amount
from tests.helpers import FakeLLMProvider

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def registry():
    return CategoryRegistry(DEFAULT_CATEGORIES, DEFAULT_CATEGORY_FALLBACKS)


def make_parser(registry, reply=None, error=None):
    provider = FakeLLMProvider(reply=reply, error=error)
    return TransactionParser(provider, registry, clock=lambda: NOW), provider


class TestTransactionParser:
    """Tests for TransactionParser.parse."""

    def test_parse_coffee_expense(self, registry):
        """Test the common case where the model and the message agree."""
        parser, provider = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": 4.50,
                "category": "Food",
                "description": "Coffee",
            },
        )

        transaction = parser.parse("Spent 4.50 on coffee")

        assert transaction.type == "expense"
        assert transaction.amount == Decimal("4.50")
        assert transaction.category == "Food"
        assert transaction.description == "Coffee"
        assert transaction.created_at == NOW
        assert transaction.id is None
        assert transaction.user_id is None
        assert len(provider.calls) == 1
        assert provider.calls[0]["json_mode"] is True

    def test_message_amount_wins_when_model_disagrees(self, registry):
        """Test that a model dropping a digit is corrected from the message."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": "5.00",
                "category": "Grocery",
                "description": "Tesco",
            },
        )

        transaction = parser.parse("Add 50 to Tesco")

        assert transaction.amount == Decimal("50.00")
        assert transaction.category == "Grocery"

    def test_model_amount_kept_within_tolerance(self, registry):
        """Test that 4.5 and 4.50 are treated as the same amount."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": "4.5",
                "category": "Food",
                "description": "Coffee",
            },
        )

        transaction = parser.parse("coffee 4.50")

        assert transaction.amount == Decimal("4.50")
        assert str(transaction.amount) == "4.50"

    def test_model_amount_used_when_message_has_no_number(self, registry):
        """Test that the model's amount is used when nothing can be extracted."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": 20,
                "category": "Food",
                "description": "Pizza",
            },
        )

        transaction = parser.parse("pizza for twenty quid")

        assert transaction.amount == Decimal("20.00")

    def test_income_message(self, registry):
        """Test parsing a salary message."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "income",
                "amount": "3900",
                "category": "Salary",
                "description": "Salary",
            },
        )

        transaction = parser.parse("Received salary £3900")

        assert transaction.type == "income"
        assert transaction.amount == Decimal("3900.00")
        assert transaction.category == "Salary"

    def test_reply_wrapped_in_markdown(self, registry):
        """Test that a JSON object inside prose and fences is still read."""
        reply = (
            "Sure! Here you go:\n```json\n"
            '{"transaction_type": "expense", "amount": 12.99, '
            '"category": "Food", "description": "Lunch"}\n```'
        )
        parser, _ = make_parser(registry, reply=reply)

        transaction = parser.parse("Paid 12.99 for lunch")

        assert transaction.amount == Decimal("12.99")
        assert transaction.description == "Lunch"

    def test_unknown_type_becomes_expense(self, registry):
        """Test that an unknown transaction type is coerced to expense."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "purchase",
                "amount": 10,
                "category": "Shopping",
                "description": "Amazon",
            },
        )

        transaction = parser.parse("Amazon 10")

        assert transaction.type == "expense"
        assert transaction.category == "Shopping"

    def test_type_case_is_normalized(self, registry):
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "Savings",
                "amount": 300,
                "category": "savings",
                "description": "Transfer to savings",
            },
        )

        transaction = parser.parse("Transferred 300 to savings")

        assert transaction.type == "savings"
        assert transaction.category == "Savings"

    def test_invented_category_becomes_default(self, registry):
        """Test that a category outside the taxonomy falls back to the default."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": 4.50,
                "category": "Coffee Shops",
                "description": "Coffee",
            },
        )

        transaction = parser.parse("Spent 4.50 on coffee")

        assert transaction.category == "Other"

    def test_category_from_another_type_becomes_default(self, registry):
        """Test that an expense category on an income record is rejected."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "income",
                "amount": 25,
                "category": "Grocery",
                "description": "Refund from Tesco",
            },
        )

        transaction = parser.parse("Refund 25 from Tesco")

        assert transaction.type == "income"
        assert transaction.category == "Other Income"

    @pytest.mark.parametrize(
        "reply",
        [
            {"transaction_type": "expense", "amount": 4.5, "category": "Food"},
            {"transaction_type": "expense", "category": "Food", "description": "Coffee"},
            {"transaction_type": "expense", "amount": 4.5, "category": "", "description": "Coffee"},
            {"transaction_type": "expense", "amount": "lots", "category": "Food", "description": "Coffee"},
            {"transaction_type": "expense", "amount": None, "category": "Food", "description": "Coffee"},
        ],
    )
    def test_incomplete_reply_returns_none(self, registry, reply):
        """Test that missing or unusable fields make the parse fail."""
        parser, _ = make_parser(registry, reply=reply)

        assert parser.parse("Spent 4.50 on coffee") is None

    @pytest.mark.parametrize("amount", ["4,50", "12,5", "1,20,000"])
    def test_decimal_comma_amount_returns_none(self, registry, amount):
        """Test that a comma that is not a thousands separator fails the parse."""
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": amount,
                "category": "Food",
                "description": "Coffee",
            },
        )

        assert parser.parse("Coffee this morning") is None

    @pytest.mark.parametrize(
        "amount, expected", [("1,200", "1200.00"), ("£1,250.75", "1250.75")]
    )
    def test_thousands_separator_amount(self, registry, amount, expected):
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": amount,
                "category": "Bills",
                "description": "Rent",
            },
        )

        transaction = parser.parse("Paid the rent")

        assert transaction.amount == Decimal(expected)

    @pytest.mark.parametrize("reply", ["I could not find a transaction.", "[1, 2, 3]", "{broken"])
    def test_non_object_reply_returns_none(self, registry, reply):
        parser, _ = make_parser(registry, reply=reply)

        assert parser.parse("Spent 4.50 on coffee") is None

    def test_inference_error_returns_none(self, registry):
        """Test that a model outage is reported as a failed parse."""
        parser, provider = make_parser(registry, error=InferenceError("timed out"))

        assert parser.parse("Spent 4.50 on coffee") is None
        assert len(provider.calls) == 1

    def test_zero_amount_returns_none(self, registry):
        parser, _ = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": 0,
                "category": "Food",
                "description": "Free coffee",
            },
        )

        assert parser.parse("free coffee") is None

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank_message_skips_model(self, registry, text):
        """Test that blank messages never reach the model."""
        parser, provider = make_parser(registry, reply={})

        assert parser.parse(text) is None
        assert provider.calls == []

    def test_prompt_lists_configured_categories(self, registry):
        """Test that the prompt carries the message and every category set."""
        parser, provider = make_parser(
            registry,
            reply={
                "transaction_type": "expense",
                "amount": 4.50,
                "category": "Food",
                "description": "Coffee",
            },
        )

        parser.parse("Spent 4.50 on coffee")

        call = provider.calls[0]
        assert "Spent 4.50 on coffee" in call["user_prompt"]
        assert "Grocery, Transport" in call["system_prompt"]
        assert "Salary, Freelance" in call["system_prompt"]
        assert "Emergency Fund" in call["system_prompt"]
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 150
        assert "Tesco, Sainsbury's, Asda, Morrisons, Waitrose, Lidl, Aldi = Grocery" in (
            call["system_prompt"]
        )

    def test_hints_follow_custom_taxonomy(self):
        """Test that hints for categories outside the taxonomy are not rendered."""
        registry = CategoryRegistry(
            {"expense": ["Food", "Misc"], "income": ["Wages"], "savings": ["Pot"]},
            {"expense": "Misc", "income": "Wages", "savings": "Pot"},
        )
        parser, _ = make_parser(registry, reply={})

        hints = parser.category_hints()

        assert hints.splitlines() == [
            "- Coffee, Restaurant, Takeaway, Pizza, Cafe, Lunch, Dinner, Breakfast = Food"
        ]
        assert "Grocery" not in parser.build_prompt("Add 50 to Tesco")["system_prompt"].split(
            "Examples:"
        )[0]

    def test_hints_when_no_category_has_one(self):
        registry = CategoryRegistry(
            {"expense": ["Misc"], "income": ["Wages"], "savings": ["Pot"]},
            {"expense": "Misc", "income": "Wages", "savings": "Pot"},
        )
        parser, _ = make_parser(registry, reply={})

        assert parser.category_hints() == "- none"


class TestDecodeJsonObject:
    """Tests for decode_json_object."""

    def test_plain_object(self):
        assert decode_json_object('{"a": 1}') == {"a": 1}

    def test_object_inside_text(self):
        assert decode_json_object('Result: {"a": 1} done') == {"a": 1}

    def test_non_object_json(self):
        assert decode_json_object('"just a string"') is None

    def test_no_braces(self):
        assert decode_json_object("nothing here") is None


class TestReconcileAmount:
    """Tests for reconcile_amount."""

    def test_no_direct_amount_keeps_model(self):
        assert reconcile_amount(Decimal("7.255"), None) == Decimal("7.26")

    def test_within_tolerance_keeps_model(self):
        assert reconcile_amount(Decimal("10.00"), Decimal("10.01")) == Decimal("10.00")

    def test_outside_tolerance_uses_direct(self):
        assert reconcile_amount(Decimal("5.00"), Decimal("50.00")) == Decimal("50.00")

    def test_custom_tolerance(self):
        assert reconcile_amount(Decimal("9.50"), Decimal("10.00"), Decimal("1")) == Decimal("9.50")
