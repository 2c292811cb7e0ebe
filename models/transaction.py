from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

EXPENSE = "expense"
INCOME = "income"
SAVINGS = "savings"
TRANSACTION_TYPES = (EXPENSE, INCOME, SAVINGS)

SCOPE_SELF = "self"
SCOPE_FAMILY = "family"
SCOPES = (SCOPE_SELF, SCOPE_FAMILY)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round a numeric value to two decimal places, half-up on the cents digit."""
    # str() first so binary floats like 4.005 are read as written
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class Transaction:
    """A single expense, income, or savings record.

    Records produced by the parser have no id, user_id, or family_id yet;
    TransactionService.insert fills them in from the authorized user.
    """

    type: str  # 'expense', 'income', or 'savings'
    amount: Decimal  # always positive, two decimal places
    category: str
    description: str
    created_at: Optional[datetime] = None
    id: Optional[int] = None
    user_id: Optional[int] = None
    family_id: Optional[str] = None
    user_name: Optional[str] = None  # populated on family listings
