"""Transaction aggregation tools."""

from decimal import Decimal
from typing import Dict, Iterable, List, Tuple
from models.transaction import EXPENSE, INCOME, SAVINGS, TRANSACTION_TYPES, Transaction


def totals_by_type(transactions: Iterable[Transaction]) -> Dict[str, Decimal]:
    """Sum transaction amounts per transaction type.

    Args:
        transactions: Transactions to aggregate.

    Returns:
        Dictionary with one key per transaction type ("expense", "income",
        "savings"), each mapped to its total. Types without transactions
        total Decimal("0").

    Example:
        {
            "expense": Decimal("54.50"),
            "income": Decimal("3900.00"),
            "savings": Decimal("0"),
        }
    """
    totals = {transaction_type: Decimal("0") for transaction_type in TRANSACTION_TYPES}
    for transaction in transactions:
        totals[transaction.type] += transaction.amount
    return totals


def net_cash_flow(totals: Dict[str, Decimal]) -> Decimal:
    """Income left after expenses and savings.

    Args:
        totals: Output of totals_by_type.

    Returns:
        income - expense - savings
    """
    return totals.get(INCOME, Decimal("0")) - totals.get(EXPENSE, Decimal("0")) - totals.get(
        SAVINGS, Decimal("0")
    )


def sorted_summary(summary: Dict[str, Decimal]) -> List[Tuple[str, Decimal]]:
    """Order a category summary for display: largest total first, then by name."""
    return sorted(summary.items(), key=lambda item: (-item[1], item[0]))
