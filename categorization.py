"""Category taxonomy for transactions.

Each transaction type (expense, income, savings) has its own set of valid
categories and a fallback category. The sets are disjoint: an expense
category is never valid for an income record. The taxonomy comes from the
application config rather than being fixed in code.

Normalization never fails. A category the model invents, or one that
belongs to another type, is replaced by the fallback for the type.
"""

from typing import Dict, Iterable, List, Optional
from config import Config
from models.transaction import EXPENSE, TRANSACTION_TYPES


def normalize_type(raw: Optional[str]) -> str:
    """Coerce a transaction type to one of the known values.

    Args:
        raw: Type as reported upstream, e.g. "Income" or "refund".

    Returns:
        The lower-cased type if known, otherwise "expense".
    """
    if isinstance(raw, str):
        candidate = raw.strip().lower()
        if candidate in TRANSACTION_TYPES:
            return candidate
    return EXPENSE


class CategoryRegistry:
    """Valid categories per transaction type, with a default for each.

    Args:
        categories: Mapping of transaction type to category names.
        defaults: Mapping of transaction type to its fallback category.

    Raises:
        ValueError: If a type is missing, a default is not one of its type's
            categories, or a category appears under more than one type.
    """

    def __init__(self, categories: Dict[str, Iterable[str]], defaults: Dict[str, str]):
        self._categories: Dict[str, List[str]] = {}
        self._lookup: Dict[str, Dict[str, str]] = {}
        self._defaults: Dict[str, str] = {}

        owner: Dict[str, str] = {}
        for transaction_type in TRANSACTION_TYPES:
            if transaction_type not in categories:
                raise ValueError(f"No categories configured for '{transaction_type}'")

            names = [name.strip() for name in categories[transaction_type] if name.strip()]
            default = defaults.get(transaction_type)
            if default not in names:
                raise ValueError(
                    f"Default category '{default}' is not a valid "
                    f"{transaction_type} category"
                )

            for name in names:
                key = name.lower()
                if key in owner and owner[key] != transaction_type:
                    raise ValueError(
                        f"Category '{name}' is listed for both "
                        f"{owner[key]} and {transaction_type}"
                    )
                owner[key] = transaction_type

            self._categories[transaction_type] = names
            self._lookup[transaction_type] = {name.lower(): name for name in names}
            self._defaults[transaction_type] = default

    @classmethod
    def from_config(cls, config: Config) -> "CategoryRegistry":
        """Build the registry from the application config."""
        return cls(config.categories, config.category_defaults)

    def categories_for(self, transaction_type: str) -> List[str]:
        """Get the valid categories for a type, in configured order."""
        return list(self._categories.get(transaction_type, []))

    def is_valid(self, transaction_type: str, category: str) -> bool:
        """Check exact membership of a category in a type's set."""
        return category in self._categories.get(transaction_type, [])

    def default_for(self, transaction_type: str) -> str:
        """Get the fallback category for a type.

        Unknown types get the expense fallback, matching normalize_type.
        """
        return self._defaults.get(transaction_type, self._defaults[EXPENSE])

    def normalize(self, transaction_type: str, raw: Optional[str]) -> str:
        """Map a category to its canonical spelling, or to the type's default.

        Matching ignores case and surrounding whitespace.

        Args:
            transaction_type: An already-normalized transaction type.
            raw: Category as reported upstream.

        Returns:
            A category that is valid for the type.
        """
        if isinstance(raw, str):
            match = self._lookup.get(transaction_type, {}).get(raw.strip().lower())
            if match is not None:
                return match
        return self.default_for(transaction_type)
