"""
Category Aggregator

Sums amounts per (category, type). The same category under two types
yields two entries; they are never merged.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from money_manager.models.transaction import (
    CategoryTotal,
    Transaction,
    TransactionType,
)


def summarize_by_category(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Totals ordered by category, then by type value."""
    sums: dict[tuple[str, TransactionType], Decimal] = defaultdict(Decimal)
    for tx in transactions:
        sums[(tx.category, tx.type)] += tx.amount

    return [
        CategoryTotal(category=category, type=tx_type, total_amount=total)
        for (category, tx_type), total in sorted(
            sums.items(), key=lambda item: (item[0][0], item[0][1].value)
        )
    ]
