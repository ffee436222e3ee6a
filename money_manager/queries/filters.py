"""
Query Filter

Turns optional TransactionFilter criteria into a predicate over stored
transactions. Criteria are combined with AND; an absent criterion imposes
no constraint. Date bounds are inclusive and compare against the event
date, never created_at.
"""

from typing import Callable, Iterable, Optional

from money_manager.models.transaction import Transaction, TransactionFilter


Predicate = Callable[[Transaction], bool]


def build_predicate(criteria: Optional[TransactionFilter] = None) -> Predicate:
    """Compose a predicate from the criteria that are set."""
    checks: list[Predicate] = []

    if criteria is not None:
        if criteria.division is not None:
            checks.append(lambda tx: tx.division == criteria.division)
        if criteria.category is not None:
            checks.append(lambda tx: tx.category == criteria.category)
        if criteria.type is not None:
            checks.append(lambda tx: tx.type == criteria.type)
        if criteria.date_from is not None:
            checks.append(lambda tx: tx.date >= criteria.date_from)
        if criteria.date_to is not None:
            checks.append(lambda tx: tx.date <= criteria.date_to)

    def predicate(tx: Transaction) -> bool:
        return all(check(tx) for check in checks)

    return predicate


def newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Order by event date descending.

    sorted() is stable, so records sharing a date keep insertion order.
    """
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)


def apply_filter(
    transactions: Iterable[Transaction],
    criteria: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    """Matching transactions, newest first."""
    predicate = build_predicate(criteria)
    return newest_first(tx for tx in transactions if predicate(tx))
