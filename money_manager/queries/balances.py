"""
Balance Deriver

Replays the transaction stream into per-account balances. Nothing is
persisted: every call folds the given transactions into a fresh dict.

Account rules:
- income credits to_account, or the default account when none is named
- expense debits from_account, or the default account when none is named
- transfer debits from_account only if present and credits to_account
  only if present; it never falls back to the default account

A transfer with a single leg therefore behaves exactly like an income or
expense on that leg's account.
"""

from decimal import Decimal
from typing import Iterable, Optional

from money_manager.models.transaction import (
    AccountBalance,
    Transaction,
    TransactionType,
)


DEFAULT_ACCOUNT = "Main"


def resolve_default_account(named: Optional[str], default: str = DEFAULT_ACCOUNT) -> str:
    """The named account, or the default. Income/expense only."""
    return named or default


def _post(balances: dict[str, Decimal], account: str, delta: Decimal) -> None:
    balances[account] = balances.get(account, Decimal("0")) + delta


def derive_balances(
    transactions: Iterable[Transaction],
    default_account: str = DEFAULT_ACCOUNT,
) -> dict[str, Decimal]:
    """
    Signed balance per account name.

    Accounts appear in the order they were first touched.
    """
    balances: dict[str, Decimal] = {}

    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            _post(balances, resolve_default_account(tx.to_account, default_account), tx.amount)
        elif tx.type == TransactionType.EXPENSE:
            _post(balances, resolve_default_account(tx.from_account, default_account), -tx.amount)
        elif tx.type == TransactionType.TRANSFER:
            if tx.from_account:
                _post(balances, tx.from_account, -tx.amount)
            if tx.to_account:
                _post(balances, tx.to_account, tx.amount)

    return balances


def balances_as_list(balances: dict[str, Decimal]) -> list[AccountBalance]:
    """Row form of a balance mapping, as the accounts summary lists it."""
    return [
        AccountBalance(account=account, balance=balance)
        for account, balance in balances.items()
    ]
