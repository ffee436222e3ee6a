"""Filtering and aggregation over the ledger."""

from money_manager.queries.balances import (
    DEFAULT_ACCOUNT,
    balances_as_list,
    derive_balances,
    resolve_default_account,
)
from money_manager.queries.categories import summarize_by_category
from money_manager.queries.filters import apply_filter, build_predicate, newest_first
from money_manager.queries.periods import (
    iso_week_key,
    month_key,
    period_key,
    summarize,
    year_key,
)

__all__ = [
    "DEFAULT_ACCOUNT",
    "apply_filter",
    "balances_as_list",
    "build_predicate",
    "derive_balances",
    "iso_week_key",
    "month_key",
    "newest_first",
    "period_key",
    "resolve_default_account",
    "summarize",
    "summarize_by_category",
    "year_key",
]
