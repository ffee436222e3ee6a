"""Tests for the query filter and the aggregators."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from money_manager.models.transaction import (
    Division,
    Granularity,
    TransactionFilter,
    TransactionType,
)
from money_manager.queries import (
    apply_filter,
    balances_as_list,
    build_predicate,
    derive_balances,
    iso_week_key,
    month_key,
    newest_first,
    period_key,
    summarize,
    summarize_by_category,
    year_key,
)
from money_manager.queries.periods import iso_week_parts


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE
TRANSFER = TransactionType.TRANSFER


class TestQueryFilter:
    """Tests for criteria matching and ordering."""

    def test_no_criteria_matches_everything(self, make_tx):
        txs = [make_tx(), make_tx(tx_type=INCOME)]
        assert all(build_predicate(None)(tx) for tx in txs)
        assert all(build_predicate(TransactionFilter())(tx) for tx in txs)

    def test_criteria_are_combined(self, make_tx):
        """Test every present criterion must hold."""
        office_food = make_tx(division=Division.OFFICE, category="Food")
        office_fuel = make_tx(division=Division.OFFICE, category="Fuel")
        personal_food = make_tx(division=Division.PERSONAL, category="Food")

        criteria = TransactionFilter(division=Division.OFFICE, category="Food")
        assert apply_filter([office_food, office_fuel, personal_food], criteria) == [office_food]

    def test_type_criterion(self, make_tx):
        income = make_tx(tx_type=INCOME)
        expense = make_tx(tx_type=EXPENSE)
        criteria = TransactionFilter.model_validate({"type": "income"})
        assert apply_filter([income, expense], criteria) == [income]

    def test_enum_criteria_ignore_case(self, make_tx):
        """Test criteria accept the spellings create accepts."""
        office_income = make_tx(tx_type=INCOME, division=Division.OFFICE)
        personal_income = make_tx(tx_type=INCOME, division=Division.PERSONAL)

        criteria = TransactionFilter.model_validate({"type": "Income", "division": " OFFICE "})

        assert criteria.type == INCOME
        assert criteria.division == Division.OFFICE
        assert apply_filter([office_income, personal_income], criteria) == [office_income]

    @pytest.mark.parametrize(
        "raw",
        [{"division": "Bogus"}, {"type": "refund"}, {"dateFrom": "last tuesday"}],
    )
    def test_malformed_criteria_are_rejected(self, raw):
        with pytest.raises(ValueError):
            TransactionFilter.model_validate(raw)

    def test_date_bounds_are_inclusive(self, make_tx):
        before = make_tx(date="2023-12-31T23:59:59Z")
        on_start = make_tx(date="2024-01-01T00:00:00Z")
        on_end = make_tx(date="2024-01-31T00:00:00Z")
        after = make_tx(date="2024-01-31T00:00:01Z")

        criteria = TransactionFilter.model_validate({
            "dateFrom": "2024-01-01T00:00:00Z",
            "dateTo": "2024-01-31T00:00:00Z",
        })
        result = apply_filter([before, on_start, on_end, after], criteria)
        assert result == [on_end, on_start]

    def test_dates_compare_event_date_not_created_at(self, make_tx):
        old_event = make_tx(
            date="2020-06-01T00:00:00Z",
            created_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        )
        criteria = TransactionFilter(date_from=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert apply_filter([old_event], criteria) == []

    def test_newest_first_is_stable(self, make_tx):
        """Test records sharing a date keep their original order."""
        first = make_tx(description="first", date="2024-01-10T00:00:00Z")
        second = make_tx(description="second", date="2024-01-10T00:00:00Z")
        latest = make_tx(description="latest", date="2024-02-01T00:00:00Z")

        ordered = newest_first([first, second, latest])
        assert [tx.description for tx in ordered] == ["latest", "first", "second"]


class TestPeriodKeys:
    """Tests for calendar period keys."""

    def test_month_and_year_keys(self):
        moment = datetime(2024, 3, 9, 15, 0, tzinfo=timezone.utc)
        assert month_key(moment) == "2024-03"
        assert year_key(moment) == "2024"

    def test_keys_use_utc(self):
        """Test an evening in UTC-5 lands in the next UTC month."""
        moment = datetime(2024, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert month_key(moment) == "2024-02"

    @pytest.mark.parametrize(
        "moment, expected",
        [
            (datetime(2021, 1, 1, tzinfo=timezone.utc), "2020-53"),
            (datetime(2024, 12, 30, tzinfo=timezone.utc), "2025-01"),
            (datetime(2026, 1, 1, tzinfo=timezone.utc), "2026-01"),
            (datetime(2027, 1, 1, tzinfo=timezone.utc), "2026-53"),
            (datetime(2024, 1, 8, tzinfo=timezone.utc), "2024-02"),
        ],
    )
    def test_iso_week_key(self, moment, expected):
        assert iso_week_key(moment) == expected

    def test_iso_week_matches_calendar_library(self):
        """Test year-boundary weeks agree with date.isocalendar()."""
        for year in range(2015, 2031):
            start = date(year, 12, 20)
            for offset in range(20):
                day = start + timedelta(days=offset)
                iso = day.isocalendar()
                assert iso_week_parts(day) == (iso[0], iso[1]), day

    def test_period_key_dispatch(self):
        moment = datetime(2024, 12, 30, tzinfo=timezone.utc)
        assert period_key(moment, Granularity.YEAR) == "2024"
        assert period_key(moment, Granularity.MONTH) == "2024-12"
        assert period_key(moment, Granularity.WEEK) == "2025-01"


class TestPeriodAggregator:
    """Tests for period bucketing."""

    def test_monthly_totals(self, make_tx):
        txs = [
            make_tx(tx_type=EXPENSE, amount="100", date="2024-01-05T00:00:00Z"),
            make_tx(tx_type=INCOME, amount="500", date="2024-01-10T00:00:00Z"),
            make_tx(tx_type=EXPENSE, amount="50", date="2024-02-01T00:00:00Z"),
        ]

        buckets = summarize(txs, Granularity.MONTH)

        assert [bucket.period for bucket in buckets] == ["2024-01", "2024-02"]
        assert [(t.type, t.total_amount) for t in buckets[0].totals] == [
            (EXPENSE, Decimal("100")),
            (INCOME, Decimal("500")),
        ]
        assert [(t.type, t.total_amount) for t in buckets[1].totals] == [
            (EXPENSE, Decimal("50")),
        ]

    def test_missing_types_are_not_zero_filled(self, make_tx):
        buckets = summarize([make_tx(tx_type=EXPENSE, amount="50")])
        assert len(buckets[0].totals) == 1
        assert buckets[0].total_for(INCOME) == Decimal("0")

    def test_same_type_is_summed(self, make_tx):
        txs = [
            make_tx(tx_type=TRANSFER, amount="10.25", date="2024-05-01T00:00:00Z"),
            make_tx(tx_type=TRANSFER, amount="4.75", date="2024-05-31T23:59:59Z"),
        ]
        buckets = summarize(txs, Granularity.MONTH)
        assert buckets[0].total_for(TRANSFER) == Decimal("15.00")

    def test_weekly_buckets_cross_the_year(self, make_tx):
        """Test the last days of 2020 and the first of 2021 share a week."""
        txs = [
            make_tx(amount="10", date="2020-12-31T10:00:00Z"),
            make_tx(amount="20", date="2021-01-02T10:00:00Z"),
            make_tx(amount="5", date="2021-01-04T10:00:00Z"),
        ]
        buckets = summarize(txs, Granularity.WEEK)
        assert [bucket.period for bucket in buckets] == ["2020-53", "2021-01"]
        assert buckets[0].total_for(EXPENSE) == Decimal("30")

    def test_yearly_buckets_ascend(self, make_tx):
        txs = [
            make_tx(date="2025-03-01T00:00:00Z"),
            make_tx(date="2023-03-01T00:00:00Z"),
            make_tx(date="2024-03-01T00:00:00Z"),
        ]
        assert [b.period for b in summarize(txs, Granularity.YEAR)] == ["2023", "2024", "2025"]

    def test_empty_input(self):
        assert summarize([], Granularity.WEEK) == []

    def test_wire_form(self, make_tx):
        bucket = summarize([make_tx(amount="100", date="2024-01-05T00:00:00Z")])[0]
        assert bucket.to_wire() == {
            "period": "2024-01",
            "totals": [{"type": "expense", "totalAmount": 100.0}],
        }


class TestCategoryAggregator:
    """Tests for per-category totals."""

    def test_category_and_type_are_separate(self, make_tx):
        txs = [
            make_tx(tx_type=EXPENSE, category="Food", amount="100"),
            make_tx(tx_type=EXPENSE, category="Food", amount="50"),
            make_tx(tx_type=INCOME, category="Food", amount="20"),
            make_tx(tx_type=EXPENSE, category="Fuel", amount="30"),
        ]

        totals = summarize_by_category(txs)

        assert [(t.category, t.type, t.total_amount) for t in totals] == [
            ("Food", EXPENSE, Decimal("150")),
            ("Food", INCOME, Decimal("20")),
            ("Fuel", EXPENSE, Decimal("30")),
        ]

    def test_empty_input(self):
        assert summarize_by_category([]) == []


class TestBalanceDeriver:
    """Tests for derived account balances."""

    def test_salary_rent_and_transfer(self, make_tx):
        txs = [
            make_tx(tx_type=INCOME, amount="50000", to_account="Bank"),
            make_tx(tx_type=EXPENSE, amount="2000", from_account="Bank"),
            make_tx(tx_type=EXPENSE, amount="1500", from_account="Bank"),
            make_tx(tx_type=EXPENSE, amount="3000", from_account="Bank"),
            make_tx(tx_type=TRANSFER, amount="10000", from_account="Bank", to_account="Savings"),
        ]
        assert derive_balances(txs) == {
            "Bank": Decimal("33500"),
            "Savings": Decimal("10000"),
        }

    def test_income_and_expense_use_default_account(self, make_tx):
        txs = [
            make_tx(tx_type=INCOME, amount="300"),
            make_tx(tx_type=EXPENSE, amount="120"),
        ]
        assert derive_balances(txs) == {"Main": Decimal("180")}

    def test_configured_default_account(self, make_tx):
        txs = [make_tx(tx_type=EXPENSE, amount="40")]
        assert derive_balances(txs, default_account="Cash") == {"Cash": Decimal("-40")}

    def test_single_leg_transfer(self, make_tx):
        """Test a transfer only touches the accounts it names."""
        txs = [make_tx(tx_type=TRANSFER, amount="75", to_account="X")]
        assert derive_balances(txs) == {"X": Decimal("75")}

    def test_transfer_without_accounts(self, make_tx):
        txs = [make_tx(tx_type=TRANSFER, amount="75")]
        assert derive_balances(txs) == {}

    def test_order_does_not_matter(self, make_tx):
        txs = [
            make_tx(tx_type=INCOME, amount="100", to_account="Bank"),
            make_tx(tx_type=TRANSFER, amount="60", from_account="Bank", to_account="Wallet"),
            make_tx(tx_type=EXPENSE, amount="15", from_account="Wallet"),
        ]
        assert derive_balances(txs) == derive_balances(list(reversed(txs)))

    def test_result_is_fresh_each_call(self, make_tx):
        txs = [make_tx(tx_type=INCOME, amount="10", to_account="Bank")]
        first = derive_balances(txs)
        first["Bank"] = Decimal("0")
        assert derive_balances(txs) == {"Bank": Decimal("10")}

    def test_list_form(self, make_tx):
        txs = [
            make_tx(tx_type=INCOME, amount="10", to_account="Bank"),
            make_tx(tx_type=EXPENSE, amount="25", from_account="Card"),
        ]
        rows = balances_as_list(derive_balances(txs))
        assert [row.to_wire() for row in rows] == [
            {"account": "Bank", "balance": 10.0},
            {"account": "Card", "balance": -25.0},
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
