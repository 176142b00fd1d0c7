"""
Tests for the pure portfolio computations: grouping, summary, allocation
and history ordering.

Reference: datarium/app/services/portfolio_analytics.py
"""
from decimal import Decimal

import pytest

from datarium.app.schemas.portfolio import (
    AssetType,
    InvestmentAsset,
    PortfolioEvent,
    PortfolioEventType,
    )
from datarium.app.services.portfolio_analytics import (
    ALLOCATION_COLORS,
    CATEGORY_ORDER,
    calculate_allocation_data,
    calculate_portfolio_summary,
    group_assets_by_category,
    sort_events_for_history,
    )


def make_asset(name, asset_type, value, daily_change="0"):
    return InvestmentAsset(name=name, type=asset_type, value=Decimal(str(value)), daily_change=Decimal(daily_change))


def make_event(date, name="A"):
    return PortfolioEvent(asset_id="a", asset_name=name, event_type=PortfolioEventType.ADDED, date=date)


# ============================================================================
# GROUPING
# ============================================================================

class TestGrouping:

    def test_fixed_order_and_insertion_order(self):
        """PA-001: Categories in fixed order, assets in insertion order."""
        assets = [
            make_asset("Other 1", "others", 1),
            make_asset("Stock 1", "stocks", 2),
            make_asset("Selic", "fixedIncome", 3),
            make_asset("Stock 2", "stocks", 4),
            ]
        categories = group_assets_by_category(assets)

        assert [c.key for c in categories] == [AssetType.FIXED_INCOME, AssetType.STOCKS, AssetType.OTHERS]
        assert [a.name for a in categories[1].assets] == ["Stock 1", "Stock 2"]

    def test_every_asset_in_exactly_one_category(self):
        """PA-002: No asset lost or duplicated."""
        assets = [make_asset(f"A{i}", t, i + 1) for i, t in enumerate(["funds", "stocks", "weird", "others", "funds"])]
        categories = group_assets_by_category(assets, include_empty=True)

        grouped = [a.id for c in categories for a in c.assets]
        assert sorted(grouped) == sorted(a.id for a in assets)
        assert len(categories) == 4

    def test_unknown_type_goes_to_others(self):
        """PA-003: Unrecognized types fall back to 'others'."""
        categories = group_assets_by_category([make_asset("Gold", "commodities", 10)])
        assert len(categories) == 1
        assert categories[0].key == AssetType.OTHERS
        assert categories[0].name == "Others"

    def test_empty_input(self):
        """PA-004: No assets, no categories (unless asked for empty ones)."""
        assert group_assets_by_category([]) == []
        assert [c.key for c in group_assets_by_category([], include_empty=True)] == list(CATEGORY_ORDER)


# ============================================================================
# SUMMARY
# ============================================================================

class TestSummary:

    def test_totals(self):
        """PA-010: Totals are plain sums; percentage over the previous total."""
        summary = calculate_portfolio_summary([
            make_asset("A", "stocks", 1100, daily_change="100"),
            make_asset("B", "funds", 1000, daily_change="0"),
            ])
        assert summary.total_value == Decimal("2100")
        assert summary.total_daily_change == Decimal("100")
        assert summary.total_daily_change_percentage == Decimal("5")

    def test_zero_denominator(self):
        """PA-011: Percentage is 0 when totalValue - totalDailyChange is 0."""
        summary = calculate_portfolio_summary([make_asset("A", "stocks", 50, daily_change="50")])
        assert summary.total_daily_change_percentage == Decimal("0")

    def test_empty_portfolio(self):
        """PA-012: Empty portfolio sums to zero."""
        summary = calculate_portfolio_summary([])
        assert summary.total_value == Decimal("0")
        assert summary.total_daily_change_percentage == Decimal("0")

    def test_persisted_names(self):
        """PA-013: Summary serializes with camelCase names."""
        payload = calculate_portfolio_summary([]).model_dump(by_alias=True)
        assert set(payload) == {"totalValue", "totalDailyChange", "totalDailyChangePercentage"}


# ============================================================================
# ALLOCATION
# ============================================================================

class TestAllocation:

    def test_percentages_sum_to_100(self):
        """PA-020: Slices add up to 100 when there is value."""
        assets = [make_asset("A", "fixedIncome", 1), make_asset("B", "stocks", 1), make_asset("C", "others", 1)]
        categories = group_assets_by_category(assets)
        total = calculate_portfolio_summary(assets).total_value

        slices = calculate_allocation_data(categories, total)

        assert len(slices) == 3
        assert abs(sum(s.percentage for s in slices) - Decimal("100")) < Decimal("1e-20")

    def test_empty_when_total_zero(self):
        """PA-021: No slices when total value is zero."""
        assert calculate_allocation_data(group_assets_by_category([]), Decimal("0")) == []

    def test_colors_fixed_per_category(self):
        """PA-022: A category keeps its color whatever else is present."""
        only_funds = group_assets_by_category([make_asset("F", "funds", 10)])
        slices = calculate_allocation_data(only_funds, Decimal("10"))

        assert slices[0].color == ALLOCATION_COLORS[CATEGORY_ORDER.index(AssetType.FUNDS)]
        assert slices[0].percentage == Decimal("100")
        assert slices[0].name == "Investment Funds"


# ============================================================================
# HISTORY
# ============================================================================

class TestHistory:

    def test_newest_first(self):
        """PA-030: Events are sorted by date, newest first."""
        events = [
            make_event("2025-01-01T10:00:00+00:00", "old"),
            make_event("2025-03-01T10:00:00Z", "new"),
            make_event("2025-02-01T10:00:00+00:00", "mid"),
            ]
        assert [e.asset_name for e in sort_events_for_history(events)] == ["new", "mid", "old"]

    def test_offsets_compared_as_instants(self):
        """PA-031: Dates with different offsets compare by instant, not text."""
        events = [
            make_event("2025-01-01T12:00:00+00:00", "utc-noon"),
            make_event("2025-01-01T13:30:00+02:00", "earlier"),
            ]
        assert [e.asset_name for e in sort_events_for_history(events)] == ["utc-noon", "earlier"]

    def test_does_not_mutate_input(self):
        """PA-032: The stored (append-order) list is left unchanged."""
        events = [make_event("2025-01-01T00:00:00Z", "a"), make_event("2025-02-01T00:00:00Z", "b")]
        sort_events_for_history(events)
        assert [e.asset_name for e in events] == ["a", "b"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
