"""
Portfolio analytics.

Pure, non-persisted computations over the held assets and the event log:
category grouping, totals, allocation chart data and history ordering.
Recomputed on demand by callers; nothing here touches storage.
"""
from decimal import Decimal
from typing import Iterable, List, Sequence

from datarium.app.logging_config import get_logger
from datarium.app.schemas.portfolio import (
    AllocationSlice,
    AssetType,
    InvestmentAsset,
    InvestmentCategory,
    PortfolioEvent,
    PortfolioSummary,
    )
from datarium.app.utils.datetime_utils import parse_ISO_datetime
from datarium.app.utils.decimal_utils import ZERO, percentage_of

logger = get_logger(__name__)

# Fixed display order and labels of the four categories
CATEGORY_ORDER: tuple[AssetType, ...] = (
    AssetType.FIXED_INCOME,
    AssetType.STOCKS,
    AssetType.FUNDS,
    AssetType.OTHERS,
    )

CATEGORY_IDS = {
    AssetType.FIXED_INCOME: "fixed-income",
    AssetType.STOCKS: "stocks",
    AssetType.FUNDS: "funds",
    AssetType.OTHERS: "others",
    }

CATEGORY_NAMES = {
    AssetType.FIXED_INCOME: "Fixed Income",
    AssetType.STOCKS: "Stocks",
    AssetType.FUNDS: "Investment Funds",
    AssetType.OTHERS: "Others",
    }

# Chart palette; entry i belongs to CATEGORY_ORDER[i]
ALLOCATION_COLORS: tuple[str, ...] = (
    "#FFD700",  # Gold - Fixed Income
    "#4CAF50",  # Green - Stocks
    "#007BFF",  # Blue - Funds
    "#D3D3D3",  # Light Gray - Others
    "#FF6384", "#36A2EB", "#A020F0", "#FF4500", "#20B2AA", "#DDA0DD", "#8A2BE2", "#ADFF2F", "#DC143C",
    )


def group_assets_by_category(
    assets: Iterable[InvestmentAsset],
    include_empty: bool = False,
    ) -> List[InvestmentCategory]:
    """
    Partition assets into the four fixed categories.

    Every asset lands in exactly one category; an unrecognized type goes to
    "others". Relative insertion order is preserved inside each category.

    Args:
        assets: Held assets, in insertion order
        include_empty: Keep categories without assets (default: drop them)

    Returns:
        Categories in fixed display order (fixedIncome, stocks, funds, others)
    """
    buckets: dict[AssetType, List[InvestmentAsset]] = {key: [] for key in CATEGORY_ORDER}

    for asset in assets:
        if isinstance(asset.type, AssetType):
            buckets[asset.type].append(asset)
        else:
            logger.warning(
                "Unknown asset type, grouping under others",
                asset_id=asset.id,
                asset_name=asset.name,
                asset_type=asset.type,
                )
            buckets[AssetType.OTHERS].append(asset)

    categories = [
        InvestmentCategory(
            id=CATEGORY_IDS[key],
            key=key,
            name=CATEGORY_NAMES[key],
            assets=buckets[key],
            )
        for key in CATEGORY_ORDER
        ]

    if include_empty:
        return categories
    return [category for category in categories if category.assets]


def calculate_portfolio_summary(assets: Iterable[InvestmentAsset]) -> PortfolioSummary:
    """
    Portfolio totals.

    totalDailyChangePercentage is measured against the previous total
    (totalValue - totalDailyChange) and is 0 when that base is 0.
    """
    total_value = ZERO
    total_daily_change = ZERO
    for asset in assets:
        total_value += asset.value
        total_daily_change += asset.daily_change

    previous_total_value = total_value - total_daily_change

    return PortfolioSummary(
        total_value=total_value,
        total_daily_change=total_daily_change,
        total_daily_change_percentage=percentage_of(total_daily_change, previous_total_value),
        )


def calculate_allocation_data(
    categories: Sequence[InvestmentCategory],
    total_value: Decimal,
    ) -> List[AllocationSlice]:
    """
    Share of total value per category, for the allocation chart.

    Categories with zero aggregate value are left out; everything is left
    out when total_value is zero. Each category keeps the same color
    regardless of which other categories are present.
    """
    if total_value == ZERO:
        return []

    slices: List[AllocationSlice] = []
    for category in categories:
        category_value = category.total_value
        if category_value <= ZERO:
            continue
        color_index = CATEGORY_ORDER.index(category.key)
        slices.append(AllocationSlice(
            id=category.id,
            name=category.name,
            value=category_value,
            percentage=percentage_of(category_value, total_value),
            color=ALLOCATION_COLORS[color_index % len(ALLOCATION_COLORS)],
            ))
    return slices


def sort_events_for_history(events: Iterable[PortfolioEvent]) -> List[PortfolioEvent]:
    """Events newest first, by event date. Stable for identical timestamps."""
    return sorted(events, key=lambda event: parse_ISO_datetime(event.date), reverse=True)
