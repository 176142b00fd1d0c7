"""
Tests for portfolio schemas: asset creation validation, stored records
and their persisted (camelCase) format.

Reference: datarium/app/schemas/portfolio.py
"""
import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from datarium.app.schemas.portfolio import (
    AssetCreateItem,
    AssetType,
    InvestmentAsset,
    InvestmentCategory,
    LedgerResult,
    LedgerStatus,
    PortfolioEvent,
    PortfolioEventType,
    )
from datarium.app.utils.datetime_utils import parse_ISO_datetime


# ============================================================================
# ASSET CREATION
# ============================================================================

class TestAssetCreateItem:

    def test_valid_fixed_income(self):
        """PF-S-001: Name is trimmed and the value parsed as Decimal."""
        item = AssetCreateItem(name="  Tesouro Selic ", type="fixedIncome", value="1000")
        assert item.name == "Tesouro Selic"
        assert item.type == AssetType.FIXED_INCOME
        assert item.value == Decimal("1000")
        assert item.price_per_unit is None

    def test_stock_requires_price(self):
        """PF-S-002: Stocks without pricePerUnit are rejected."""
        with pytest.raises(ValidationError, match="required for stocks"):
            AssetCreateItem(name="PETR4", type="stocks", value="500")

    def test_stock_with_price(self):
        """PF-S-003: Stock price is accepted through its persisted alias."""
        item = AssetCreateItem.model_validate({"name": "PETR4", "type": "stocks", "value": "500", "pricePerUnit": "25.5"})
        assert item.price_per_unit == Decimal("25.5")

    def test_price_dropped_for_non_stocks(self):
        """PF-S-004: pricePerUnit is ignored for non-stock types."""
        item = AssetCreateItem(name="Fund X", type="funds", value="100", price_per_unit="10")
        assert item.price_per_unit is None

    @pytest.mark.parametrize("value", ["0", "-1", "abc"])
    def test_invalid_value(self, value):
        """PF-S-005: Zero, negative and non-numeric values are rejected."""
        with pytest.raises(ValidationError):
            AssetCreateItem(name="X", type="others", value=value)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name(self, name):
        """PF-S-006: Blank names are rejected."""
        with pytest.raises(ValidationError, match="Asset name cannot be empty"):
            AssetCreateItem(name=name, type="others", value="1")

    def test_unknown_type_rejected_on_input(self):
        """PF-S-007: New assets must use one of the four types."""
        with pytest.raises(ValidationError):
            AssetCreateItem(name="X", type="realEstate", value="1")

    def test_to_asset_zeroes_daily_change(self):
        """PF-S-008: New assets start with zero daily change and a fresh id."""
        item = AssetCreateItem(name="Tesouro Selic", type="fixedIncome", value="1000")
        first, second = item.to_asset(), item.to_asset()
        assert first.daily_change == Decimal("0")
        assert first.daily_change_percentage == Decimal("0")
        assert first.id != second.id


# ============================================================================
# STORED RECORDS
# ============================================================================

class TestStoredRecords:

    def test_asset_persisted_aliases(self):
        """PF-S-009: Assets serialize with camelCase field names."""
        asset = InvestmentAsset(name="PETR4", type="stocks", value=Decimal("500"), price_per_unit=Decimal("25"))
        payload = json.loads(asset.model_dump_json(by_alias=True))
        assert payload["type"] == "stocks"
        assert {"pricePerUnit", "dailyChange", "dailyChangePercentage"} <= set(payload)

    def test_asset_tolerates_unknown_stored_type(self):
        """PF-S-010: Unknown types read back from storage are kept as strings."""
        asset = InvestmentAsset.model_validate({"id": "a1", "name": "Gold", "type": "commodities", "value": 10})
        assert asset.type == "commodities"
        assert not isinstance(asset.type, AssetType)

    def test_asset_known_type_coerced(self):
        """PF-S-011: Known type strings become AssetType members."""
        asset = InvestmentAsset.model_validate({"name": "Fund", "type": "funds", "value": 10})
        assert asset.type is AssetType.FUNDS

    def test_event_for_asset_snapshots(self):
        """PF-S-012: Events snapshot asset id, name and value with a UTC timestamp."""
        asset = InvestmentAsset(name="Tesouro Selic", type="fixedIncome", value=Decimal("1000"))
        event = PortfolioEvent.for_asset(asset, PortfolioEventType.ADDED)
        assert event.asset_id == asset.id
        assert event.asset_name == "Tesouro Selic"
        assert event.value_at_event == Decimal("1000")
        assert parse_ISO_datetime(event.date).tzinfo is not None

        payload = json.loads(event.model_dump_json(by_alias=True))
        assert payload["eventType"] == "added"
        assert {"assetId", "assetName", "valueAtEvent", "date"} <= set(payload)

    def test_category_total(self):
        """PF-S-013: Category total is the sum of its asset values."""
        assets = [
            InvestmentAsset(name="A", type="funds", value=Decimal("100")),
            InvestmentAsset(name="B", type="funds", value=Decimal("50.5")),
            ]
        category = InvestmentCategory(id="funds", key=AssetType.FUNDS, name="Investment Funds", assets=assets)
        assert category.total_value == Decimal("150.5")


def test_ledger_result_success_only_when_committed():
    """PF-S-014: Only COMMITTED counts as success."""
    for status in LedgerStatus:
        assert LedgerResult(status=status).success is (status == LedgerStatus.COMMITTED)
