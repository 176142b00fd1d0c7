"""
Portfolio Schemas

Pydantic models for held assets, the append-only event log, asset creation
input, derived views (categories, summary, allocation) and ledger results.

**Storage format**:
- Field aliases are the persisted camelCase names (pricePerUnit, dailyChange,
  assetId, eventType, valueAtEvent, ...); Python attributes are snake_case
- Monetary values are Decimal and serialize as JSON strings
"""
# Postpones evaluation of type hints to improve imports and performance. Also avoid circular import issues.
from __future__ import annotations

import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional, Union, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from datarium.app.utils.datetime_utils import utcnow_iso
from datarium.app.utils.decimal_utils import ZERO
from datarium.app.utils.validation_utils import (
    validate_required_text,
    validate_positive_amount,
    validate_price_per_unit,
    )


def new_id() -> str:
    """Fresh opaque identifier (uuid4). Never reused, never assumed ordered."""
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class AssetType(str, Enum):
    """
    Coarse asset category.

    - FIXED_INCOME: Treasury bonds, CDBs, fixed-income securities
    - STOCKS: Listed company shares (tracked with a price per unit)
    - FUNDS: Investment funds, REITs
    - OTHERS: Anything else (crypto, savings, ...)

    Declaration order is the fixed display order of portfolio categories.
    """
    FIXED_INCOME = "fixedIncome"
    STOCKS = "stocks"
    FUNDS = "funds"
    OTHERS = "others"


class PortfolioEventType(str, Enum):
    """Kind of audit record appended to the event log."""
    ADDED = "added"
    REMOVED = "removed"


class LedgerStatus(str, Enum):
    """
    Outcome of a ledger mutation.

    - COMMITTED: every persisted write succeeded and memory reflects it
    - PARTIAL: the asset list was written but its audit event was not
    - NOT_FOUND: nothing to remove (benign no-op)
    - REJECTED: no active user or invalid input, nothing attempted
    - FAILED: the first persisted write failed, nothing changed
    """
    COMMITTED = "committed"
    PARTIAL = "partial"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    FAILED = "failed"


# =============================================================================
# STORED RECORDS
# =============================================================================

class InvestmentAsset(BaseModel):
    """
    A single held investment.

    Never mutated in place: created by add_asset, dropped by remove_asset.
    `type` tolerates unknown strings when read back from storage so the
    category grouping can fall back to "others".
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    type: Union[AssetType, str]
    value: Decimal
    price_per_unit: Optional[Decimal] = Field(default=None, alias="pricePerUnit")
    daily_change: Decimal = Field(default=ZERO, alias="dailyChange")
    daily_change_percentage: Decimal = Field(default=ZERO, alias="dailyChangePercentage")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_known_type(cls, v):
        if isinstance(v, AssetType):
            return v
        try:
            return AssetType(v)
        except ValueError:
            return v


class PortfolioEvent(BaseModel):
    """
    Immutable audit record of an asset being added to or removed from holdings.

    Carries a snapshot of the asset name and value at event time.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_id)
    asset_id: str = Field(..., alias="assetId")
    asset_name: str = Field(..., alias="assetName")
    event_type: PortfolioEventType = Field(..., alias="eventType")
    date: str = Field(default_factory=utcnow_iso, description="ISO-8601 UTC timestamp")
    value_at_event: Optional[Decimal] = Field(default=None, alias="valueAtEvent")

    @classmethod
    def for_asset(cls, asset: InvestmentAsset, event_type: PortfolioEventType) -> PortfolioEvent:
        """Build the event for an asset, snapshotting its name and value now."""
        return cls(
            asset_id=asset.id,
            asset_name=asset.name,
            event_type=event_type,
            value_at_event=asset.value,
            )


# =============================================================================
# INPUT
# =============================================================================

class AssetCreateItem(BaseModel):
    """
    Data submitted to add an asset.

    Validation rules:
    - name: trimmed, non-empty
    - value: strictly positive
    - pricePerUnit: required (and positive) for stocks, dropped otherwise
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    type: AssetType
    value: Decimal
    price_per_unit: Optional[Decimal] = Field(default=None, alias="pricePerUnit")

    @field_validator("name", mode="before")
    @classmethod
    def name_not_blank(cls, v):
        return validate_required_text(v, "Asset name")

    @field_validator("value")
    @classmethod
    def value_positive(cls, v: Decimal) -> Decimal:
        return validate_positive_amount(v, "Asset value")

    @model_validator(mode="after")
    def price_matches_type(self) -> AssetCreateItem:
        self.price_per_unit = validate_price_per_unit(self.type.value, self.price_per_unit)
        return self

    def to_asset(self) -> InvestmentAsset:
        """New held asset with a fresh id and zeroed daily change."""
        return InvestmentAsset(
            name=self.name,
            type=self.type,
            value=self.value,
            price_per_unit=self.price_per_unit,
            daily_change=ZERO,
            daily_change_percentage=ZERO,
            )


# =============================================================================
# DERIVED VIEWS (never persisted)
# =============================================================================

class InvestmentCategory(BaseModel):
    """Assets of one category, in insertion order."""
    id: str
    key: AssetType
    name: str
    assets: List[InvestmentAsset] = Field(default_factory=list)

    @property
    def total_value(self) -> Decimal:
        return sum((asset.value for asset in self.assets), ZERO)


class PortfolioSummary(BaseModel):
    """Portfolio totals."""
    model_config = ConfigDict(populate_by_name=True)

    total_value: Decimal = Field(default=ZERO, alias="totalValue")
    total_daily_change: Decimal = Field(default=ZERO, alias="totalDailyChange")
    total_daily_change_percentage: Decimal = Field(default=ZERO, alias="totalDailyChangePercentage")


class AllocationSlice(BaseModel):
    """Share of the total portfolio value held in one category."""
    id: str
    name: str
    value: Decimal
    percentage: Decimal
    color: str


# =============================================================================
# RESULTS
# =============================================================================

class LedgerResult(BaseModel):
    """Result of a ledger mutation. Callers treat it as committed only when success is True."""
    status: LedgerStatus
    message: str = ""
    asset: Optional[InvestmentAsset] = None
    event: Optional[PortfolioEvent] = None

    @property
    def success(self) -> bool:
        return self.status == LedgerStatus.COMMITTED
