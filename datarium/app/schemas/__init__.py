"""
Pydantic schemas for Datarium.

Used across storage and services to validate data structures and
standardize data exchange between components.

**Organization by Domain**:
- auth.py: User, AuthSession, AuthCredentials
- portfolio.py: InvestmentAsset, PortfolioEvent, AssetCreateItem, derived views, LedgerResult
- profile.py: questionnaire, stored answers, recommendation details

**Design Notes**:
- Persisted field names are camelCase aliases; attributes are snake_case
- Stored records are frozen: the ledger never edits an asset or event in place
"""
from datarium.app.schemas.auth import (
    User,
    AuthSession,
    AuthCredentials,
    derive_token,
    )
from datarium.app.schemas.portfolio import (
    AssetType,
    PortfolioEventType,
    LedgerStatus,
    InvestmentAsset,
    PortfolioEvent,
    AssetCreateItem,
    InvestmentCategory,
    PortfolioSummary,
    AllocationSlice,
    LedgerResult,
    )
from datarium.app.schemas.profile import (
    QuestionOption,
    InvestorQuestion,
    InvestorProfile,
    RecommendationDetail,
    )

__all__ = [
    # Auth
    "User",
    "AuthSession",
    "AuthCredentials",
    "derive_token",
    # Portfolio
    "AssetType",
    "PortfolioEventType",
    "LedgerStatus",
    "InvestmentAsset",
    "PortfolioEvent",
    "AssetCreateItem",
    "InvestmentCategory",
    "PortfolioSummary",
    "AllocationSlice",
    "LedgerResult",
    # Profile
    "QuestionOption",
    "InvestorQuestion",
    "InvestorProfile",
    "RecommendationDetail",
    ]
