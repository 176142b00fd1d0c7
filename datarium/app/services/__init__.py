"""
Services package.
Local storage and the business logic on top of it.

- KeyValueStore: async key-value storage over SQLite
- AppContext: settings, storage, active session, partition locks
- IdentityStore: registration, sign-in/out, session restore
- PortfolioLedger: assets and event log of the current user
- InvestorProfileService: questionnaire answers and recommendations
"""
from datarium.app.services.key_value_store import KeyValueStore, StorageError
from datarium.app.services.app_context import AppContext
from datarium.app.services.identity_store import IdentityStore
from datarium.app.services.portfolio_ledger import LedgerState, PortfolioLedger
from datarium.app.services.investor_profile import InvestorProfileService

__all__ = [
    "KeyValueStore",
    "StorageError",
    "AppContext",
    "IdentityStore",
    "PortfolioLedger",
    "LedgerState",
    "InvestorProfileService",
    ]
