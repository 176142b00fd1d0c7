"""
Application Context

Explicit, per-application state shared by the services: settings, storage,
the single active session, per-partition mutation locks and session-change
listeners. Created once by the lifespan manager (datarium.app.main) and
passed to every service constructor; nothing here lives in module globals.

Storage keys:
- "@auth_data": persisted session record
- "@app_users": registered-users table (global, not partitioned)
- "@portfolio_assets_user_<id>": per-user held assets
- "@portfolio_events_user_<id>": per-user event log
- "@datarium_investor_profile_user_<id>": per-user questionnaire answers
"""
import asyncio
from typing import Awaitable, Callable, Optional

from datarium.app.config import Settings
from datarium.app.logging_config import bind_session_user, get_logger
from datarium.app.schemas.auth import AuthSession, User
from datarium.app.services.key_value_store import KeyValueStore

logger = get_logger(__name__)

SESSION_STORAGE_KEY = "@auth_data"
USERS_STORAGE_KEY = "@app_users"

SessionListener = Callable[[Optional[AuthSession], Optional[AuthSession]], Awaitable[None]]


def user_assets_key(user_id: str) -> str:
    return f"@portfolio_assets_user_{user_id}"


def user_events_key(user_id: str) -> str:
    return f"@portfolio_events_user_{user_id}"


def user_profile_key(user_id: str) -> str:
    return f"@datarium_investor_profile_user_{user_id}"


class AppContext:
    """
    Shared state threaded through IdentityStore, PortfolioLedger and
    InvestorProfileService.

    The session is owned by IdentityStore (the only caller of set_session);
    everyone else reads it through current_session / current_user.
    """

    def __init__(self, settings: Settings, store: KeyValueStore):
        self.settings = settings
        self.store = store
        self._session: Optional[AuthSession] = None
        self._locks: dict[str, asyncio.Lock] = {}
        self._listeners: list[SessionListener] = []

    # =========================================================================
    # Session
    # =========================================================================

    @property
    def current_session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def current_user(self) -> Optional[User]:
        return self._session.user if self._session else None

    def subscribe(self, listener: SessionListener) -> None:
        """Register a coroutine called as listener(previous, current) after each session change."""
        self._listeners.append(listener)

    async def set_session(self, session: Optional[AuthSession]) -> None:
        """
        Replace the active session and notify listeners.

        Listeners run in subscription order and are awaited one at a time.
        """
        previous = self._session
        self._session = session
        bind_session_user(session.user.id if session else None)
        logger.info(
            "Active session changed",
            previous_user_id=previous.user.id if previous else None,
            user_id=session.user.id if session else None,
            )
        for listener in self._listeners:
            await listener(previous, session)

    # =========================================================================
    # Partition locks
    # =========================================================================

    def partition_lock(self, partition: str) -> asyncio.Lock:
        """
        Mutual-exclusion guard for one storage partition (a user id, or the users table).

        Every read-modify-write of a partition's persisted lists must hold it.
        """
        lock = self._locks.get(partition)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[partition] = lock
        return lock
