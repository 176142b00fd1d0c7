"""
Portfolio Ledger for Datarium.

Keeps, for the signed-in user, the held assets and the append-only event
log consistent under every mutation.

Design Notes:
- Partitioned by user id: "@portfolio_assets_user_<id>" / "@portfolio_events_user_<id>"
- Write-then-apply: memory is updated only after the persisted write succeeded
- Every read-modify-write runs under the user's partition lock and starts
  from the persisted list, never from the in-memory copy
- Asset list and event list are two sequential writes; an event write that
  fails after the asset write succeeded is reported as PARTIAL and is not
  reconciled automatically
- Storage failures never propagate: they are logged and turned into a LedgerResult
"""
from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from datarium.app.logging_config import get_logger
from datarium.app.schemas.auth import AuthSession, User
from datarium.app.schemas.portfolio import (
    AllocationSlice,
    AssetCreateItem,
    InvestmentAsset,
    InvestmentCategory,
    LedgerResult,
    LedgerStatus,
    PortfolioEvent,
    PortfolioEventType,
    PortfolioSummary,
    )
from datarium.app.services.app_context import AppContext, user_assets_key, user_events_key
from datarium.app.services.key_value_store import StorageError
from datarium.app.services.portfolio_analytics import (
    calculate_allocation_data,
    calculate_portfolio_summary,
    group_assets_by_category,
    sort_events_for_history,
    )

logger = get_logger(__name__)


class LedgerState(str, Enum):
    """In-memory state of the ledger for the current user."""
    UNLOADED = "unloaded"
    LOADED = "loaded"


class PortfolioLedger:
    """
    Assets and event log of the current user.

    Subscribes to session changes on the context: on sign-out or user switch
    the in-memory state is discarded (persisted data is left alone) and, if
    a user is active, reloaded from storage.
    """

    def __init__(self, context: AppContext):
        self.context = context
        self._assets: List[InvestmentAsset] = []
        self._events: List[PortfolioEvent] = []
        self._loaded_user_id: Optional[str] = None
        # Operations currently running; concurrent mutations each hold one
        self._in_flight = 0
        context.subscribe(self._on_session_changed)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def assets(self) -> List[InvestmentAsset]:
        return list(self._assets)

    @property
    def events(self) -> List[PortfolioEvent]:
        """Event log in append (chronological) order."""
        return list(self._events)

    @property
    def state(self) -> LedgerState:
        user = self.context.current_user
        if user is not None and self._loaded_user_id == user.id:
            return LedgerState.LOADED
        return LedgerState.UNLOADED

    def _discard(self) -> None:
        self._assets = []
        self._events = []
        self._loaded_user_id = None

    async def _on_session_changed(self, previous: Optional[AuthSession], current: Optional[AuthSession]) -> None:
        previous_id = previous.user.id if previous else None
        current_id = current.user.id if current else None
        if previous_id == current_id and self.state == LedgerState.LOADED:
            return
        self._discard()
        if current is not None:
            await self.load()

    def _require_user(self, operation: str) -> Optional[User]:
        user = self.context.current_user
        if user is None:
            logger.error("Ledger operation without signed-in user", operation=operation)
        return user

    # =========================================================================
    # LOAD
    # =========================================================================

    async def load(self) -> bool:
        """
        Load the current user's assets and events from storage.

        With no active user the in-memory state is reset to empty.
        Safe to call repeatedly.

        Returns:
            True on success, False if storage could not be read (memory left untouched)
        """
        user = self.context.current_user
        if user is None:
            self._discard()
            return True

        self._in_flight += 1
        try:
            assets = await self.context.store.load_list(user_assets_key(user.id), InvestmentAsset)
            events = await self.context.store.load_list(user_events_key(user.id), PortfolioEvent)
        except StorageError as e:
            logger.error("Failed to load portfolio", user_id=user.id, error=str(e))
            return False
        finally:
            self._in_flight -= 1

        self._assets = assets
        self._events = events
        self._loaded_user_id = user.id
        logger.debug("Portfolio loaded", user_id=user.id, assets=len(assets), events=len(events))
        return True

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def _append_event(self, user: User, event: PortfolioEvent) -> None:
        """Persist the event after the stored log, then mirror the stored log in memory."""
        key = user_events_key(user.id)
        stored = await self.context.store.load_list(key, PortfolioEvent)
        updated = [*stored, event]
        await self.context.store.save_list(key, updated, PortfolioEvent)
        self._events = updated

    async def add_asset(self, data: Union[AssetCreateItem, Mapping[str, Any]]) -> LedgerResult:
        """
        Add an asset and record its "added" event.

        Args:
            data: AssetCreateItem, or a mapping validated into one
                  (name, type, value, pricePerUnit)

        Returns:
            LedgerResult: COMMITTED, PARTIAL (asset stored, event not),
            FAILED (nothing stored) or REJECTED (no user / invalid input)
        """
        user = self._require_user("add_asset")
        if user is None:
            return LedgerResult(status=LedgerStatus.REJECTED, message="No user signed in")

        if not isinstance(data, AssetCreateItem):
            try:
                data = AssetCreateItem.model_validate(data)
            except ValidationError as e:
                message = str(e.errors()[0].get("msg", "Invalid asset")).removeprefix("Value error, ")
                logger.info("Asset rejected by validation", user_id=user.id, reason=message)
                return LedgerResult(status=LedgerStatus.REJECTED, message=message)

        asset = data.to_asset()

        self._in_flight += 1
        try:
            async with self.context.partition_lock(user.id):
                key = user_assets_key(user.id)
                try:
                    stored = await self.context.store.load_list(key, InvestmentAsset)
                    updated = [*stored, asset]
                    await self.context.store.save_list(key, updated, InvestmentAsset)
                except StorageError as e:
                    logger.error("Failed to save asset", user_id=user.id, asset_name=asset.name, error=str(e))
                    return LedgerResult(status=LedgerStatus.FAILED, message=f"Storage error: {e}")

                self._assets = updated
                self._loaded_user_id = user.id
                logger.info("Asset added", user_id=user.id, asset_id=asset.id, asset_name=asset.name)

                event = PortfolioEvent.for_asset(asset, PortfolioEventType.ADDED)
                try:
                    await self._append_event(user, event)
                except StorageError as e:
                    logger.error(
                        "Asset saved without its audit event",
                        user_id=user.id, asset_id=asset.id, error=str(e),
                        )
                    return LedgerResult(
                        status=LedgerStatus.PARTIAL,
                        message=f"Asset saved but its event could not be recorded: {e}",
                        asset=asset,
                        )

            logger.info("Portfolio event recorded", user_id=user.id, event_type=event.event_type.value, asset_id=asset.id)
            return LedgerResult(status=LedgerStatus.COMMITTED, message="Asset added", asset=asset, event=event)
        finally:
            self._in_flight -= 1

    async def remove_asset(self, asset_id: str) -> LedgerResult:
        """
        Remove a held asset and record its "removed" event.

        An unknown id is a benign no-op reported as NOT_FOUND.

        Returns:
            LedgerResult: COMMITTED, PARTIAL, FAILED, NOT_FOUND or REJECTED
        """
        user = self._require_user("remove_asset")
        if user is None:
            return LedgerResult(status=LedgerStatus.REJECTED, message="No user signed in")

        self._in_flight += 1
        try:
            async with self.context.partition_lock(user.id):
                key = user_assets_key(user.id)
                try:
                    stored = await self.context.store.load_list(key, InvestmentAsset)
                except StorageError as e:
                    logger.error("Failed to read assets for removal", user_id=user.id, error=str(e))
                    return LedgerResult(status=LedgerStatus.FAILED, message=f"Storage error: {e}")

                removed = next((a for a in stored if a.id == asset_id), None)
                if removed is None:
                    logger.warning("Asset not found for removal", user_id=user.id, asset_id=asset_id)
                    return LedgerResult(status=LedgerStatus.NOT_FOUND, message=f"Asset '{asset_id}' not found")

                updated = [a for a in stored if a.id != asset_id]
                try:
                    await self.context.store.save_list(key, updated, InvestmentAsset)
                except StorageError as e:
                    logger.error("Failed to save asset removal", user_id=user.id, asset_id=asset_id, error=str(e))
                    return LedgerResult(status=LedgerStatus.FAILED, message=f"Storage error: {e}")

                self._assets = updated
                self._loaded_user_id = user.id
                logger.info("Asset removed", user_id=user.id, asset_id=asset_id, asset_name=removed.name)

                event = PortfolioEvent.for_asset(removed, PortfolioEventType.REMOVED)
                try:
                    await self._append_event(user, event)
                except StorageError as e:
                    logger.error(
                        "Asset removed without its audit event",
                        user_id=user.id, asset_id=asset_id, error=str(e),
                        )
                    return LedgerResult(
                        status=LedgerStatus.PARTIAL,
                        message=f"Asset removed but its event could not be recorded: {e}",
                        asset=removed,
                        )

            logger.info("Portfolio event recorded", user_id=user.id, event_type=event.event_type.value, asset_id=asset_id)
            return LedgerResult(status=LedgerStatus.COMMITTED, message="Asset removed", asset=removed, event=event)
        finally:
            self._in_flight -= 1

    async def reset_portfolio_data(self) -> LedgerResult:
        """
        Delete every asset and event of the current user, then reload.

        Memory is cleared first; the reload afterwards brings it back in line
        with storage, including when the delete failed.

        Returns:
            LedgerResult: COMMITTED, FAILED or REJECTED
        """
        user = self._require_user("reset_portfolio_data")
        if user is None:
            return LedgerResult(status=LedgerStatus.REJECTED, message="No user signed in")

        self._in_flight += 1
        try:
            async with self.context.partition_lock(user.id):
                self._assets = []
                self._events = []
                try:
                    await self.context.store.multi_remove([user_assets_key(user.id), user_events_key(user.id)])
                    result = LedgerResult(status=LedgerStatus.COMMITTED, message="Portfolio data cleared")
                    logger.info("Portfolio data cleared", user_id=user.id)
                except StorageError as e:
                    logger.error("Failed to clear portfolio data", user_id=user.id, error=str(e))
                    result = LedgerResult(status=LedgerStatus.FAILED, message=f"Storage error: {e}")

                await self.load()
            return result
        finally:
            self._in_flight -= 1

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    def history(self) -> List[PortfolioEvent]:
        """Event log for display: newest first."""
        return sort_events_for_history(self._events)

    def categories(self, include_empty: bool = False) -> List[InvestmentCategory]:
        return group_assets_by_category(self._assets, include_empty=include_empty)

    def summary(self) -> PortfolioSummary:
        return calculate_portfolio_summary(self._assets)

    def allocation(self) -> List[AllocationSlice]:
        return calculate_allocation_data(self.categories(), self.summary().total_value)
