"""
Datarium application wiring.

Builds storage and services once and tears them down on exit:

    async with lifespan() as app:
        session, error = await app.identity.sign_in("alice", "pw1")
        await app.ledger.add_asset({...})
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from datarium.app.config import Settings, get_settings, is_test_mode
from datarium.app.db.session import get_async_engine, init_storage
from datarium.app.logging_config import configure_logging, get_logger
from datarium.app.services.app_context import AppContext
from datarium.app.services.identity_store import IdentityStore
from datarium.app.services.investor_profile import InvestorProfileService
from datarium.app.services.key_value_store import KeyValueStore
from datarium.app.services.portfolio_ledger import PortfolioLedger

logger = get_logger(__name__)


@dataclass
class DatariumApp:
    """Running application: one context shared by all services."""
    settings: Settings
    engine: AsyncEngine
    context: AppContext
    identity: IdentityStore
    ledger: PortfolioLedger
    profile: InvestorProfileService


def build_app(settings: Settings, engine: AsyncEngine) -> DatariumApp:
    """
    Wire services on an existing engine.

    The ledger subscribes to session changes here, so it must exist before
    any session is activated.
    """
    context = AppContext(settings, KeyValueStore(engine))
    return DatariumApp(
        settings=settings,
        engine=engine,
        context=context,
        identity=IdentityStore(context),
        ledger=PortfolioLedger(context),
        profile=InvestorProfileService(context),
        )


@asynccontextmanager
async def lifespan(settings: Optional[Settings] = None, restore_session: bool = True) -> AsyncGenerator[DatariumApp, None]:
    """
    Application lifespan context manager.
    Handles startup (storage init, session restore) and shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, enable_file_logging=settings.LOG_TO_FILE)

    logger.info(
        "Starting Datarium",
        version=settings.VERSION,
        database_url=settings.DATABASE_URL.split("///")[-1],
        test_mode=is_test_mode(),
        )

    engine = get_async_engine(settings.DATABASE_URL)
    try:
        await init_storage(engine)
        app = build_app(settings, engine)
        if restore_session:
            await app.identity.restore_session()
        yield app
    finally:
        await engine.dispose()
        logger.info("Shutting down Datarium")
