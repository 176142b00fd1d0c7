"""
Tests for the async key-value store over SQLite.

Reference: datarium/app/services/key_value_store.py
"""
import sys
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Setup test database BEFORE importing app modules
from datarium.test_scripts.test_db_config import setup_test_database
setup_test_database()

from datarium.app.db.session import get_async_engine, init_storage, to_async_url
from datarium.app.schemas.auth import AuthSession, User
from datarium.app.schemas.portfolio import InvestmentAsset
from datarium.app.services.key_value_store import KeyValueStore, StorageError


# ============================================================================
# PYTEST FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def store(tmp_path):
    """Fresh store on a private database file."""
    engine = get_async_engine(f"sqlite:///{tmp_path / 'kv.db'}")
    await init_storage(engine)
    yield KeyValueStore(engine)
    await engine.dispose()


def test_to_async_url():
    """KV-000: sqlite URLs are switched to the aiosqlite driver."""
    assert to_async_url("sqlite:///./a.db") == "sqlite+aiosqlite:///./a.db"
    assert to_async_url("postgresql://x") == "postgresql://x"


# ============================================================================
# RAW OPERATIONS
# ============================================================================

class TestRawOperations:

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self, store):
        """KV-001: Absent keys read as None."""
        assert await store.get_item("@nothing") is None

    @pytest.mark.asyncio
    async def test_set_then_get_and_overwrite(self, store):
        """KV-002: Writes insert, then overwrite."""
        await store.set_item("@k", '{"a": 1}')
        assert await store.get_item("@k") == '{"a": 1}'
        await store.set_item("@k", '{"a": 2}')
        assert await store.get_item("@k") == '{"a": 2}'
        assert await store.get_all_keys() == ["@k"]

    @pytest.mark.asyncio
    async def test_remove_item(self, store):
        """KV-003: remove_item reports whether the key existed."""
        await store.set_item("@k", "[]")
        assert await store.remove_item("@k") is True
        assert await store.remove_item("@k") is False
        assert await store.get_item("@k") is None

    @pytest.mark.asyncio
    async def test_multi_remove(self, store):
        """KV-004: multi_remove deletes only the listed keys."""
        for key in ("@a", "@b", "@c"):
            await store.set_item(key, "[]")
        deleted = await store.multi_remove(["@a", "@b", "@missing"])
        assert deleted == 2
        assert await store.get_all_keys() == ["@c"]
        assert await store.multi_remove([]) == 0


# ============================================================================
# TYPED HELPERS
# ============================================================================

class TestTypedHelpers:

    @pytest.mark.asyncio
    async def test_model_round_trip_by_alias(self, store):
        """KV-005: Models are stored under their camelCase aliases."""
        session = AuthSession.for_user(User(username="alice", password="pw1"))
        await store.save_model("@auth_data", session)
        assert '"storedToken"' in await store.get_item("@auth_data")
        assert await store.load_model("@auth_data", AuthSession) == session

    @pytest.mark.asyncio
    async def test_absent_list_is_empty(self, store):
        """KV-006: Absent list keys read as an empty list."""
        assert await store.load_list("@portfolio_assets_user_x", InvestmentAsset) == []

    @pytest.mark.asyncio
    async def test_list_round_trip_keeps_order_and_decimals(self, store):
        """KV-007: Lists keep order; Decimal values survive exactly."""
        assets = [
            InvestmentAsset(name="A", type="fixedIncome", value=Decimal("1000.10")),
            InvestmentAsset(name="B", type="stocks", value=Decimal("0.3"), price_per_unit=Decimal("0.1")),
            ]
        await store.save_list("@assets", assets, InvestmentAsset)
        loaded = await store.load_list("@assets", InvestmentAsset)
        assert [a.name for a in loaded] == ["A", "B"]
        assert loaded[0].value == Decimal("1000.10")
        assert loaded[1].price_per_unit == Decimal("0.1")

    @pytest.mark.asyncio
    async def test_corrupt_document_raises_storage_error(self, store):
        """KV-008: Undecodable documents surface as StorageError."""
        await store.set_item("@assets", "not json")
        with pytest.raises(StorageError) as exc_info:
            await store.load_list("@assets", InvestmentAsset)
        assert exc_info.value.key == "@assets"
        assert exc_info.value.operation == "decode"


@pytest.mark.asyncio
async def test_data_survives_new_engine(tmp_path):
    """KV-009: Data persists across engines (process restart)."""
    url = f"sqlite:///{tmp_path / 'restart.db'}"
    engine = get_async_engine(url)
    await init_storage(engine)
    await KeyValueStore(engine).set_item("@k", "[1]")
    await engine.dispose()

    engine = get_async_engine(url)
    await init_storage(engine)
    try:
        assert await KeyValueStore(engine).get_item("@k") == "[1]"
    finally:
        await engine.dispose()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
