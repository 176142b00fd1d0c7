"""
Database module exports.
"""
from datarium.app.db.models import StorageEntry
from datarium.app.db.session import get_async_engine, init_storage, to_async_url

__all__ = [
    "StorageEntry",
    "get_async_engine",
    "init_storage",
    "to_async_url",
    ]
