"""
Database models for Datarium.

The application persists everything through a single key-value table, one
row per storage key (session record, users table, per-user assets, per-user
events, per-user investor profile). Values are JSON documents.

Conventions:
- Keys are opaque strings (e.g. "@app_users", "@portfolio_assets_user_<id>")
- Values are UTF-8 JSON text produced by Pydantic serializers
- Timestamps in UTC
"""
from datetime import datetime

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from datarium.app.utils.datetime_utils import utcnow


class StorageEntry(SQLModel, table=True):
    """
    One key-value pair of local storage.

    Usage: Backing row for KeyValueStore.get_item()/set_item()/remove_item().
    Writing an existing key overwrites its value (last write wins).
    """
    __tablename__ = "storage_entries"

    key: str = Field(primary_key=True, max_length=255)
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow)
