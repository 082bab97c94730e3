"""Database layer for KB Index with async SQLAlchemy."""

from kbindex.db.connection import get_session, init_db
from kbindex.db.models import (
    Base,
    DataCollectionLogModel,
    TimeSeriesModel,
    UserSettingsModel,
)

__all__ = [
    "Base",
    "TimeSeriesModel",
    "UserSettingsModel",
    "DataCollectionLogModel",
    "get_session",
    "init_db",
]
