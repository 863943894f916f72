# officehours/models/types.py
"""
Custom SQLAlchemy types that work across different database backends.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON

if TYPE_CHECKING:
    from sqlalchemy.sql.type_api import TypeDecorator as _TypeDecorator

    TypeDecoratorProtocol = _TypeDecorator[Any]
else:
    TypeDecoratorProtocol = TypeDecorator


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime (naive values are assumed UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecoratorProtocol):
    """
    Timezone-aware timestamp stored in UTC.

    SQLite has no timezone support, so values are normalised to UTC on the
    way in and re-attached to UTC on the way out. PostgreSQL keeps a
    ``timestamptz`` column.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        normalized = ensure_utc(value)
        if dialect.name == "sqlite" and normalized is not None:
            return normalized.replace(tzinfo=None)
        return normalized

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        return ensure_utc(value)


JSONType = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")
