# safeorm - a lightweight Python ORM with mass-assignment protected associations
from safeorm.base import Record
from safeorm.session import Session
from safeorm.mapper import Mapper
from safeorm.query import Query
from safeorm.database import DatabaseEngine
from safeorm.generator import SchemaGenerator
from safeorm.orm_types import (
    Text, Number, Boolean, HasMany, HasOne, BelongsTo, HasManyThrough, HasOneThrough,
)
from safeorm.config import configure, get_settings
from safeorm.errors import (
    ORMError, ForbiddenAttributeError, RecordInvalid, RecordNotSaved,
    UnsupportedNestedThroughError,
)

__version__ = "0.2.0"
__all__ = [
    "Record", "Session", "Mapper", "Query", "DatabaseEngine", "SchemaGenerator",
    "Text", "Number", "Boolean", "HasMany", "HasOne", "BelongsTo", "HasManyThrough", "HasOneThrough",
    "configure", "get_settings",
    "ORMError", "ForbiddenAttributeError", "RecordInvalid", "RecordNotSaved",
    "UnsupportedNestedThroughError",
]
