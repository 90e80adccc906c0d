"""
Column metadata and native type classification.

This module provides:
- ColumnMeta: name and native type of a result column
- TypeClass: numeric classification of a native type
- native_type_name: resolve a driver type code to a native type name
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_NATIVE_TYPE = 'VAR_STRING'

FLOAT_TYPES: frozenset[str] = frozenset({
    'NEWDECIMAL', 'DOUBLE', 'DECIMAL', 'FLOAT', 'NUMERIC',
    'DEC', 'FIXED', 'REAL', 'DOUBLE_PRECISION',
})

INT_TYPES: frozenset[str] = frozenset({
    'LONG', 'INT24', 'TINYINT', 'SMALLINT', 'INTEGER',
    'INT', 'SHORT', 'TINY', 'MEDIUMINT', 'BIT',
})

BIGINT_TYPE = 'BIGINT'

# MySQL field type codes as reported in cursor.description.
# LONGLONG is reported as BIGINT so the overflow check applies to it.
mysql_type_names: dict[int, str] = {
    0: 'DECIMAL',
    1: 'TINY',
    2: 'SHORT',
    3: 'LONG',
    4: 'FLOAT',
    5: 'DOUBLE',
    6: 'NULL',
    7: 'TIMESTAMP',
    8: 'BIGINT',
    9: 'INT24',
    10: 'DATE',
    11: 'TIME',
    12: 'DATETIME',
    13: 'YEAR',
    14: 'NEWDATE',
    15: 'VARCHAR',
    16: 'BIT',
    245: 'JSON',
    246: 'NEWDECIMAL',
    247: 'ENUM',
    248: 'SET',
    249: 'TINY_BLOB',
    250: 'MEDIUM_BLOB',
    251: 'LONG_BLOB',
    252: 'BLOB',
    253: 'VAR_STRING',
    254: 'STRING',
    255: 'GEOMETRY',
}


class TypeClass(Enum):
    """How values of a native type are cast."""
    FLOAT = 'float'
    INT = 'int'
    BIGINT = 'bigint'
    OPAQUE = 'opaque'


def classify(native_type: str | None) -> TypeClass:
    """Classify a native type name. Unknown names are opaque."""
    if native_type in FLOAT_TYPES:
        return TypeClass.FLOAT
    if native_type in INT_TYPES:
        return TypeClass.INT
    if native_type == BIGINT_TYPE:
        return TypeClass.BIGINT
    return TypeClass.OPAQUE


def native_type_name(type_code: Any) -> str:
    """Resolve a cursor description type code to a native type name.

    Integer codes are MySQL field types. sqlite3 reports no type code, so
    SQLite columns resolve to the default and are never cast.
    """
    if isinstance(type_code, bool) or type_code is None:
        return DEFAULT_NATIVE_TYPE
    if isinstance(type_code, int):
        return mysql_type_names.get(type_code, DEFAULT_NATIVE_TYPE)
    return DEFAULT_NATIVE_TYPE


@dataclass(frozen=True, slots=True)
class ColumnMeta:
    """Result column metadata."""
    name: str
    native_type: str = DEFAULT_NATIVE_TYPE

    @property
    def type_class(self) -> TypeClass:
        return classify(self.native_type)

    @classmethod
    def from_cursor_description(cls, description_item: Any) -> 'ColumnMeta':
        """Create ColumnMeta from a DB-API description item."""
        name = getattr(description_item, 'name', None)
        if name is None:
            name = description_item[0]
        type_code = description_item[1] if len(description_item) > 1 else None
        return cls(name=str(name), native_type=native_type_name(type_code))


def columns_from_cursor_description(cursor: Any) -> list[ColumnMeta]:
    """Create ColumnMeta objects from cursor description."""
    if cursor.description is None:
        return []
    return [ColumnMeta.from_cursor_description(desc) for desc in cursor.description]
