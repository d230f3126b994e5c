"""Rendering of row values as SQL literals for re-insertion."""
import ipaddress
import json
import logging
import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from pgshift.core.errors import SerializationError

logger = logging.getLogger(__name__)

NULL = "NULL"


class TypeCategory(Enum):
    """Canonical value families a declared column type maps onto."""

    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    DECIMAL = "decimal"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    DATE = "date"
    TIME = "time"
    NETWORK = "network"
    JSON = "json"
    TEXT = "text"  # fallback for anything unrecognised


# Matched in this order; the first family listing the type name wins.
_TYPE_NAMES = (
    (TypeCategory.INT16, ("smallint", "int2")),
    (TypeCategory.INT32, ("integer", "int", "int4")),
    (TypeCategory.INT64, ("bigint", "int8")),
    (TypeCategory.DECIMAL, ("numeric", "decimal")),
    (TypeCategory.FLOAT32, ("real", "float4")),
    (TypeCategory.FLOAT64, ("double precision", "float8")),
    (TypeCategory.BOOLEAN, ("boolean", "bool")),
    (TypeCategory.TIMESTAMP, ("timestamp", "timestamp without time zone")),
    (TypeCategory.TIMESTAMPTZ, ("timestamp with time zone", "timestamptz")),
    (TypeCategory.DATE, ("date",)),
    (TypeCategory.TIME, ("time", "time without time zone")),
    (TypeCategory.NETWORK, ("inet", "cidr")),
    (TypeCategory.JSON, ("json", "jsonb")),
)

_INT_BOUNDS = {
    TypeCategory.INT16: 2 ** 15,
    TypeCategory.INT32: 2 ** 31,
    TypeCategory.INT64: 2 ** 63,
}

_NETWORK_TYPES = (
    ipaddress.IPv4Address, ipaddress.IPv6Address,
    ipaddress.IPv4Interface, ipaddress.IPv6Interface,
    ipaddress.IPv4Network, ipaddress.IPv6Network,
)


class ValueMismatch(TypeError):
    """The value is not the native type expected for its column family."""


class ValueOutOfRange(ValueError):
    """The value has the right type but does not fit the declared column width."""


def classify_type(data_type: str) -> TypeCategory:
    """Map a declared type name onto its TypeCategory."""
    normalized = (data_type or "").strip().lower()
    for category, names in _TYPE_NAMES:
        if normalized in names:
            return category
    return TypeCategory.TEXT


def quote_literal(text: str) -> str:
    """Single-quote a string, doubling embedded quotes."""
    return "'" + text.replace("'", "''") + "'"


def _render_int(value: Any, category: TypeCategory) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueMismatch(f"expected int, got {type(value).__name__}")
    bound = _INT_BOUNDS[category]
    if not -bound <= value < bound:
        raise ValueOutOfRange(f"{value} out of range for {category.value}")
    return str(value)


def _render_special_float(value) -> Optional[str]:
    if math.isnan(value):
        return "'NaN'"
    if math.isinf(value):
        return "'Infinity'" if value > 0 else "'-Infinity'"
    return None


def _render_decimal(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise ValueMismatch(f"expected Decimal, got {type(value).__name__}")
    if isinstance(value, Decimal) and not value.is_finite():
        if value.is_nan():
            return "'NaN'"
        return "'Infinity'" if value > 0 else "'-Infinity'"
    return str(value)


def _render_float(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (float, int)):
        raise ValueMismatch(f"expected float, got {type(value).__name__}")
    value = float(value)
    return _render_special_float(value) or repr(value)


def _render_bool(value: Any) -> str:
    if not isinstance(value, bool):
        raise ValueMismatch(f"expected bool, got {type(value).__name__}")
    return "TRUE" if value else "FALSE"


def _render_timestamp(value: Any) -> str:
    if not isinstance(value, datetime) or value.tzinfo is not None:
        raise ValueMismatch("expected naive datetime")
    return quote_literal(value.isoformat(sep=" "))


def _render_timestamptz(value: Any) -> str:
    if not isinstance(value, datetime) or value.tzinfo is None:
        raise ValueMismatch("expected timezone-aware datetime")
    return quote_literal(value.astimezone(timezone.utc).isoformat())


def _render_date(value: Any) -> str:
    if not isinstance(value, date) or isinstance(value, datetime):
        raise ValueMismatch(f"expected date, got {type(value).__name__}")
    return quote_literal(value.isoformat())


def _render_time(value: Any) -> str:
    if not isinstance(value, time):
        raise ValueMismatch(f"expected time, got {type(value).__name__}")
    return quote_literal(value.isoformat())


def _render_network(value: Any) -> str:
    if not isinstance(value, _NETWORK_TYPES):
        raise ValueMismatch(f"expected network address, got {type(value).__name__}")
    return quote_literal(str(value))


def _render_json(value: Any) -> str:
    # asyncpg hands json/jsonb over as text unless a codec is registered
    if isinstance(value, str):
        return quote_literal(value)
    if isinstance(value, (dict, list)):
        return quote_literal(json.dumps(value))
    raise ValueMismatch(f"expected JSON document, got {type(value).__name__}")


def _render_text(value: Any) -> str:
    if isinstance(value, (str, UUID)):
        return quote_literal(str(value))
    raise ValueMismatch(f"expected text, got {type(value).__name__}")


_RENDERERS: Dict[TypeCategory, Callable[[Any], str]] = {
    TypeCategory.INT16: lambda v: _render_int(v, TypeCategory.INT16),
    TypeCategory.INT32: lambda v: _render_int(v, TypeCategory.INT32),
    TypeCategory.INT64: lambda v: _render_int(v, TypeCategory.INT64),
    TypeCategory.DECIMAL: _render_decimal,
    TypeCategory.FLOAT32: _render_float,
    TypeCategory.FLOAT64: _render_float,
    TypeCategory.BOOLEAN: _render_bool,
    TypeCategory.TIMESTAMP: _render_timestamp,
    TypeCategory.TIMESTAMPTZ: _render_timestamptz,
    TypeCategory.DATE: _render_date,
    TypeCategory.TIME: _render_time,
    TypeCategory.NETWORK: _render_network,
    TypeCategory.JSON: _render_json,
    TypeCategory.TEXT: _render_text,
}


def _render_fallback(value: Any) -> Optional[str]:
    """Try opaque integer, float and boolean renderings, in that order."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        return _render_float(value)
    if isinstance(value, bool):
        return _render_bool(value)
    return None


def encode_value(value: Any, data_type: str, column: str) -> str:
    """Render a row value as a literal for a column of the declared type.

    Args:
        value: Value as decoded by the driver (None for SQL NULL)
        data_type: Declared column type, e.g. 'integer' or 'jsonb'
        column: Column name, used in error messages

    Returns:
        `NULL` or a quoted/escaped literal valid for the column type

    Raises:
        SerializationError: If the value matches neither its declared family
            nor any fallback representation, or if an integer does not fit
            the declared width
    """
    if value is None:
        return NULL

    category = classify_type(data_type)
    try:
        return _RENDERERS[category](value)
    except ValueOutOfRange as e:
        raise SerializationError(column, data_type, str(e)) from e
    except ValueMismatch as e:
        fallback = _render_fallback(value)
        if fallback is not None:
            logger.debug(
                "Column %s (%s) rendered through fallback: %s", column, data_type, e
            )
            return fallback
        raise SerializationError(column, data_type, str(e)) from e


def encode_row(row, columns) -> list:
    """Render every column of a row, in column order."""
    return [encode_value(row[c.name], c.data_type, c.name) for c in columns]
