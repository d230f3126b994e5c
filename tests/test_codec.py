"""Tests for value-to-literal rendering."""
import ipaddress
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from pgshift.core.codec import TypeCategory, classify_type, encode_row, encode_value
from pgshift.core.errors import MigrationError, SerializationError

ALL_TYPES = [
    "smallint", "integer", "bigint", "numeric", "real", "double precision",
    "boolean", "timestamp without time zone", "timestamp with time zone",
    "date", "time", "inet", "cidr", "json", "jsonb", "text",
    "character varying", "uuid", "bytea", "USER-DEFINED",
]


@pytest.mark.parametrize("data_type,expected", [
    ("smallint", TypeCategory.INT16),
    ("INT2", TypeCategory.INT16),
    ("integer", TypeCategory.INT32),
    ("int4", TypeCategory.INT32),
    ("bigint", TypeCategory.INT64),
    ("numeric", TypeCategory.DECIMAL),
    ("decimal", TypeCategory.DECIMAL),
    ("real", TypeCategory.FLOAT32),
    ("Double Precision", TypeCategory.FLOAT64),
    ("bool", TypeCategory.BOOLEAN),
    ("timestamp", TypeCategory.TIMESTAMP),
    ("timestamp with time zone", TypeCategory.TIMESTAMPTZ),
    ("timestamptz", TypeCategory.TIMESTAMPTZ),
    ("date", TypeCategory.DATE),
    ("time without time zone", TypeCategory.TIME),
    ("cidr", TypeCategory.NETWORK),
    ("jsonb", TypeCategory.JSON),
    ("character varying", TypeCategory.TEXT),
    ("uuid", TypeCategory.TEXT),
    ("", TypeCategory.TEXT),
])
def test_classify_type(data_type, expected):
    """Test declared type names map onto their family."""
    assert classify_type(data_type) == expected


@pytest.mark.parametrize("data_type", ALL_TYPES)
def test_null_always_renders_null(data_type):
    """Test None becomes NULL whatever the declared type."""
    assert encode_value(None, data_type, "col") == "NULL"


def test_integers():
    """Test integer literals are exact."""
    assert encode_value(42, "integer", "id") == "42"
    assert encode_value(-32768, "smallint", "n") == "-32768"
    assert encode_value(9223372036854775807, "bigint", "n") == "9223372036854775807"


@pytest.mark.parametrize("value,data_type", [
    (40000, "smallint"),
    (-32769, "int2"),
    (2 ** 31, "integer"),
    (2 ** 63, "bigint"),
])
def test_integer_out_of_declared_width_raises(value, data_type):
    """Test a value too wide for its column is rejected, not rendered."""
    with pytest.raises(SerializationError) as excinfo:
        encode_value(value, data_type, "n")

    assert excinfo.value.data_type == data_type
    assert "out of range" in str(excinfo.value)


def test_booleans():
    """Test boolean literals."""
    assert encode_value(True, "boolean", "flag") == "TRUE"
    assert encode_value(False, "bool", "flag") == "FALSE"


def test_bool_is_not_rendered_as_integer():
    """Test bool values in an integer column fall back to TRUE/FALSE."""
    assert encode_value(True, "integer", "n") == "TRUE"


def test_decimal_keeps_scale():
    """Test numeric values keep their textual form."""
    assert encode_value(Decimal("12.50"), "numeric", "price") == "12.50"
    assert encode_value(7, "numeric", "price") == "7"


def test_decimal_special_values_are_quoted():
    """Test NaN and infinities are quoted literals."""
    assert encode_value(Decimal("NaN"), "numeric", "x") == "'NaN'"
    assert encode_value(Decimal("-Infinity"), "numeric", "x") == "'-Infinity'"


def test_floats():
    """Test floats use their canonical repr."""
    assert encode_value(1.5, "double precision", "x") == "1.5"
    assert encode_value(0.1, "real", "x") == "0.1"
    assert encode_value(float("nan"), "float8", "x") == "'NaN'"
    assert encode_value(float("inf"), "float8", "x") == "'Infinity'"


def test_timestamp_without_zone():
    """Test naive timestamps."""
    assert encode_value(
        datetime(2024, 1, 2, 3, 4, 5), "timestamp without time zone", "ts"
    ) == "'2024-01-02 03:04:05'"
    assert encode_value(
        datetime(2024, 1, 2, 3, 4, 5, 123000), "timestamp", "ts"
    ) == "'2024-01-02 03:04:05.123000'"


def test_timestamp_with_zone_is_normalized_to_utc():
    """Test aware timestamps are rendered in UTC."""
    value = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
    assert encode_value(value, "timestamp with time zone", "ts") == "'2024-01-02T03:04:05+00:00'"


def test_date_and_time():
    """Test date and time literals."""
    assert encode_value(date(2024, 2, 29), "date", "d") == "'2024-02-29'"
    assert encode_value(time(13, 45), "time", "t") == "'13:45:00'"


def test_network_types():
    """Test inet and cidr values."""
    assert encode_value(ipaddress.ip_interface("10.0.0.1/24"), "inet", "addr") == "'10.0.0.1/24'"
    assert encode_value(ipaddress.ip_address("::1"), "inet", "addr") == "'::1'"
    assert encode_value(ipaddress.ip_network("10.0.0.0/8"), "cidr", "net") == "'10.0.0.0/8'"


def test_json_text_is_quoted_verbatim():
    """Test JSON documents are quoted with embedded quotes doubled."""
    document = '{"note": "it\'s fine"}'
    assert encode_value(document, "jsonb", "doc") == "'{\"note\": \"it''s fine\"}'"


def test_json_objects_are_serialized():
    """Test decoded JSON objects are dumped before quoting."""
    assert encode_value({"a": 1}, "json", "doc") == "'{\"a\": 1}'"


def test_text_escaping():
    """Test single quotes are doubled and nothing else is touched."""
    assert encode_value("O'Brien", "text", "name") == "'O''Brien'"
    assert encode_value("back\\slash", "character varying", "name") == "'back\\slash'"


def test_uuid_in_text_family():
    """Test UUID values render as quoted text."""
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")
    assert encode_value(value, "uuid", "id") == "'12345678-1234-5678-1234-567812345678'"


def test_fallback_for_unexpected_native_types():
    """Test integer and float values in a text column use the fallback chain."""
    assert encode_value(42, "text", "c") == "42"
    assert encode_value(2.5, "USER-DEFINED", "c") == "2.5"


def test_unreadable_value_raises_typed_error():
    """Test values matching no family raise SerializationError."""
    with pytest.raises(SerializationError) as excinfo:
        encode_value(b"\x00\x01", "bytea", "payload")

    error = excinfo.value
    assert isinstance(error, MigrationError)
    assert error.column == "payload"
    assert error.data_type == "bytea"
    assert "payload" in str(error)


def test_timestamp_type_mismatch_raises():
    """Test a date in a timestamptz column has no fallback."""
    with pytest.raises(SerializationError):
        encode_value(date(2024, 1, 1), "timestamp with time zone", "ts")


def test_encode_row_follows_column_order(table_factory):
    """Test rows are rendered in column order."""
    schema = table_factory()
    row = {
        "created_at": None,
        "total": Decimal("1.00"),
        "customer": "ann",
        "id": 1,
    }
    assert encode_row(row, schema.columns) == ["1", "'ann'", "1.00", "NULL"]
