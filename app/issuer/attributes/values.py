"""Attribute value decoding and encoding.

decode_value checks a concrete value (form input or an API credentialSubject)
against an attribute and produces an AttributeValue tree. encode_value turns
that tree back into wire JSON when an issuance payload is built.

Values are permissive about extra keys: properties not declared by the
schema are dropped, not rejected. This is the opposite of the strict policy
applied to API records in app.issuer.resources.

Array and multi-type values are not decoded element by element; they always
resolve to UNSET on decode and to the caller's default on encode.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Mapping, Optional

from app.core.config import DATE_FORMATS
from ..exceptions import (
    AttributeValueError,
    MissingRequiredValue,
    Path,
    ValueNotInEnum,
    ValueTypeMismatch,
)
from .models import (
    AnyAttribute,
    AttributeType,
    AttributeValue,
    ObjectSchema,
    UNSET,
)
from .parser import PRIMITIVE_CHECKS, type_name

log = logging.getLogger(__name__)


# =============================================================================
# Decoding
# =============================================================================

class _Collector:
    """Accumulates value errors during a decode walk."""

    def __init__(self, fail_fast: bool):
        self.fail_fast = fail_fast
        self.errors: List[AttributeValueError] = []

    def add(self, error: AttributeValueError) -> None:
        if self.fail_fast:
            raise error
        self.errors.append(error)


def _decode_primitive(attribute: AnyAttribute, raw: Any, path: Path, errors: _Collector) -> AttributeValue:
    schema = attribute.schema
    type_tag = schema.type.value

    if type_tag == "null":
        if raw is UNSET:
            if attribute.required:
                errors.add(MissingRequiredValue.at(path))
            return AttributeValue(attribute, UNSET)
        if raw is not None:
            errors.add(ValueTypeMismatch(f"Expected null, received {type_name(raw)}", path))
            return AttributeValue(attribute, UNSET)
        return AttributeValue(attribute, None)

    if raw is UNSET or (raw is None and not attribute.required):
        if attribute.required:
            errors.add(MissingRequiredValue.at(path))
        return AttributeValue(attribute, UNSET)

    if not PRIMITIVE_CHECKS[type_tag](raw):
        errors.add(ValueTypeMismatch(f"Expected {type_tag}, received {type_name(raw)}", path))
        return AttributeValue(attribute, UNSET)

    if schema.enum is not None and raw not in schema.enum:
        allowed = ", ".join(repr(v) for v in schema.enum)
        errors.add(ValueNotInEnum(f"Invalid enum value {raw!r}, expected one of {allowed}", path))
        return AttributeValue(attribute, UNSET)

    return AttributeValue(attribute, raw)


def _decode_object(attribute: AnyAttribute, raw: Any, path: Path, errors: _Collector) -> AttributeValue:
    schema: ObjectSchema = attribute.schema

    if raw is UNSET or (raw is None and not attribute.required):
        if attribute.required:
            errors.add(MissingRequiredValue.at(path))
        return AttributeValue(attribute, UNSET)

    if not isinstance(raw, Mapping):
        errors.add(ValueTypeMismatch(f"Expected object, received {type_name(raw)}", path))
        return AttributeValue(attribute, UNSET)

    children = tuple(
        _decode(prop, raw.get(prop.name, UNSET), path + (prop.name,), errors)
        for prop in schema.properties
    )
    return AttributeValue(attribute, children)


def _decode(attribute: AnyAttribute, raw: Any, path: Path, errors: _Collector) -> AttributeValue:
    type_tag = attribute.type

    if type_tag == AttributeType.OBJECT:
        return _decode_object(attribute, raw, path, errors)

    if type_tag in (AttributeType.ARRAY, AttributeType.MULTI):
        # Element / union-arm decoding is not attempted.
        if attribute.required and raw is UNSET:
            errors.add(MissingRequiredValue.at(path))
        return AttributeValue(attribute, UNSET)

    return _decode_primitive(attribute, raw, path, errors)


def decode_value(attribute: AnyAttribute, value: Any = UNSET) -> AttributeValue:
    """Decode a concrete value against an attribute.

    Args:
        attribute: Parsed attribute (see parser.parse_attribute).
        value: Raw JSON value. Pass UNSET (the default) for an absent value.

    Returns:
        AttributeValue tree mirroring the attribute.

    Raises:
        MissingRequiredValue: Required property absent.
        ValueTypeMismatch: Value of the wrong runtime type.
        ValueNotInEnum: Value outside the declared enum.
    """
    return _decode(attribute, value, (), _Collector(fail_fast=True))


def collect_value_errors(attribute: AnyAttribute, value: Any = UNSET) -> List[AttributeValueError]:
    """Like decode_value, but return every error found instead of raising the first."""
    collector = _Collector(fail_fast=False)
    _decode(attribute, value, (), collector)
    return collector.errors


# =============================================================================
# Encoding
# =============================================================================

def _format_offset(moment) -> str:
    offset = moment.utcoffset()
    if offset is None:
        return "+00:00"
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def _format_clock(moment) -> str:
    millis = moment.microsecond // 1000
    return f"{moment.strftime('%H:%M:%S')}.{millis:03d}{_format_offset(moment)}"


def format_date_value(value: Any, fmt: str) -> Optional[str]:
    """Render a date/time value in the canonical template for ``fmt``.

    Templates:
        date       YYYY-MM-DD
        date-time  YYYY-MM-DDTHH:mm:ss.SSS+HH:MM
        time       HH:mm:ss.SSS+HH:MM

    Accepts datetime/date/time objects or ISO 8601 strings. Returns None when
    the value cannot be interpreted.
    """
    moment: Any = value
    if isinstance(value, str):
        moment = _parse_iso(value, fmt)
        if moment is None:
            return None

    if fmt == "date":
        if isinstance(moment, (date, datetime)):
            return moment.strftime("%Y-%m-%d")
        return None

    if fmt == "date-time":
        if isinstance(moment, datetime):
            return f"{moment.strftime('%Y-%m-%d')}T{_format_clock(moment)}"
        if isinstance(moment, date):
            moment = datetime.combine(moment, time(0, 0), tzinfo=timezone.utc)
            return f"{moment.strftime('%Y-%m-%d')}T{_format_clock(moment)}"
        return None

    if fmt == "time":
        if isinstance(moment, datetime):
            return _format_clock(moment.timetz())
        if isinstance(moment, time):
            return _format_clock(moment)
        return None

    return None


def _parse_iso(text: str, fmt: str) -> Any:
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    parsers = (time.fromisoformat,) if fmt == "time" else (datetime.fromisoformat, date.fromisoformat)
    for parse in parsers:
        try:
            return parse(candidate)
        except ValueError:
            continue
    return None


def _encode_string(attribute_value: AttributeValue) -> Any:
    schema = attribute_value.attribute.schema
    value = attribute_value.value
    if value is UNSET or schema.format not in DATE_FORMATS:
        return value
    formatted = format_date_value(value, schema.format)
    if formatted is None:
        log.debug(f"value of {attribute_value.name} is not a valid {schema.format}, sent as-is")
        return value
    return formatted


def encode_value(attribute_value: AttributeValue, default: Any = UNSET) -> Any:
    """Serialize an AttributeValue tree back into wire JSON.

    Args:
        attribute_value: Tree produced by decode_value.
        default: Emitted for absent leaves and for array/multi values.
            With the UNSET default, absent object children are omitted.

    Returns:
        JSON-compatible value, or ``default``.
    """
    type_tag = attribute_value.type

    if type_tag in (AttributeType.ARRAY, AttributeType.MULTI):
        return default

    if type_tag == AttributeType.OBJECT:
        if attribute_value.value is UNSET:
            return default
        encoded: Dict[str, Any] = {}
        for child in attribute_value.value:
            child_value = encode_value(child, default)
            if child_value is not UNSET:
                encoded[child.name] = child_value
        return encoded

    schema = attribute_value.attribute.schema
    const = schema.const
    if const is not UNSET and (
        type_tag == AttributeType.NULL and const is None
        or type_tag != AttributeType.NULL and PRIMITIVE_CHECKS[type_tag.value](const)
    ):
        return const

    if attribute_value.value is UNSET:
        return default

    if type_tag == AttributeType.STRING:
        return _encode_string(attribute_value)
    return attribute_value.value


# =============================================================================
# Form serialization
# =============================================================================

def normalize_form_values(values: Any) -> Any:
    """Turn form literals into JSON values.

    datetime/date/time objects become canonical date-time / date / time
    strings. None stays JSON null; the decoder treats it as absent only for
    optional properties that are not null-typed.
    """
    if isinstance(values, Mapping):
        return {key: normalize_form_values(value) for key, value in values.items()}
    if isinstance(values, list):
        return [normalize_form_values(value) for value in values]
    if isinstance(values, datetime):
        return format_date_value(values, "date-time")
    if isinstance(values, date):
        return format_date_value(values, "date")
    if isinstance(values, time):
        return format_date_value(values, "time")
    return values


def serialize_schema_form(attribute: AnyAttribute, values: Mapping[str, Any]) -> Any:
    """Decode form values against an attribute and encode the result.

    This is the path used to build a credentialSubject for issuance.

    Raises:
        AttributeValueError: If the form values do not satisfy the attribute.
    """
    decoded = decode_value(attribute, normalize_form_values(values))
    return encode_value(decoded)
