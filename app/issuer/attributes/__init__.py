"""Schema-driven attribute engine.

Components:
- models: Attribute / AttributeValue / JsonLdType dataclasses
- parser: JSON Schema -> Attribute tree
- values: value decoding against an Attribute, and encoding back to JSON
- jsonld: credential type resolution from a JSON-LD context document
- utils: credentialSubject extraction and attribute transforms

Usage:
    from app.issuer.attributes import (
        parse_root_schema,
        decode_value,
        encode_value,
        resolve_types,
    )
"""

from .jsonld import CONTEXT_SHAPES, resolve_iden3_types, resolve_serto_types, resolve_types
from .models import (
    UNSET,
    AnyAttribute,
    ArraySchema,
    Attribute,
    AttributeType,
    AttributeValue,
    BooleanSchema,
    IntegerSchema,
    JsonLdType,
    MultiAttribute,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    RootSchema,
    Schema,
    SchemaMetadata,
    StringSchema,
)
from .parser import parse_attribute, parse_root_schema
from .utils import (
    extract_credential_subject,
    extract_credential_subject_without_id,
    make_attribute_optional,
)
from .values import (
    collect_value_errors,
    decode_value,
    encode_value,
    format_date_value,
    normalize_form_values,
    serialize_schema_form,
)

__all__ = [
    # Models
    "UNSET",
    "AnyAttribute",
    "ArraySchema",
    "Attribute",
    "AttributeType",
    "AttributeValue",
    "BooleanSchema",
    "IntegerSchema",
    "JsonLdType",
    "MultiAttribute",
    "NullSchema",
    "NumberSchema",
    "ObjectSchema",
    "RootSchema",
    "Schema",
    "SchemaMetadata",
    "StringSchema",
    # Parsing
    "parse_attribute",
    "parse_root_schema",
    # Values
    "decode_value",
    "encode_value",
    "collect_value_errors",
    "format_date_value",
    "normalize_form_values",
    "serialize_schema_form",
    # JSON-LD
    "CONTEXT_SHAPES",
    "resolve_types",
    "resolve_iden3_types",
    "resolve_serto_types",
    # Utils
    "extract_credential_subject",
    "extract_credential_subject_without_id",
    "make_attribute_optional",
]
