"""JSON Schema parsing into the attribute model.

Recursive descent over the ``type`` discriminant. Unlike API list decoding
there is no partial-failure tolerance here: a malformed node raises
SchemaError and aborts the whole parse, because the rest of the model is
unusable without it.

Supported subset:
- type: "boolean" | "integer" | "null" | "number" | "string" | "array" |
  "object", or a list of two or more of those
- title, description, const, default, examples
- enum (primitives), format (string)
- items / item (array), properties + required (object)
- $metadata.uris.jsonLdContext (document root only)

Unknown keywords (pattern, minimum, $id, ...) are ignored.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from app.core.config import (
    ARRAY_ITEM_ATTRIBUTE_NAME,
    MAX_SCHEMA_DEPTH,
    ROOT_ATTRIBUTE_NAME,
)
from ..exceptions import Path, SchemaError
from .models import (
    AnyAttribute,
    ArraySchema,
    Attribute,
    BooleanSchema,
    IntegerSchema,
    MultiAttribute,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    RootSchema,
    Schema,
    SchemaMetadata,
    StringSchema,
    UNSET,
)

log = logging.getLogger(__name__)

SCALAR_TYPES = frozenset({"boolean", "integer", "null", "number", "string"})
ALL_TYPES = SCALAR_TYPES | {"array", "object"}


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return is_number(value)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


# Runtime type check per primitive type tag
PRIMITIVE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "boolean": is_boolean,
    "integer": is_integer,
    "number": is_number,
    "string": is_string,
}


# =============================================================================
# Field helpers
# =============================================================================

def _optional_string(raw: Dict[str, Any], key: str, path: Path) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SchemaError(f"Expected string, received {type_name(value)}", path + (key,))
    return value


def _parse_common(raw: Dict[str, Any], path: Path) -> Dict[str, Any]:
    examples = raw.get("examples")
    if examples is not None and not isinstance(examples, list):
        raise SchemaError(
            f"Expected array, received {type_name(examples)}", path + ("examples",)
        )
    return {
        "title": _optional_string(raw, "title", path),
        "description": _optional_string(raw, "description", path),
        "const": raw.get("const", UNSET),
        "default": raw.get("default", UNSET),
        "examples": tuple(examples) if examples is not None else None,
    }


def _parse_enum(raw: Dict[str, Any], type_tag: str, path: Path) -> Optional[Tuple[Any, ...]]:
    if "enum" not in raw or raw["enum"] is None:
        return None
    values = raw["enum"]
    enum_path = path + ("enum",)
    if not isinstance(values, list):
        raise SchemaError(f"Expected array, received {type_name(values)}", enum_path)
    if not values:
        raise SchemaError("Array must contain at least 1 element(s)", enum_path)
    check = PRIMITIVE_CHECKS[type_tag]
    for index, value in enumerate(values):
        if not check(value):
            raise SchemaError(
                f"Expected {type_tag}, received {type_name(value)}", enum_path + (index,)
            )
    return tuple(values)


# =============================================================================
# Leaf parsers (one per type tag)
# =============================================================================

def _parse_boolean(raw, common, name, required, path, depth) -> Schema:
    return BooleanSchema(**common, enum=_parse_enum(raw, "boolean", path))


def _parse_integer(raw, common, name, required, path, depth) -> Schema:
    return IntegerSchema(**common, enum=_parse_enum(raw, "integer", path))


def _parse_null(raw, common, name, required, path, depth) -> Schema:
    return NullSchema(**common)


def _parse_number(raw, common, name, required, path, depth) -> Schema:
    return NumberSchema(**common, enum=_parse_enum(raw, "number", path))


def _parse_string(raw, common, name, required, path, depth) -> Schema:
    return StringSchema(
        **common,
        enum=_parse_enum(raw, "string", path),
        format=_optional_string(raw, "format", path),
    )


def _parse_array(raw, common, name, required, path, depth) -> Schema:
    key = "items" if "items" in raw else "item"
    items = raw.get(key)
    item = None
    if items is not None:
        # The element schema inherits the array's required flag.
        item = _parse_node(ARRAY_ITEM_ATTRIBUTE_NAME, required, items, path + (key,), depth + 1)
    return ArraySchema(**common, item=item)


def _parse_object(raw, common, name, required, path, depth) -> Schema:
    properties = raw.get("properties")
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        raise SchemaError(
            f"Expected object, received {type_name(properties)}", path + ("properties",)
        )

    required_names = raw.get("required")
    if required_names is None:
        required_names = []
    if not isinstance(required_names, list):
        raise SchemaError(
            f"Expected array, received {type_name(required_names)}", path + ("required",)
        )
    for index, required_name in enumerate(required_names):
        if not isinstance(required_name, str):
            raise SchemaError(
                f"Expected string, received {type_name(required_name)}",
                path + ("required", index),
            )

    attributes: List[AnyAttribute] = []
    for prop_name, prop_raw in properties.items():
        attributes.append(
            _parse_node(
                prop_name,
                prop_name in required_names,
                prop_raw,
                path + ("properties", prop_name),
                depth + 1,
            )
        )
    return ObjectSchema(**common, properties=tuple(attributes), required=tuple(required_names))


LEAF_PARSERS = {
    "boolean": _parse_boolean,
    "integer": _parse_integer,
    "null": _parse_null,
    "number": _parse_number,
    "string": _parse_string,
    "array": _parse_array,
    "object": _parse_object,
}


def _parse_multi_types(types: List[Any], path: Path) -> List[str]:
    type_path = path + ("type",)
    for index, tag in enumerate(types):
        if not isinstance(tag, str) or tag not in ALL_TYPES:
            raise SchemaError(f"Invalid type {tag!r}", type_path + (index,))
    if len(set(types)) != len(types):
        raise SchemaError("Type list must not repeat a type", type_path)
    if len(types) < 2:
        raise SchemaError("Array must contain at least 2 element(s)", type_path)
    return types


def _parse_node(name: str, required: bool, raw: Any, path: Path, depth: int) -> AnyAttribute:
    if depth > MAX_SCHEMA_DEPTH:
        raise SchemaError(f"Schema nesting exceeds maximum depth of {MAX_SCHEMA_DEPTH}", path)
    if not isinstance(raw, dict):
        raise SchemaError(f"Expected object, received {type_name(raw)}", path)

    common = _parse_common(raw, path)
    type_tag = raw.get("type")

    if isinstance(type_tag, str):
        leaf = LEAF_PARSERS.get(type_tag)
        if leaf is None:
            raise SchemaError(f"Invalid type {type_tag!r}", path + ("type",))
        return Attribute(name, required, leaf(raw, common, name, required, path, depth))

    if isinstance(type_tag, list):
        tags = _parse_multi_types(type_tag, path)
        # Constraint fields are shared; each tag's leaf parser picks the ones it uses.
        schemas = tuple(
            LEAF_PARSERS[tag](raw, common, name, required, path, depth) for tag in tags
        )
        return MultiAttribute(name, required, schemas)

    if type_tag is None:
        raise SchemaError("Missing required field 'type'", path)
    raise SchemaError(
        f"Expected string or array of strings, received {type_name(type_tag)}", path + ("type",)
    )


# =============================================================================
# Public API
# =============================================================================

def parse_attribute(name: str, required: bool, raw: Any, path: Sequence = ()) -> AnyAttribute:
    """Parse a raw JSON Schema node into an attribute.

    Args:
        name: Name of the attribute (property name in the parent).
        required: Whether the parent lists this property as required.
        raw: Untyped JSON Schema node.
        path: JSON path of ``raw`` inside its document, used in errors.

    Returns:
        Attribute for single-type nodes, MultiAttribute for type lists.

    Raises:
        SchemaError: On the first malformed node, carrying its JSON path.
    """
    return _parse_node(name, required, raw, tuple(path), 0)


def parse_root_schema(raw: Any) -> RootSchema:
    """Parse a complete JSON Schema document.

    The document must carry ``$metadata.uris.jsonLdContext`` as a string in
    addition to being a valid attribute schema itself. No partial schema is
    produced on failure.

    Raises:
        SchemaError: If metadata is missing or the schema is malformed.
    """
    if not isinstance(raw, dict):
        raise SchemaError(f"Expected object, received {type_name(raw)}")

    metadata = raw.get("$metadata")
    if not isinstance(metadata, dict):
        raise SchemaError("Missing required field '$metadata'", ("$metadata",))
    uris = metadata.get("uris")
    if not isinstance(uris, dict):
        raise SchemaError("Missing required field 'uris'", ("$metadata", "uris"))
    context_uri = uris.get("jsonLdContext")
    if not isinstance(context_uri, str):
        raise SchemaError(
            "Missing required field 'jsonLdContext'", ("$metadata", "uris", "jsonLdContext")
        )

    attribute = parse_attribute(ROOT_ATTRIBUTE_NAME, False, raw)
    log.debug(f"parsed schema document type={attribute.type.value} context={context_uri}")
    return RootSchema(attribute=attribute, metadata=SchemaMetadata(json_ld_context_uri=context_uri))
