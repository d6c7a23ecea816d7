"""Attribute schema and attribute value models.

An Attribute is the decoded form of one JSON Schema node: a name, whether
its parent requires it, and a variant-specific constraint set. Multi-type
nodes (``"type": ["string", "null"]``) become a MultiAttribute holding one
constraint set per listed type.

AttributeValue mirrors the same tree with concrete decoded values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union


class AttributeType(str, Enum):
    """Type tag of an attribute or attribute value."""
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    MULTI = "multi"


class _Unset:
    """Marker for a value that is absent, as opposed to JSON null."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


# =============================================================================
# Schemas (constraint sets, without name/required)
# =============================================================================

@dataclass(frozen=True)
class CommonProps:
    """Annotations every JSON Schema node may carry."""
    title: Optional[str] = None
    description: Optional[str] = None
    const: Any = UNSET
    default: Any = UNSET
    examples: Optional[Tuple[Any, ...]] = None


@dataclass(frozen=True)
class BooleanSchema(CommonProps):
    enum: Optional[Tuple[bool, ...]] = None
    type: AttributeType = field(default=AttributeType.BOOLEAN, init=False)


@dataclass(frozen=True)
class IntegerSchema(CommonProps):
    enum: Optional[Tuple[int, ...]] = None
    type: AttributeType = field(default=AttributeType.INTEGER, init=False)


@dataclass(frozen=True)
class NullSchema(CommonProps):
    type: AttributeType = field(default=AttributeType.NULL, init=False)


@dataclass(frozen=True)
class NumberSchema(CommonProps):
    enum: Optional[Tuple[Union[int, float], ...]] = None
    type: AttributeType = field(default=AttributeType.NUMBER, init=False)


@dataclass(frozen=True)
class StringSchema(CommonProps):
    enum: Optional[Tuple[str, ...]] = None
    format: Optional[str] = None
    type: AttributeType = field(default=AttributeType.STRING, init=False)


@dataclass(frozen=True)
class ArraySchema(CommonProps):
    """Array constraints.

    Attributes:
        item: Schema of every element, named "items". Inherits the
            array's own required flag.
    """
    item: Optional["AnyAttribute"] = None
    type: AttributeType = field(default=AttributeType.ARRAY, init=False)


@dataclass(frozen=True)
class ObjectSchema(CommonProps):
    """Object constraints.

    Attributes:
        properties: Child attributes in declaration order.
        required: Names listed in the schema's ``required`` array.
    """
    properties: Tuple["AnyAttribute", ...] = ()
    required: Tuple[str, ...] = ()
    type: AttributeType = field(default=AttributeType.OBJECT, init=False)

    def get(self, name: str) -> Optional["AnyAttribute"]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


Schema = Union[
    BooleanSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    StringSchema,
    ArraySchema,
    ObjectSchema,
]


# =============================================================================
# Attributes
# =============================================================================

@dataclass(frozen=True)
class Attribute:
    """A named single-type schema node."""
    name: str
    required: bool
    schema: Schema

    @property
    def type(self) -> AttributeType:
        return self.schema.type


@dataclass(frozen=True)
class MultiAttribute:
    """A named node declaring two or more types.

    Every entry of ``schemas`` shares this node's name and required flag.
    """
    name: str
    required: bool
    schemas: Tuple[Schema, ...]

    @property
    def type(self) -> AttributeType:
        return AttributeType.MULTI


AnyAttribute = Union[Attribute, MultiAttribute]


@dataclass(frozen=True)
class SchemaMetadata:
    json_ld_context_uri: str


@dataclass(frozen=True)
class RootSchema:
    """A parsed schema document: its root attribute plus document metadata."""
    attribute: AnyAttribute
    metadata: SchemaMetadata


# =============================================================================
# Values
# =============================================================================

@dataclass(frozen=True)
class AttributeValue:
    """A value decoded against an attribute.

    ``value`` is the literal for primitives, a tuple of child AttributeValue
    for objects, and UNSET for absent optional values. Array and multi-type
    values are not decoded and always hold UNSET.
    """
    attribute: AnyAttribute
    value: Any = UNSET

    @property
    def name(self) -> str:
        return self.attribute.name

    @property
    def required(self) -> bool:
        return self.attribute.required

    @property
    def type(self) -> AttributeType:
        return self.attribute.type

    def child(self, name: str) -> Optional["AttributeValue"]:
        if self.type != AttributeType.OBJECT or self.value is UNSET:
            return None
        for child in self.value:
            if child.name == name:
                return child
        return None


# =============================================================================
# JSON-LD
# =============================================================================

@dataclass(frozen=True)
class JsonLdType:
    """A credential type discovered in a JSON-LD context document."""
    name: str
    id: str
