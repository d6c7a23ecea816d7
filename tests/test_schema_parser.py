"""Tests for JSON Schema parsing into the attribute model."""

import pytest

from app.issuer.attributes import (
    ArraySchema,
    Attribute,
    AttributeType,
    MultiAttribute,
    NullSchema,
    ObjectSchema,
    StringSchema,
    UNSET,
    parse_attribute,
    parse_root_schema,
)
from app.issuer.exceptions import SchemaError


def _root_document(**overrides):
    doc = {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$metadata": {
            "uris": {"jsonLdContext": "https://example.com/kyc-v4.jsonld"},
        },
        "type": "object",
        "required": ["credentialSubject"],
        "properties": {
            "credentialSubject": {
                "type": "object",
                "required": ["birthday"],
                "properties": {
                    "id": {"type": "string", "format": "uri"},
                    "birthday": {"type": "integer"},
                },
            },
        },
    }
    doc.update(overrides)
    return doc


class TestPrimitiveAttributes:
    """Leaf type parsing."""

    @pytest.mark.parametrize("type_tag", ["boolean", "integer", "null", "number", "string"])
    def test_scalar_types(self, type_tag):
        """Each scalar type tag parses to a single-type attribute."""
        attribute = parse_attribute("field", True, {"type": type_tag})

        assert isinstance(attribute, Attribute)
        assert attribute.type == AttributeType(type_tag)
        assert attribute.name == "field"
        assert attribute.required is True

    def test_common_props(self):
        """Title, description and examples are kept; const defaults to UNSET."""
        attribute = parse_attribute("age", False, {
            "type": "integer",
            "title": "Age",
            "description": "Age in years",
            "examples": [18, 30],
        })

        assert attribute.schema.title == "Age"
        assert attribute.schema.description == "Age in years"
        assert attribute.schema.examples == (18, 30)
        assert attribute.schema.const is UNSET

    def test_string_enum_and_format(self):
        """String enum and format are carried on the schema."""
        attribute = parse_attribute("day", False, {
            "type": "string",
            "format": "date",
            "enum": ["2024-01-01", "2024-12-31"],
        })

        assert isinstance(attribute.schema, StringSchema)
        assert attribute.schema.format == "date"
        assert attribute.schema.enum == ("2024-01-01", "2024-12-31")

    def test_empty_enum_raises(self):
        """An empty enum is rejected."""
        with pytest.raises(SchemaError, match="at least 1") as exc:
            parse_attribute("x", False, {"type": "string", "enum": []})
        assert exc.value.path == ("enum",)

    def test_enum_type_mismatch_raises_with_index(self):
        """Enum members of the wrong type report their index."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("x", False, {"type": "integer", "enum": [1, "two"]})
        assert exc.value.path == ("enum", 1)

    def test_boolean_not_accepted_as_number_enum(self):
        """Booleans are not numbers."""
        with pytest.raises(SchemaError):
            parse_attribute("x", False, {"type": "number", "enum": [True]})

    def test_title_must_be_string(self):
        """Non-string titles are rejected."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("x", False, {"type": "string", "title": 5})
        assert exc.value.path == ("title",)

    def test_unknown_keywords_ignored(self):
        """Unsupported keywords do not fail the parse."""
        attribute = parse_attribute("x", False, {"type": "string", "pattern": "^a", "maxLength": 3})
        assert attribute.type == AttributeType.STRING


class TestObjectAttributes:
    """Object parsing and required propagation."""

    def test_required_flags_follow_required_list(self):
        """Properties are required only if the parent lists them."""
        attribute = parse_attribute("subject", False, {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string"},
                "nickname": {"type": "string"},
            },
        })

        name, nickname = attribute.schema.properties
        assert name.required is True
        assert nickname.required is False
        assert attribute.schema.required == ("name",)

    def test_declaration_order_preserved(self):
        """Properties keep their declaration order."""
        attribute = parse_attribute("o", False, {
            "type": "object",
            "properties": {
                "nested": {"type": "object", "properties": {}},
                "b": {"type": "string"},
                "a": {"type": "number"},
            },
        })

        assert [p.name for p in attribute.schema.properties] == ["nested", "b", "a"]

    def test_object_without_properties(self):
        """An object without properties has none."""
        attribute = parse_attribute("o", True, {"type": "object"})

        assert isinstance(attribute.schema, ObjectSchema)
        assert attribute.schema.properties == ()

    def test_nested_error_path(self):
        """Errors carry the full path to the broken node."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("o", False, {
                "type": "object",
                "properties": {"inner": {"type": "object", "properties": {"bad": {"type": "date"}}}},
            })

        assert exc.value.path == ("properties", "inner", "properties", "bad", "type")

    def test_properties_must_be_object(self):
        """properties must be a JSON object."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("o", False, {"type": "object", "properties": ["a"]})
        assert exc.value.path == ("properties",)

    def test_required_must_be_strings(self):
        """required entries must be strings."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("o", False, {"type": "object", "required": ["a", 1]})
        assert exc.value.path == ("required", 1)

    def test_get_property_by_name(self):
        """Properties can be looked up by name."""
        attribute = parse_attribute("o", False, {
            "type": "object", "properties": {"a": {"type": "string"}},
        })

        assert attribute.schema.get("a").name == "a"
        assert attribute.schema.get("missing") is None


class TestArrayAttributes:
    """Array parsing."""

    def test_items_named_items_and_inherits_required(self):
        """Array element is named items and shares the array's required flag."""
        attribute = parse_attribute("tags", True, {"type": "array", "items": {"type": "string"}})

        assert isinstance(attribute.schema, ArraySchema)
        assert attribute.schema.item.name == "items"
        assert attribute.schema.item.required is True

    def test_optional_array_item_not_required(self):
        """Optional arrays have optional elements."""
        attribute = parse_attribute("tags", False, {"type": "array", "items": {"type": "string"}})
        assert attribute.schema.item.required is False

    def test_array_without_items(self):
        """items may be omitted."""
        attribute = parse_attribute("tags", False, {"type": "array"})
        assert attribute.schema.item is None

    def test_item_keyword_accepted(self):
        """The singular item keyword is accepted."""
        attribute = parse_attribute("tags", False, {"type": "array", "item": {"type": "number"}})
        assert attribute.schema.item.type == AttributeType.NUMBER

    def test_malformed_items_fails_whole_array(self):
        """A malformed element schema fails the array."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("tags", False, {"type": "array", "items": [{"type": "string"}]})
        assert exc.value.path == ("items",)


class TestMultiAttributes:
    """Multi-type parsing."""

    def test_string_or_null(self):
        """A type list becomes a multi attribute."""
        attribute = parse_attribute("nick", True, {"type": ["string", "null"]})

        assert isinstance(attribute, MultiAttribute)
        assert attribute.type == AttributeType.MULTI
        assert attribute.name == "nick"
        assert attribute.required is True
        assert len(attribute.schemas) == 2
        assert isinstance(attribute.schemas[0], StringSchema)
        assert isinstance(attribute.schemas[1], NullSchema)

    def test_combined_fields_reach_each_arm(self):
        """Each listed type picks its constraints from the shared node."""
        attribute = parse_attribute("value", False, {
            "type": ["string", "object"],
            "format": "date",
            "properties": {"inner": {"type": "boolean"}},
        })

        string_schema, object_schema = attribute.schemas
        assert string_schema.format == "date"
        assert object_schema.properties[0].name == "inner"

    def test_single_type_list_rejected(self):
        """A type list needs two or more entries."""
        with pytest.raises(SchemaError, match="at least 2"):
            parse_attribute("x", False, {"type": ["string"]})

    def test_duplicate_types_rejected(self):
        """A type list may not repeat a type."""
        with pytest.raises(SchemaError):
            parse_attribute("x", False, {"type": ["string", "string"]})

    def test_unknown_type_in_list_rejected(self):
        """Unknown type tags in a list report their index."""
        with pytest.raises(SchemaError) as exc:
            parse_attribute("x", False, {"type": ["string", "date"]})
        assert exc.value.path == ("type", 1)

    def test_arm_constraint_error_propagates(self):
        """A constraint invalid for one listed type fails the node."""
        with pytest.raises(SchemaError):
            parse_attribute("x", False, {"type": ["string", "integer"], "enum": ["a"]})


class TestInvalidNodes:
    """Malformed schema nodes."""

    def test_missing_type(self):
        """Nodes without type are rejected."""
        with pytest.raises(SchemaError, match="type"):
            parse_attribute("x", False, {"title": "no type"})

    def test_unknown_type(self):
        """Unknown type tags are rejected."""
        with pytest.raises(SchemaError):
            parse_attribute("x", False, {"type": "date"})

    def test_type_wrong_kind(self):
        """type must be a string or a list."""
        with pytest.raises(SchemaError):
            parse_attribute("x", False, {"type": 3})

    def test_node_not_object(self):
        """Schema nodes must be JSON objects."""
        with pytest.raises(SchemaError):
            parse_attribute("x", False, "string")

    def test_depth_limit(self):
        """Nesting deeper than the configured limit is rejected."""
        from app.core.config import MAX_SCHEMA_DEPTH

        node = {"type": "string"}
        for _ in range(MAX_SCHEMA_DEPTH + 1):
            node = {"type": "object", "properties": {"child": node}}

        with pytest.raises(SchemaError, match="maximum depth"):
            parse_attribute("deep", False, node)


class TestRootSchema:
    """Schema documents."""

    def test_parse_root_schema(self):
        """Root document yields the schema attribute and its metadata."""
        root = parse_root_schema(_root_document())

        assert root.metadata.json_ld_context_uri == "https://example.com/kyc-v4.jsonld"
        assert root.attribute.name == "schema"
        assert root.attribute.required is False
        subject = root.attribute.schema.get("credentialSubject")
        assert subject.required is True
        assert [p.name for p in subject.schema.properties] == ["id", "birthday"]

    def test_missing_metadata(self):
        """$metadata is required on the document root."""
        doc = _root_document()
        del doc["$metadata"]

        with pytest.raises(SchemaError) as exc:
            parse_root_schema(doc)
        assert exc.value.path == ("$metadata",)

    def test_context_uri_wrong_type(self):
        """jsonLdContext must be a string."""
        doc = _root_document(**{"$metadata": {"uris": {"jsonLdContext": 42}}})

        with pytest.raises(SchemaError) as exc:
            parse_root_schema(doc)
        assert exc.value.path == ("$metadata", "uris", "jsonLdContext")

    def test_invalid_body_fails_even_with_metadata(self):
        """Valid metadata does not rescue a broken body."""
        doc = _root_document(type="unknown")

        with pytest.raises(SchemaError):
            parse_root_schema(doc)

    def test_root_not_object(self):
        """The document must be a JSON object."""
        with pytest.raises(SchemaError):
            parse_root_schema([])
