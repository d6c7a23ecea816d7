"""Helpers over parsed schemas."""

from dataclasses import replace
from typing import Optional

from app.core.config import CREDENTIAL_SUBJECT_ID_KEY, CREDENTIAL_SUBJECT_KEY
from .models import (
    AnyAttribute,
    ArraySchema,
    Attribute,
    AttributeType,
    MultiAttribute,
    ObjectSchema,
    RootSchema,
)


def extract_credential_subject(root: RootSchema) -> Optional[Attribute]:
    """Return the object-typed credentialSubject property of the root, if any."""
    attribute = root.attribute
    if attribute.type != AttributeType.OBJECT:
        return None
    child = attribute.schema.get(CREDENTIAL_SUBJECT_KEY)
    if child is None or child.type != AttributeType.OBJECT:
        return None
    return child


def extract_credential_subject_without_id(root: RootSchema) -> Optional[Attribute]:
    """credentialSubject with its ``id`` property removed.

    The subject id is filled in from the holder DID at issuance time and is
    not a user-entered claim.
    """
    subject = extract_credential_subject(root)
    if subject is None:
        return None
    schema: ObjectSchema = subject.schema
    return replace(
        subject,
        schema=replace(
            schema,
            properties=tuple(p for p in schema.properties if p.name != CREDENTIAL_SUBJECT_ID_KEY),
            required=tuple(n for n in schema.required if n != CREDENTIAL_SUBJECT_ID_KEY),
        ),
    )


def make_attribute_optional(attribute: AnyAttribute) -> AnyAttribute:
    """Copy of an attribute tree with every node marked not required.

    Used for link issuance, where the holder fills in the claim later.
    """
    if isinstance(attribute, MultiAttribute):
        return replace(
            attribute,
            required=False,
            schemas=tuple(_optional_schema(schema) for schema in attribute.schemas),
        )
    return replace(attribute, required=False, schema=_optional_schema(attribute.schema))


def _optional_schema(schema):
    if isinstance(schema, ObjectSchema):
        return replace(
            schema,
            properties=tuple(make_attribute_optional(p) for p in schema.properties),
        )
    if isinstance(schema, ArraySchema) and schema.item is not None:
        return replace(schema, item=make_attribute_optional(schema.item))
    return schema
