"""JSON-LD credential type resolution.

Cross-references a schema's credentialSubject against the schema's JSON-LD
context document to find the credential type(s) usable at issuance time.

Two context shapes are supported and tried in order:

Shape A ("iden3"), a single-element @context list of candidate types:
    {"@context": [{
        "KYCAgeCredential": {"@id": "https://.../kyc#KYCAgeCredential",
                             "@context": {"birthday": ..., ...}},
        ...
    }]}

Shape B ("serto"), a flat @context tagged with a schema-id marker:
    {"@context": {
        "schema-id": "https://.../schema#",
        "MyCredential": {"@id": "schema-id"},
        "credentialSubject": {"@context": {"name": ..., ...}},
    }}

A shape resolver returns None when the document does not have its shape,
a type list on success, and raises MissingContextProperty when the shape
matched but the schema's properties are not all defined.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from app.core.config import SCHEMA_ID_MARKER
from ..exceptions import (
    MissingContextProperty,
    NoCredentialSubject,
    ResolutionError,
    UnrecognizedContextShape,
)
from .models import JsonLdType, RootSchema
from .utils import extract_credential_subject_without_id

log = logging.getLogger(__name__)

ShapeResolver = Callable[[Any, Sequence[str]], Optional[List[JsonLdType]]]


def _is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def _missing(properties: Sequence[str], context: Dict[str, Any]) -> Optional[str]:
    for name in properties:
        if name not in context:
            return name
    return None


def resolve_iden3_types(document: Any, properties: Sequence[str]) -> Optional[List[JsonLdType]]:
    """Shape A: one candidate type per entry of the single @context record."""
    if not isinstance(document, dict):
        return None
    contexts = document.get("@context")
    if not isinstance(contexts, list) or len(contexts) != 1 or not isinstance(contexts[0], dict):
        return None

    types: List[JsonLdType] = []
    reasons: List[str] = []
    candidates = 0

    for key, value in contexts[0].items():
        if not isinstance(value, dict):
            continue
        type_context = value.get("@context")
        type_id = value.get("@id")
        if not isinstance(type_context, dict) or not isinstance(type_id, str):
            continue
        candidates += 1
        if not _is_url(type_id):
            reasons.append(f'Property @id of the type "{key}" is not valid')
            log.debug(f"jsonld candidate {key} dropped: invalid @id {type_id!r}")
            continue
        missing = _missing(properties, type_context)
        if missing is not None:
            reasons.append(
                f'Couldn\'t find Property "{missing}" of the JSON schema in the context of "{key}"'
            )
            log.debug(f"jsonld candidate {key} dropped: property {missing} not found")
            continue
        types.append(JsonLdType(name=key, id=type_id))

    if candidates == 0:
        return None
    if not types:
        raise MissingContextProperty(
            "Couldn't find any valid type in the JSON LD context of the schema", reasons
        )
    return types


def resolve_serto_types(document: Any, properties: Sequence[str]) -> Optional[List[JsonLdType]]:
    """Shape B: a single type tagged with the schema-id marker."""
    if not isinstance(document, dict):
        return None
    context = document.get("@context")
    if not isinstance(context, dict):
        return None
    schema_id = context.get(SCHEMA_ID_MARKER)
    subject = context.get("credentialSubject")
    if not _is_url(schema_id) or not isinstance(subject, dict):
        return None
    subject_context = subject.get("@context")
    if not isinstance(subject_context, dict):
        return None

    type_name = next(
        (key for key, value in context.items() if value == {"@id": SCHEMA_ID_MARKER}),
        None,
    )
    if type_name is None:
        return None

    missing = _missing(properties, subject_context)
    if missing is not None:
        raise MissingContextProperty(
            f'Couldn\'t find Property "{missing}" of the JSON schema in the context',
            [f'Property "{missing}" not found in credentialSubject context'],
        )
    return [JsonLdType(name=type_name, id=schema_id + type_name)]


# Tried in order; the first shape that resolves wins.
CONTEXT_SHAPES: Tuple[Tuple[str, ShapeResolver], ...] = (
    ("iden3", resolve_iden3_types),
    ("serto", resolve_serto_types),
)


def resolve_types(root: RootSchema, context: Any) -> List[JsonLdType]:
    """Resolve the credential types a schema can be issued as.

    Args:
        root: Parsed schema document.
        context: Parsed JSON-LD context document fetched from
            root.metadata.json_ld_context_uri.

    Returns:
        Non-empty list of JsonLdType.

    Raises:
        NoCredentialSubject: Schema has no object-typed credentialSubject.
        MissingContextProperty: A shape matched but no type defines every
            credentialSubject property.
        UnrecognizedContextShape: The context matches no supported shape.
    """
    subject = extract_credential_subject_without_id(root)
    if subject is None:
        raise NoCredentialSubject("Couldn't find the attribute credentialSubject in the JSON Schema")
    properties = [p.name for p in subject.schema.properties]

    failure: Optional[ResolutionError] = None
    for shape, resolver in CONTEXT_SHAPES:
        try:
            types = resolver(context, properties)
        except MissingContextProperty as e:
            log.debug(f"jsonld shape {shape} matched but failed: {e.message}")
            failure = failure or e
            continue
        if types is not None:
            log.info(f"jsonld shape {shape} resolved types={[t.name for t in types]}")
            return types

    if failure is not None:
        raise failure
    raise UnrecognizedContextShape("The JSON LD context does not match any supported shape")
