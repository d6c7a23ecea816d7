"""Tests for JSON-LD credential type resolution."""

import pytest

from app.issuer.attributes import (
    CONTEXT_SHAPES,
    JsonLdType,
    parse_root_schema,
    resolve_iden3_types,
    resolve_serto_types,
    resolve_types,
)
from app.issuer.exceptions import (
    MissingContextProperty,
    NoCredentialSubject,
    ResolutionError,
    UnrecognizedContextShape,
)


def _schema(subject_properties, with_subject=True):
    properties = {}
    if with_subject:
        properties["credentialSubject"] = {
            "type": "object",
            "properties": subject_properties,
        }
    return parse_root_schema({
        "$metadata": {"uris": {"jsonLdContext": "https://example.com/ctx.jsonld"}},
        "type": "object",
        "properties": properties,
    })


KYC_SCHEMA_PROPERTIES = {
    "id": {"type": "string"},
    "birthday": {"type": "integer"},
    "documentType": {"type": "integer"},
}


IDEN3_CONTEXT = {
    "@context": [{
        "@protected": True,
        "@version": 1.1,
        "id": "@id",
        "type": "@type",
        "KYCAgeCredential": {
            "@id": "https://example.com/kyc-v4.jsonld#KYCAgeCredential",
            "@context": {
                "@propagate": True,
                "birthday": {"@id": "kyc-vocab:birthday", "@type": "xsd:integer"},
                "documentType": {"@id": "kyc-vocab:documentType", "@type": "xsd:integer"},
            },
        },
        "KYCCountryOfResidenceCredential": {
            "@id": "https://example.com/kyc-v4.jsonld#KYCCountryOfResidenceCredential",
            "@context": {
                "countryCode": {"@id": "kyc-vocab:countryCode", "@type": "xsd:integer"},
                "documentType": {"@id": "kyc-vocab:documentType", "@type": "xsd:integer"},
            },
        },
    }],
}


SERTO_CONTEXT = {
    "@context": {
        "@version": 1.1,
        "schema-id": "https://example.com/schemas/membership#",
        "MembershipCredential": {"@id": "schema-id"},
        "credentialSubject": {
            "@id": "https://example.com/schemas/membership#credentialSubject",
            "@context": {
                "memberName": {"@id": "schema-id:memberName"},
                "level": {"@id": "schema-id:level"},
            },
        },
    },
}


class TestIden3Shape:
    """Shape A: candidate types in a single context record."""

    def test_resolves_matching_candidate(self):
        """Only candidates defining every property are returned."""
        types = resolve_types(_schema(KYC_SCHEMA_PROPERTIES), IDEN3_CONTEXT)

        assert types == [
            JsonLdType(
                name="KYCAgeCredential",
                id="https://example.com/kyc-v4.jsonld#KYCAgeCredential",
            )
        ]

    def test_subject_id_not_required_in_context(self):
        """The subject id is not looked up in the context."""
        # "id" is part of the schema subject but absent from every candidate context
        types = resolve_types(_schema(KYC_SCHEMA_PROPERTIES), IDEN3_CONTEXT)
        assert len(types) == 1

    def test_all_candidates_returned(self):
        """Every matching candidate is returned in order."""
        types = resolve_types(_schema({"documentType": {"type": "integer"}}), IDEN3_CONTEXT)
        assert [t.name for t in types] == ["KYCAgeCredential", "KYCCountryOfResidenceCredential"]

    def test_no_candidate_defines_property(self):
        """A reason is given for each rejected candidate."""
        with pytest.raises(MissingContextProperty) as exc:
            resolve_types(_schema({"unknown": {"type": "string"}}), IDEN3_CONTEXT)

        assert len(exc.value.reasons) == 2
        assert '"unknown"' in exc.value.reasons[0]

    def test_invalid_type_id_dropped(self):
        """Candidates with a non-URL @id are dropped."""
        context = {"@context": [{
            "Broken": {"@id": "not a url", "@context": {"birthday": {}}},
            "Good": {"@id": "https://example.com#Good", "@context": {"birthday": {}}},
        }]}

        types = resolve_iden3_types(context, ["birthday"])
        assert [t.name for t in types] == ["Good"]

    def test_not_iden3_shape(self):
        """Other documents do not match the shape."""
        assert resolve_iden3_types({"@context": {}}, []) is None
        assert resolve_iden3_types({"@context": [{}, {}]}, []) is None
        assert resolve_iden3_types([], []) is None

    def test_record_without_candidates(self):
        """A record without candidate types does not match."""
        assert resolve_iden3_types({"@context": [{"@version": 1.1}]}, []) is None


class TestSertoShape:
    """Shape B: flat context tagged with a schema-id marker."""

    def test_resolves_single_type(self):
        """The tagged type id is the marker URL plus the type name."""
        schema = _schema({"memberName": {"type": "string"}, "level": {"type": "string"}})

        types = resolve_types(schema, SERTO_CONTEXT)

        assert types == [
            JsonLdType(
                name="MembershipCredential",
                id="https://example.com/schemas/membership#MembershipCredential",
            )
        ]

    def test_missing_property(self):
        """Properties missing from credentialSubject context fail."""
        with pytest.raises(MissingContextProperty, match="since"):
            resolve_types(_schema({"since": {"type": "string"}}), SERTO_CONTEXT)

    def test_marker_must_be_url(self):
        """The schema-id marker must be a URL."""
        context = {"@context": {**SERTO_CONTEXT["@context"], "schema-id": "membership"}}
        assert resolve_serto_types(context, []) is None

    def test_no_tagged_type(self):
        """A context without a tagged type does not match."""
        context = {"@context": {
            key: value
            for key, value in SERTO_CONTEXT["@context"].items()
            if key != "MembershipCredential"
        }}
        assert resolve_serto_types(context, []) is None


class TestResolveTypes:
    """Shape dispatch and failure modes."""

    def test_shapes_tried_in_order(self):
        """Shapes are tried in a fixed order."""
        assert [name for name, _ in CONTEXT_SHAPES] == ["iden3", "serto"]

    def test_no_credential_subject(self):
        """Schemas without credentialSubject are rejected."""
        with pytest.raises(NoCredentialSubject):
            resolve_types(_schema({}, with_subject=False), IDEN3_CONTEXT)

    def test_credential_subject_not_object(self):
        """credentialSubject must be an object."""
        schema = parse_root_schema({
            "$metadata": {"uris": {"jsonLdContext": "https://example.com/ctx"}},
            "type": "object",
            "properties": {"credentialSubject": {"type": "string"}},
        })

        with pytest.raises(NoCredentialSubject):
            resolve_types(schema, IDEN3_CONTEXT)

    def test_no_credential_subject_checked_before_shape(self):
        """The schema is checked before the context."""
        with pytest.raises(NoCredentialSubject):
            resolve_types(_schema({}, with_subject=False), {"garbage": True})

    def test_unrecognized_shape(self):
        """Unmatched contexts are reported."""
        with pytest.raises(UnrecognizedContextShape):
            resolve_types(_schema({"a": {"type": "string"}}), {"@context": "https://example.com"})

    def test_all_failures_are_resolution_errors(self):
        """Resolution failures share a base class."""
        for exc_type in (NoCredentialSubject, UnrecognizedContextShape, MissingContextProperty):
            assert issubclass(exc_type, ResolutionError)
