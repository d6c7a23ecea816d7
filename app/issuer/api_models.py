"""
Issuer attribute engine API models.

Request/response bodies for the HTTP surface in app.main, the issuance
forms, and the error code registry shared by the engine exceptions.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, HttpUrl, model_validator


# =============================================================================
# Error Models
# =============================================================================

class ErrorDetail(BaseModel):
    """Structured engine error returned to API callers."""
    code: str
    message: str
    path: List[Union[int, str]] = Field(default_factory=list)


class ErrorCode:
    """Error code registry for the attribute engine."""
    # Schema parsing
    SCHEMA_INVALID = "SCHEMA_INVALID"

    # Value decoding
    VALUE_MISSING_REQUIRED = "VALUE_MISSING_REQUIRED"
    VALUE_TYPE_MISMATCH = "VALUE_TYPE_MISMATCH"
    VALUE_NOT_IN_ENUM = "VALUE_NOT_IN_ENUM"

    # JSON-LD type resolution
    JSONLD_NO_CREDENTIAL_SUBJECT = "JSONLD_NO_CREDENTIAL_SUBJECT"
    JSONLD_UNRECOGNIZED_SHAPE = "JSONLD_UNRECOGNIZED_SHAPE"
    JSONLD_MISSING_PROPERTY = "JSONLD_MISSING_PROPERTY"

    # API envelopes and issuance forms
    DECODE_FAILED = "DECODE_FAILED"
    ISSUANCE_INVALID = "ISSUANCE_INVALID"


# =============================================================================
# Request Models
# =============================================================================

class ParseSchemaRequest(BaseModel):
    """Body for /schemas/parse: an already-fetched JSON Schema document."""
    json_schema: Dict[str, Any]


class ResolveTypesRequest(BaseModel):
    """Body for /schemas/types: schema document plus its JSON-LD context."""
    json_schema: Dict[str, Any]
    json_ld_context: Dict[str, Any]


class CredentialSubjectRequest(BaseModel):
    """Body for /credentials/subject: schema document plus form values."""
    json_schema: Dict[str, Any]
    credential_subject: Dict[str, Any] = Field(default_factory=dict)


class ProofType(str, Enum):
    """Proof types selectable at issuance."""
    BJJ_SIGNATURE = "BJJSignature2021"
    SPARSE_MERKLE_TREE = "Iden3SparseMerkleTreeProof"


class CredentialIssuance(BaseModel):
    """Form data shared by both issuance methods."""
    credential_subject: Dict[str, Any] = Field(default_factory=dict)
    credential_expiration: Optional[datetime] = None
    display_method_url: Optional[HttpUrl] = None
    refresh_service_url: Optional[HttpUrl] = None
    mt_proof: bool = False
    signature_proof: bool = True

    @model_validator(mode="after")
    def _require_proof(self) -> "CredentialIssuance":
        if not (self.mt_proof or self.signature_proof):
            raise ValueError("At least one proof type is required")
        return self

    @property
    def proofs(self) -> List[ProofType]:
        proofs = []
        if self.mt_proof:
            proofs.append(ProofType.SPARSE_MERKLE_TREE)
        if self.signature_proof:
            proofs.append(ProofType.BJJ_SIGNATURE)
        return proofs


class DirectIssuance(CredentialIssuance):
    """Issue straight to a known holder DID."""
    did: str = Field(min_length=1)


class LinkIssuance(CredentialIssuance):
    """Issue through a claim link the holder opens later."""
    accessible_until: Optional[datetime] = None
    maximum_issuance: Optional[int] = Field(default=None, ge=1)


class CredentialPayloadRequest(BaseModel):
    """Body for /credentials/payload: schema document plus direct issuance form."""
    json_schema: Dict[str, Any]
    schema_url: str
    credential_type: str
    issuance: DirectIssuance


# =============================================================================
# Response Models
# =============================================================================

class AttributeNode(BaseModel):
    """Serializable view of a parsed attribute."""
    name: str
    type: str
    required: bool
    title: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    format: Optional[str] = None
    item: Optional["AttributeNode"] = None
    properties: Optional[List["AttributeNode"]] = None
    schemas: Optional[List["AttributeNode"]] = None


AttributeNode.model_rebuild()


class ParseSchemaResponse(BaseModel):
    """Response for /schemas/parse."""
    json_ld_context_uri: str
    attribute: AttributeNode


class JsonLdTypeModel(BaseModel):
    name: str
    id: str


class ResolveTypesResponse(BaseModel):
    """Response for /schemas/types."""
    types: List[JsonLdTypeModel]


class CredentialSubjectResponse(BaseModel):
    """Response for /credentials/subject."""
    credential_subject: Dict[str, Any]


class ErrorResponse(BaseModel):
    errors: List[ErrorDetail]
