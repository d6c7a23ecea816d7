"""Strict API record models.

Records returned by the issuer REST API have a fixed contract, so they are
decoded strictly: any unrecognized field is rejected and scalar fields are
never coerced (no "5" for 5, no "yes" for true), so contract drift is
surfaced instead of silently ignored. Timestamps stay lax so ISO strings
parse into datetime. Credential subjects inside these records stay
untyped; they are schema-defined and are checked with the permissive value
decoder in app.issuer.attributes.values instead.

List endpoints are decoded with the partial-failure decoders in
app.issuer.batch, e.g. ``decode_paginated(model_decoder(Key))``.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .api_models import ProofType
from .batch import decode_data_list, decode_paginated, model_decoder


class StrictModel(BaseModel):
    """Base for API records: camelCase on the wire, no extra fields."""
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Enumerations
# =============================================================================

class KeyType(str, Enum):
    BABYJUBJUB = "BJJ"
    ETHEREUM = "ETH"


class CredentialStatusType(str, Enum):
    REVOCATION_STATUS = "Iden3commRevocationStatusV1.0"
    REVERSE_SPARSE_MERKLE_TREE = "Iden3ReverseSparseMerkleTreeProof"
    ONCHAIN_SPARSE_MERKLE_TREE = "Iden3OnchainSparseMerkleTreeProof2023"


class Method(str, Enum):
    IDEN3 = "iden3"
    POLYGONID = "polygonid"


class DisplayMethodType(str, Enum):
    BASIC_V2 = "Iden3BasicDisplayMethodv2"


class LinkStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXCEEDED = "exceeded"


# Proof type names as reported on links
LINK_PROOF_TYPES: Dict[str, ProofType] = {
    "BJJSignature2021": ProofType.BJJ_SIGNATURE,
    "SparseMerkleTreeProof": ProofType.SPARSE_MERKLE_TREE,
}


# =============================================================================
# Records
# =============================================================================

class Key(StrictModel):
    id: StrictStr
    is_auth_credential: StrictBool
    key_type: KeyType
    name: StrictStr
    public_key: StrictStr


class Identity(StrictModel):
    blockchain: StrictStr
    credential_status_type: CredentialStatusType
    display_name: Optional[StrictStr]
    identifier: StrictStr
    method: Method
    network: StrictStr


class DisplayMethod(StrictModel):
    id: StrictStr
    name: StrictStr
    type: DisplayMethodType
    url: HttpUrl


class Credential(StrictModel):
    created_at: datetime
    credential_subject: Dict[str, Any]
    expired: StrictBool
    expires_at: Optional[datetime]
    id: StrictStr
    rev_nonce: StrictInt
    revoked: StrictBool
    schema_type: StrictStr
    schema_url: StrictStr


class Link(StrictModel):
    active: StrictBool
    credential_subject: Dict[str, Any]
    expiration: Optional[datetime]
    id: StrictStr
    issued_claims: StrictInt
    max_issuance: Optional[StrictInt]
    proof_types: List[ProofType]
    schema_type: StrictStr
    schema_url: StrictStr
    status: LinkStatus

    @field_validator("proof_types", mode="before")
    @classmethod
    def _map_link_proof_types(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [LINK_PROOF_TYPES.get(v, v) if isinstance(v, str) else v for v in value]


class IDResponse(StrictModel):
    id: StrictStr = Field(min_length=1)


# =============================================================================
# List decoders
# =============================================================================

decode_identities = decode_data_list(model_decoder(Identity))
decode_credentials = decode_data_list(model_decoder(Credential))
decode_links = decode_data_list(model_decoder(Link))
decode_keys_page = decode_paginated(model_decoder(Key))
decode_display_methods_page = decode_paginated(model_decoder(DisplayMethod))
decode_credentials_page = decode_paginated(model_decoder(Credential))
