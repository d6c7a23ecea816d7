"""Credential issuer attribute engine.

Subpackages and modules:
- attributes: schema parsing, value decoding/encoding, JSON-LD type resolution
- batch: partial-failure list decoding for API responses
- resources: strict API record models
- issuance: issuance payload builders
- exceptions: EngineError hierarchy
"""

from .batch import (
    BatchResult,
    Page,
    PaginationMeta,
    decode_data_list,
    decode_list,
    decode_paginated,
    format_issues,
    model_decoder,
)
from .exceptions import (
    AttributeValueError,
    DecodeError,
    EngineError,
    Issue,
    IssuanceError,
    MissingContextProperty,
    MissingRequiredValue,
    NoCredentialSubject,
    ResolutionError,
    SchemaError,
    UnrecognizedContextShape,
    ValueNotInEnum,
    ValueTypeMismatch,
)

__all__ = [
    # Batch decoding
    "BatchResult",
    "Page",
    "PaginationMeta",
    "decode_list",
    "decode_data_list",
    "decode_paginated",
    "format_issues",
    "model_decoder",
    # Exceptions
    "EngineError",
    "SchemaError",
    "AttributeValueError",
    "MissingRequiredValue",
    "ValueTypeMismatch",
    "ValueNotInEnum",
    "ResolutionError",
    "NoCredentialSubject",
    "UnrecognizedContextShape",
    "MissingContextProperty",
    "DecodeError",
    "Issue",
    "IssuanceError",
]
