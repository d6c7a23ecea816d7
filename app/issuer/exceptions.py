"""Attribute engine exceptions.

Each exception carries an error code from api_models.ErrorCode and the JSON
path at which the problem was found. The caller is responsible for
converting these to ErrorDetail.

- SchemaError -> SCHEMA_INVALID
- AttributeValueError subclasses -> VALUE_*
- ResolutionError subclasses -> JSONLD_*
- DecodeError -> DECODE_FAILED
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from app.issuer.api_models import ErrorCode

PathElement = Union[int, str]
Path = Tuple[PathElement, ...]


def format_path(path: Sequence[PathElement]) -> str:
    return ".".join(str(p) for p in path)


class EngineError(Exception):
    """Base exception for the attribute engine."""

    code: str = ErrorCode.DECODE_FAILED

    def __init__(self, message: str, path: Sequence[PathElement] = ()):
        self.message = message
        self.path: Path = tuple(path)
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} at {format_path(self.path)}"
        return self.message


# =============================================================================
# Schema parsing
# =============================================================================

class SchemaError(EngineError):
    """Malformed JSON Schema structure.

    Fatal: a broken node invalidates the whole subtree and the parse aborts.
    Maps to ErrorCode.SCHEMA_INVALID.
    """
    code = ErrorCode.SCHEMA_INVALID


# =============================================================================
# Value decoding
# =============================================================================

class AttributeValueError(EngineError):
    """Concrete value does not satisfy its attribute schema."""
    pass


class MissingRequiredValue(AttributeValueError):
    """Required property absent from the value.

    Maps to ErrorCode.VALUE_MISSING_REQUIRED.
    """
    code = ErrorCode.VALUE_MISSING_REQUIRED

    @classmethod
    def at(cls, path: Sequence[PathElement]) -> "MissingRequiredValue":
        name = path[-1] if path else "value"
        return cls(f'Missing required property "{name}"', path)


class ValueTypeMismatch(AttributeValueError):
    """Value has the wrong runtime type for its attribute.

    Maps to ErrorCode.VALUE_TYPE_MISMATCH.
    """
    code = ErrorCode.VALUE_TYPE_MISMATCH


class ValueNotInEnum(AttributeValueError):
    """Value is not one of the attribute's enum constants.

    Maps to ErrorCode.VALUE_NOT_IN_ENUM.
    """
    code = ErrorCode.VALUE_NOT_IN_ENUM


# =============================================================================
# JSON-LD type resolution
# =============================================================================

class ResolutionError(EngineError):
    """JSON-LD type resolution failed. Partial results are never returned."""
    pass


class NoCredentialSubject(ResolutionError):
    """Schema has no object-typed credentialSubject property.

    Maps to ErrorCode.JSONLD_NO_CREDENTIAL_SUBJECT.
    """
    code = ErrorCode.JSONLD_NO_CREDENTIAL_SUBJECT


class UnrecognizedContextShape(ResolutionError):
    """JSON-LD context matches none of the supported shapes.

    Maps to ErrorCode.JSONLD_UNRECOGNIZED_SHAPE.
    """
    code = ErrorCode.JSONLD_UNRECOGNIZED_SHAPE


class MissingContextProperty(ResolutionError):
    """Context shape matched but schema properties are missing from it.

    Carries one reason per rejected candidate type.
    Maps to ErrorCode.JSONLD_MISSING_PROPERTY.
    """
    code = ErrorCode.JSONLD_MISSING_PROPERTY

    def __init__(self, message: str, reasons: Sequence[str] = ()):
        super().__init__(message)
        self.reasons: List[str] = list(reasons)


# =============================================================================
# Envelope / item decoding
# =============================================================================

@dataclass(frozen=True)
class Issue:
    """A single decoding problem at a JSON path."""
    path: Path
    message: str

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} at {format_path(self.path)}"
        return self.message


class DecodeError(EngineError):
    """One or more issues found while decoding an API payload.

    Maps to ErrorCode.DECODE_FAILED.
    """
    code = ErrorCode.DECODE_FAILED

    def __init__(self, issues: Sequence[Issue]):
        self.issues: List[Issue] = list(issues)
        first = self.issues[0] if self.issues else Issue((), "Decoding failed")
        super().__init__(first.message, first.path)

    @classmethod
    def single(cls, message: str, path: Sequence[PathElement] = ()) -> "DecodeError":
        return cls([Issue(tuple(path), message)])

    def prefixed(self, *prefix: PathElement) -> "DecodeError":
        """Copy of this error with prefix prepended to every issue path."""
        return DecodeError([Issue(tuple(prefix) + i.path, i.message) for i in self.issues])


class IssuanceError(EngineError):
    """Issuance form data cannot be turned into a payload.

    Maps to ErrorCode.ISSUANCE_INVALID.
    """
    code = ErrorCode.ISSUANCE_INVALID
