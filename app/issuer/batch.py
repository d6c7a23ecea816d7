"""Partial-failure list decoding.

Every list-returning API response is decoded item by item: a malformed
element is reported in ``failed`` (with its index prepended to the error
path) and never discards the rest of the list.

An item decoder is any callable taking one raw JSON value and returning the
decoded item, raising DecodeError, a pydantic ValidationError, or one of the
engine's path-tagged errors on failure. Any other exception propagates.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .exceptions import DecodeError, EngineError, Issue, PathElement

log = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

ItemDecoder = Callable[[Any], T]

# Errors an item decoder may raise to report a bad item
ITEM_ERRORS = (DecodeError, ValidationError, EngineError)


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Outcome of decoding a list: usable items plus per-item diagnostics."""
    successful: List[T] = field(default_factory=list)
    failed: List[DecodeError] = field(default_factory=list)


class PaginationMeta(BaseModel):
    """Pagination envelope metadata. Counts must be JSON integers, never coerced."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    page: StrictInt = Field(ge=1)
    max_results: StrictInt = Field(ge=1)
    total: StrictInt = Field(ge=0)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: BatchResult[T]
    meta: PaginationMeta


def to_decode_error(error: Exception) -> DecodeError:
    """Normalize any item decoding failure into a DecodeError."""
    if isinstance(error, DecodeError):
        return error
    if isinstance(error, ValidationError):
        return DecodeError([
            Issue(tuple(detail["loc"]), detail["msg"]) for detail in error.errors()
        ])
    if isinstance(error, EngineError):
        return DecodeError([Issue(error.path, error.message)])
    raise TypeError(f"Not a decoding error: {type(error).__name__}")


def format_issues(error: Exception) -> List[str]:
    """Render a decoding failure as "message at a.b.c" lines."""
    return [str(issue) for issue in to_decode_error(error).issues]


def model_decoder(model: Type[M]) -> ItemDecoder[M]:
    """Item decoder validating one raw item against a pydantic model."""
    return model.model_validate


def decode_list(item_decoder: ItemDecoder[T]) -> Callable[[Any], BatchResult[T]]:
    """Build a decoder for a list of independently decoded items.

    The returned decoder never short-circuits: each element is decoded on its
    own, successes keep their relative order, and each failure is recorded
    with the element's index prepended to every issue path.

    Raises (from the returned decoder):
        DecodeError: If the input itself is not a list.
    """

    def decode(raw: Any) -> BatchResult[T]:
        if not isinstance(raw, list):
            raise DecodeError.single(f"Expected array, received {type(raw).__name__}")

        successful: List[T] = []
        failed: List[DecodeError] = []
        for index, item in enumerate(raw):
            try:
                successful.append(item_decoder(item))
            except ITEM_ERRORS as e:
                error = to_decode_error(e).prefixed(index)
                log.warning(f"list item {index} failed to decode: {'; '.join(format_issues(error))}")
                failed.append(error)
        return BatchResult(successful=successful, failed=failed)

    return decode


def _envelope_field(raw: Any, key: str) -> Any:
    if not isinstance(raw, dict):
        raise DecodeError.single(f"Expected object, received {type(raw).__name__}")
    if key not in raw:
        raise DecodeError.single("Required", (key,))
    return raw[key]


def _decode_field(decoder: Callable[[Any], Any], raw: Any, *prefix: PathElement) -> Any:
    try:
        return decoder(raw)
    except ITEM_ERRORS as e:
        raise to_decode_error(e).prefixed(*prefix)


def decode_data_list(item_decoder: ItemDecoder[T]) -> Callable[[Any], BatchResult[T]]:
    """Decoder for ``{"data": [T, ...]}`` list envelopes."""
    items = decode_list(item_decoder)

    def decode(raw: Any) -> BatchResult[T]:
        return _decode_field(items, _envelope_field(raw, "data"), "data")

    return decode


def decode_paginated(item_decoder: ItemDecoder[T]) -> Callable[[Any], Page[T]]:
    """Decoder for ``{"items": [T, ...], "meta": {page, max_results, total}}``."""
    items = decode_list(item_decoder)

    def decode(raw: Any) -> Page[T]:
        decoded_items = _decode_field(items, _envelope_field(raw, "items"), "items")
        meta = _decode_field(PaginationMeta.model_validate, _envelope_field(raw, "meta"), "meta")
        return Page(items=decoded_items, meta=meta)

    return decode
