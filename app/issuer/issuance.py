"""Issuance payload builders.

Turns issuance form data plus the credentialSubject attribute of a parsed
schema into the request bodies for direct credential issuance and for
credential links. The credentialSubject goes through
serialize_schema_form, so it is checked against the schema before any
request is built.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import HttpUrl

from app.core.config import (
    CREDENTIAL_SUBJECT_ID_KEY,
    DISPLAY_METHOD_TYPE,
    REFRESH_SERVICE_TYPE,
)
from .api_models import DirectIssuance, LinkIssuance
from .attributes.models import AnyAttribute, UNSET
from .attributes.values import format_date_value, serialize_schema_form
from .exceptions import IssuanceError

log = logging.getLogger(__name__)


def _service(url: Optional[HttpUrl], service_type: str) -> Optional[Dict[str, str]]:
    if url is None:
        return None
    return {"id": str(url), "type": service_type}


def _subject(attribute: AnyAttribute, values: Dict[str, Any]) -> Dict[str, Any]:
    encoded = serialize_schema_form(attribute, values)
    return {} if encoded is UNSET else encoded


def serialize_credential_issuance(
    attribute: AnyAttribute,
    issuance: DirectIssuance,
    credential_schema: str,
    credential_type: str,
) -> Dict[str, Any]:
    """Build the create-credential request body.

    The holder DID is injected as the credentialSubject ``id``, so
    ``attribute`` must be the full credentialSubject attribute.

    Raises:
        AttributeValueError: If the subject does not satisfy the schema.
    """
    subject = {**issuance.credential_subject, CREDENTIAL_SUBJECT_ID_KEY: issuance.did}
    expiration = issuance.credential_expiration
    if expiration is not None and expiration.tzinfo is None:
        expiration = expiration.replace(tzinfo=timezone.utc)

    return {
        "credentialSchema": credential_schema,
        "credentialSubject": _subject(attribute, subject),
        "displayMethod": _service(issuance.display_method_url, DISPLAY_METHOD_TYPE),
        "expiration": int(expiration.timestamp()) if expiration is not None else None,
        "proofs": [p.value for p in issuance.proofs],
        "refreshService": _service(issuance.refresh_service_url, REFRESH_SERVICE_TYPE),
        "type": credential_type,
    }


def serialize_link_issuance(
    attribute: AnyAttribute,
    issuance: LinkIssuance,
    schema_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the create-link request body.

    ``attribute`` is the credentialSubject without its ``id`` property; the
    holder supplies it when claiming the link.

    Raises:
        IssuanceError: If the link would already be expired.
        AttributeValueError: If the subject does not satisfy the schema.
    """
    now = now or datetime.now(timezone.utc)
    accessible_until = issuance.accessible_until
    if accessible_until is not None:
        if accessible_until.tzinfo is None:
            accessible_until = accessible_until.replace(tzinfo=timezone.utc)
        if accessible_until < now:
            raise IssuanceError("Link accessible until must be a date/time in the future.")

    expiration = issuance.credential_expiration
    payload = {
        "credentialExpiration": format_date_value(expiration, "date-time") if expiration else None,
        "credentialSubject": _subject(attribute, issuance.credential_subject),
        "displayMethod": _service(issuance.display_method_url, DISPLAY_METHOD_TYPE),
        "expiration": format_date_value(accessible_until, "date-time") if accessible_until else None,
        "limitedClaims": issuance.maximum_issuance,
        "mtProof": issuance.mt_proof,
        "refreshService": _service(issuance.refresh_service_url, REFRESH_SERVICE_TYPE),
        "schemaID": schema_id,
        "signatureProof": issuance.signature_proof,
    }
    log.debug(f"link payload built for schema {schema_id}")
    return payload
