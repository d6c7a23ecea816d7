import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.logging_config import configure_logging
from app.issuer.api_models import (
    AttributeNode,
    CredentialPayloadRequest,
    CredentialSubjectRequest,
    CredentialSubjectResponse,
    ErrorDetail,
    ErrorResponse,
    JsonLdTypeModel,
    ParseSchemaRequest,
    ParseSchemaResponse,
    ResolveTypesRequest,
    ResolveTypesResponse,
)
from app.issuer.attributes import (
    AnyAttribute,
    ArraySchema,
    MultiAttribute,
    ObjectSchema,
    Schema,
    collect_value_errors,
    extract_credential_subject,
    extract_credential_subject_without_id,
    make_attribute_optional,
    normalize_form_values,
    parse_root_schema,
    resolve_types,
    serialize_schema_form,
)
from app.issuer.exceptions import EngineError, NoCredentialSubject
from app.issuer.issuance import serialize_credential_issuance

configure_logging()
log = logging.getLogger("issuer")

app = FastAPI(title="Issuer Attribute Engine", version="0.1.0")


def _error_detail(error: EngineError) -> ErrorDetail:
    return ErrorDetail(code=error.code, message=error.message, path=list(error.path))


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    log.info(f"engine_error code={exc.code} msg={exc}", extra={"route": request.url.path, "code": exc.code})
    body = ErrorResponse(errors=[_error_detail(exc)])
    return JSONResponse(status_code=422, content=body.model_dump())


@app.middleware("http")
async def req_log(request: Request, call_next):
    start = time.time()
    route = request.url.path
    remote = request.client.host if request.client else "-"
    resp = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    log.info(f"request_complete status={resp.status_code} duration_ms={duration_ms}",
             extra={"request_id": "-", "route": route, "remote_addr": remote})
    return resp


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.get("/version")
def version():
    # GIT_SHA is injected at deploy time
    return {"git_sha": os.getenv("GIT_SHA", "unknown")}


@app.get("/admin")
def admin():
    """Return all configurable items for operator visibility.

    Gated by ADMIN_ENDPOINT_ENABLED (default: True for dev, False for prod).
    """
    from app.core.config import (
        ADMIN_ENDPOINT_ENABLED,
        CREDENTIAL_SUBJECT_KEY,
        DATE_FORMATS,
        MAX_SCHEMA_DEPTH,
        SCHEMA_ID_MARKER,
    )
    from app.issuer.attributes import CONTEXT_SHAPES

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    return {
        "normative": {
            "credential_subject_key": CREDENTIAL_SUBJECT_KEY,
            "schema_id_marker": SCHEMA_ID_MARKER,
            "date_formats": sorted(DATE_FORMATS),
        },
        "policy": {
            "max_schema_depth": MAX_SCHEMA_DEPTH,
        },
        "features": {
            "json_ld_context_shapes": [name for name, _ in CONTEXT_SHAPES],
            "admin_endpoint_enabled": ADMIN_ENDPOINT_ENABLED,
        },
        "environment": {
            "log_level": logging.getLogger().getEffectiveLevel(),
            "log_level_name": logging.getLevelName(logging.getLogger().getEffectiveLevel()),
        },
    }


class LogLevelRequest(BaseModel):
    level: str


@app.post("/admin/log-level")
def set_log_level(req: LogLevelRequest):
    """Change log level at runtime (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Gated by ADMIN_ENDPOINT_ENABLED.
    """
    from app.core.config import ADMIN_ENDPOINT_ENABLED

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    level_upper = req.level.upper()

    if level_upper not in valid_levels:
        return JSONResponse(
            status_code=400,
            content={"detail": f"Invalid log level. Must be one of: {valid_levels}"}
        )

    logging.getLogger().setLevel(getattr(logging, level_upper))
    logging.getLogger("issuer").setLevel(getattr(logging, level_upper))

    log.info(f"Log level changed to {level_upper}")

    return {
        "success": True,
        "log_level": level_upper,
        "message": f"Log level set to {level_upper}"
    }


# =============================================================================
# Schema endpoints
# =============================================================================

def _schema_node(name: str, required: bool, schema: Schema) -> AttributeNode:
    node = AttributeNode(
        name=name,
        type=schema.type.value,
        required=required,
        title=schema.title,
        description=schema.description,
        enum=list(schema.enum) if getattr(schema, "enum", None) is not None else None,
        format=getattr(schema, "format", None),
    )
    if isinstance(schema, ArraySchema) and schema.item is not None:
        node.item = attribute_node(schema.item)
    if isinstance(schema, ObjectSchema):
        node.properties = [attribute_node(p) for p in schema.properties]
    return node


def attribute_node(attribute: AnyAttribute) -> AttributeNode:
    """Serializable view of a parsed attribute tree."""
    if isinstance(attribute, MultiAttribute):
        return AttributeNode(
            name=attribute.name,
            type=attribute.type.value,
            required=attribute.required,
            schemas=[_schema_node(attribute.name, attribute.required, s) for s in attribute.schemas],
        )
    return _schema_node(attribute.name, attribute.required, attribute.schema)


@app.post("/schemas/parse", response_model=ParseSchemaResponse)
def parse_schema(req: ParseSchemaRequest):
    root = parse_root_schema(req.json_schema)
    return ParseSchemaResponse(
        json_ld_context_uri=root.metadata.json_ld_context_uri,
        attribute=attribute_node(root.attribute),
    )


@app.post("/schemas/types", response_model=ResolveTypesResponse)
def schema_types(req: ResolveTypesRequest):
    root = parse_root_schema(req.json_schema)
    types = resolve_types(root, req.json_ld_context)
    return ResolveTypesResponse(types=[JsonLdTypeModel(name=t.name, id=t.id) for t in types])


# =============================================================================
# Credential endpoints
# =============================================================================

@app.post("/credentials/subject", response_model=CredentialSubjectResponse)
def credential_subject(req: CredentialSubjectRequest, partial: bool = False):
    """Check form values against the schema's credentialSubject.

    With ``partial=true`` every property is treated as optional, so a form
    still being filled in only reports values of the wrong type.
    """
    root = parse_root_schema(req.json_schema)
    attribute = extract_credential_subject_without_id(root)
    if attribute is None:
        raise NoCredentialSubject("Couldn't find the attribute credentialSubject in the JSON Schema")
    if partial:
        attribute = make_attribute_optional(attribute)

    errors = collect_value_errors(attribute, normalize_form_values(req.credential_subject))
    if errors:
        body = ErrorResponse(errors=[_error_detail(e) for e in errors])
        return JSONResponse(status_code=422, content=body.model_dump())

    subject = serialize_schema_form(attribute, req.credential_subject)
    return CredentialSubjectResponse(credential_subject=subject or {})


@app.post("/credentials/payload")
def credential_payload(req: CredentialPayloadRequest):
    """Build the direct-issuance request body for a credential."""
    root = parse_root_schema(req.json_schema)
    attribute = extract_credential_subject(root)
    if attribute is None:
        raise NoCredentialSubject("Couldn't find the attribute credentialSubject in the JSON Schema")
    return serialize_credential_issuance(attribute, req.issuance, req.schema_url, req.credential_type)
