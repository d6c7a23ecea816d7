"""
Issuer attribute engine configuration constants.

Constants are organized into:
- NORMATIVE: Fixed by the JSON Schema / JSON-LD conventions the issuer relies on
- POLICY: Implementation choices where a limit must be enforced
- ISSUANCE: Fixed type identifiers used when building issuance payloads
- OPERATIONAL: Deployment-specific settings (env vars)
"""

import os

# =============================================================================
# NORMATIVE CONSTANTS
# =============================================================================

# Root schema property holding the claim's user-facing data fields
CREDENTIAL_SUBJECT_KEY: str = "credentialSubject"

# Subject identifier property. Defined by the base credentials context, so it
# is never looked up in a schema-specific JSON-LD context.
CREDENTIAL_SUBJECT_ID_KEY: str = "id"

# Name given to the root attribute produced from a schema document
ROOT_ATTRIBUTE_NAME: str = "schema"

# Name given to the element attribute of an array schema
ARRAY_ITEM_ATTRIBUTE_NAME: str = "items"

# Marker used by flat ("serto") JSON-LD contexts to tag the credential type
SCHEMA_ID_MARKER: str = "schema-id"

# String formats that are reshaped into a canonical template on encode
DATE_FORMATS: frozenset[str] = frozenset({"date", "date-time", "time"})

# =============================================================================
# POLICY CONSTANTS
# =============================================================================

# Maximum nesting depth accepted by the schema parser. Schema documents are
# fetched from arbitrary URLs, so recursion must be bounded.
MAX_SCHEMA_DEPTH: int = int(os.getenv("ISSUER_MAX_SCHEMA_DEPTH", "32"))

# =============================================================================
# ISSUANCE CONSTANTS
# =============================================================================

DISPLAY_METHOD_TYPE: str = "Iden3BasicDisplayMethodv2"
REFRESH_SERVICE_TYPE: str = "Iden3RefreshService2023"

# =============================================================================
# OPERATIONAL SETTINGS (deployment-specific, via environment variables)
# =============================================================================

# Admin endpoint visibility
# Default: True for dev, set to False in production deployments
ADMIN_ENDPOINT_ENABLED: bool = os.getenv("ADMIN_ENDPOINT_ENABLED", "true").lower() == "true"
