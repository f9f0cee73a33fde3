"""Tenant fragment blob codec (JSON, validated with jsonschema).

The fragment blob is the unit the sync pipeline reads back, possibly written
by an older version or damaged mid-write, so decoding is defensive: the
envelope must match FRAGMENT_SCHEMA, and single tables failing domain
validation are dropped with a warning instead of failing the fragment.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import jsonschema

from tablefed.application.services.schema_synthesizer import render_subscription_operations
from tablefed.domain.entities import TableDefinition, TenantFragment
from tablefed.domain.exceptions import ValidationException

logger = logging.getLogger(__name__)

FRAGMENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["tenantMarker", "tables"],
    "properties": {
        "tenantMarker": {"type": "string", "minLength": 1},
        "generatedAt": {"type": "string"},
        "tables": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["tableName", "tableId", "fields"],
                "properties": {
                    "tableName": {"type": "string"},
                    "tableId": {"type": "string"},
                    "fields": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "required": ["name"],
                            "properties": {
                                "name": {"type": "string"},
                                "type": {"type": "string"},
                                "required": {"type": "boolean"},
                                "indexed": {"type": "boolean"},
                                "primary": {"type": "boolean"},
                            },
                        },
                    },
                    "subscriptions": {"type": "array"},
                    "description": {"type": "string"},
                },
            },
        },
    },
}


def encode_fragment(fragment: TenantFragment) -> str:
    """Serialize a fragment, including client subscription operations per table."""
    tables = []
    for table in fragment.tables:
        item = table.to_dict()
        item["subscriptionQueries"] = render_subscription_operations(table)
        tables.append(item)
    return json.dumps(
        {
            "tenantMarker": fragment.tenant_marker,
            "generatedAt": fragment.generated_at,
            "tables": tables,
        },
        indent=2,
        sort_keys=True,
    )


def decode_fragment(tenant_marker: str, body: str) -> TenantFragment:
    """Parse and validate a fragment blob.

    Raises:
        ValidationException: Body is not JSON, fails FRAGMENT_SCHEMA, or was
            written for another tenant.
    """
    try:
        data = json.loads(body)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValidationException(f"Fragment is not valid JSON: {e}") from e
    try:
        jsonschema.validate(instance=data, schema=FRAGMENT_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValidationException(f"Fragment failed validation: {e.message}") from e
    if data["tenantMarker"] != tenant_marker:
        raise ValidationException(
            "Fragment tenant marker does not match its path", field="tenantMarker"
        )
    tables: list[TableDefinition] = []
    for raw in data["tables"]:
        raw = {**raw, "tenantMarker": tenant_marker}
        try:
            tables.append(TableDefinition.from_dict(raw))
        except ValidationException as e:
            logger.warning(
                "Skipping invalid table %s in fragment %s: %s",
                raw.get("tableName"),
                tenant_marker,
                e.message,
            )
    return TenantFragment(
        tenant_marker=tenant_marker,
        tables=tuple(tables),
        generated_at=data.get("generatedAt", ""),
    )
