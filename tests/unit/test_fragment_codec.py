"""Tests for the tenant fragment blob codec."""

import json

import pytest

from tablefed.application.services.fragment_codec import decode_fragment, encode_fragment
from tablefed.domain.entities import (
    FieldDefinition,
    SubscriptionFilter,
    SubscriptionSpec,
    TableDefinition,
    TenantFragment,
)
from tablefed.domain.exceptions import ValidationException

MARKER = "abcdef0123456789"


def _fragment() -> TenantFragment:
    table = TableDefinition(
        tenant_marker=MARKER,
        table_name="orders",
        table_id="tbl1",
        fields=(
            FieldDefinition("orderId", primary=True),
            FieldDefinition("status", indexed=True),
        ),
        subscription_specs=(SubscriptionSpec((SubscriptionFilter("status"),)),),
    )
    return TenantFragment(MARKER, (table,), generated_at="2024-05-01T00:00:00Z")


def test_encoded_fragment_includes_subscription_operations() -> None:
    data = json.loads(encode_fragment(_fragment()))
    ops = data["tables"][0]["subscriptionQueries"]
    type_name = f"T{MARKER}_orders"
    assert set(ops) == {f"on{type_name}Create", f"on{type_name}Update", f"on{type_name}Delete"}
    assert "($status: String)" in ops[f"on{type_name}Create"]


def test_decode_restores_tables() -> None:
    fragment = decode_fragment(MARKER, encode_fragment(_fragment()))
    assert fragment.table_names() == ["orders"]
    assert fragment.tables[0] == _fragment().tables[0]


def test_decode_rejects_wrong_tenant() -> None:
    with pytest.raises(ValidationException, match="does not match"):
        decode_fragment("0000000000000000", encode_fragment(_fragment()))


@pytest.mark.parametrize("body", ["{not json", json.dumps({"tables": []})])
def test_decode_rejects_malformed_blob(body: str) -> None:
    with pytest.raises(ValidationException):
        decode_fragment(MARKER, body)


def test_decode_drops_invalid_table_only() -> None:
    data = json.loads(encode_fragment(_fragment()))
    data["tables"].append(
        {
            "tableName": "bad-name",
            "tableId": "tbl2",
            "fields": [{"name": "id", "primary": True}],
        }
    )
    fragment = decode_fragment(MARKER, json.dumps(data))
    assert fragment.table_names() == ["orders"]
