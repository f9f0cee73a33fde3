"""Tests for mapping descriptors: list resolution policy and update write instruction."""

import pytest

from tablefed.application.services.mapping_templates import (
    GetItemRequest,
    IndexLookup,
    ListRequest,
    PassThroughRequest,
    PutItemRequest,
    ResponseShape,
    Scan,
    UpdateItemRequest,
    build_mapping,
    build_table_mappings,
)
from tablefed.domain.entities import FieldDefinition, TableDefinition
from tablefed.domain.enums import OperationKind

NOW = "2024-05-01T12:00:00Z"


class TestListPolicy:
    """Indexed fields [A, B]: first supplied wins, never an intersection."""

    request = ListRequest(("A", "B"))

    def test_only_a_uses_a_index(self) -> None:
        plan = self.request.plan({"A": "x"})
        assert plan == IndexLookup(field="A", index="A-index", value="x")

    def test_both_supplied_uses_a_index_only(self) -> None:
        plan = self.request.plan({"A": "x", "B": "y", "limit": 5})
        assert isinstance(plan, IndexLookup)
        assert plan.index == "A-index"
        assert plan.limit == 5

    def test_only_b_uses_b_index(self) -> None:
        assert self.request.plan({"B": "y"}).index == "B-index"

    def test_none_supplied_scans(self) -> None:
        assert self.request.plan({"nextToken": "t"}) == Scan(limit=None, next_token="t")

    def test_null_value_counts_as_absent(self) -> None:
        assert self.request.plan({"A": None, "B": "y"}).field == "B"


class TestWriteRequests:
    def test_put_sets_both_timestamps(self) -> None:
        key, attrs = PutItemRequest("id").build({"input": {"id": "1", "name": "n"}}, NOW)
        assert key == {"id": "1"}
        assert attrs == {"name": "n", "createdAt": NOW, "updatedAt": NOW}

    def test_update_with_one_attribute(self) -> None:
        instruction = UpdateItemRequest(("id",)).build({"id": "1", "input": {"name": "n"}}, NOW)
        assert instruction.key == {"id": "1"}
        assert instruction.expression == "SET #name = :name, #updatedAt = :updatedAt"
        assert instruction.expression_names == {"#name": "name", "#updatedAt": "updatedAt"}
        assert instruction.expression_values == {":name": "n", ":updatedAt": NOW}

    def test_update_without_attributes_sets_only_timestamp(self) -> None:
        instruction = UpdateItemRequest(("id",)).build({"id": "1", "input": {"id": "1"}}, NOW)
        assert instruction.expression == "SET #updatedAt = :updatedAt"

    def test_update_guarded_by_key_existence(self) -> None:
        guard = UpdateItemRequest(("id",)).guard
        assert guard.expression == "attribute_exists(#tfKey0)"
        assert guard.placeholders == {"#tfKey0": "id"}


class TestBuildMapping:
    def test_kinds_map_to_requests(self) -> None:
        assert isinstance(build_mapping(OperationKind.GET, "id").request, GetItemRequest)
        publish = build_mapping(OperationKind.PUBLISH, "id")
        assert isinstance(publish.request, PassThroughRequest)
        assert publish.response is ResponseShape.PASS_THROUGH
        assert build_mapping(OperationKind.LIST, "id").response is ResponseShape.CONNECTION

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError):
            build_mapping("bogus", "id")  # type: ignore[arg-type]

    def test_table_mappings_use_declared_index_order(self) -> None:
        table = TableDefinition(
            tenant_marker="abcdef0123456789",
            table_name="orders",
            table_id="t1",
            fields=(
                FieldDefinition("orderId", primary=True),
                FieldDefinition("status", indexed=True),
                FieldDefinition("customerId", indexed=True),
            ),
        )
        mappings = build_table_mappings(table)
        assert list(mappings) == list(OperationKind)
        assert mappings[OperationKind.LIST].request.indexed_fields == ("status", "customerId")
        assert mappings[OperationKind.GET].request.key_field == "orderId"
