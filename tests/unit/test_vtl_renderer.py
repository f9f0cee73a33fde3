"""Tests for the AppSync VTL renderer."""

import json

import pytest

from tablefed.application.services.mapping_templates import (
    ListRequest,
    MappingDescriptor,
    ResponseShape,
    build_mapping,
)
from tablefed.domain.enums import OperationKind
from tablefed.infrastructure.aws.vtl_renderer import VtlMappingRenderer


@pytest.fixture
def renderer() -> VtlMappingRenderer:
    return VtlMappingRenderer(default_list_limit=25)


def test_get_item_request_is_json(renderer: VtlMappingRenderer) -> None:
    rendered = renderer.render(build_mapping(OperationKind.GET, "orderId"))
    assert '"operation": "GetItem"' in rendered.request
    assert '"orderId": $util.dynamodb.toDynamoDBJson($ctx.args.orderId)' in rendered.request
    assert rendered.request.rstrip().endswith("}")
    assert "$util.error($ctx.error.message" in rendered.response


def test_list_request_chains_indexes_in_declared_order(renderer: VtlMappingRenderer) -> None:
    rendered = renderer.render(build_mapping(OperationKind.LIST, "id", ("A", "B")))
    request = rendered.request
    assert "$util.defaultIfNull($ctx.args.limit, 25)" in request
    first = request.index("#if(!$util.isNull($ctx.args.A))")
    second = request.index("#elseif(!$util.isNull($ctx.args.B))")
    scan = request.index('"operation": "Scan"')
    assert first < second < scan
    assert '"index": "A-index"' in request
    assert '"index": "B-index"' in request
    assert "#else" in request
    assert request.rstrip().endswith("#end")
    assert '"items": $util.toJson($ctx.result.items)' in rendered.response


def test_list_without_indexes_is_plain_scan(renderer: VtlMappingRenderer) -> None:
    rendered = renderer.render(build_mapping(OperationKind.LIST, "id"))
    assert "#if" not in rendered.request
    assert "#end" not in rendered.request
    assert '"operation": "Scan"' in rendered.request


def test_put_sets_timestamps(renderer: VtlMappingRenderer) -> None:
    request = renderer.render(build_mapping(OperationKind.CREATE, "orderId")).request
    assert '$util.qr($input.put("createdAt", $now))' in request
    assert '$util.qr($input.put("updatedAt", $now))' in request
    assert '"operation": "PutItem"' in request


def test_update_builds_set_expression_and_guard(renderer: VtlMappingRenderer) -> None:
    request = renderer.render(build_mapping(OperationKind.UPDATE, "orderId")).request
    assert '$util.qr($input.remove("orderId"))' in request
    assert '$util.qr($input.put("updatedAt", $util.time.nowISO8601()))' in request
    assert '"expression": "attribute_exists(#tfKey0)"' in request
    assert '"#tfKey0": "orderId"' in request


def test_delete_and_publish(renderer: VtlMappingRenderer) -> None:
    delete = renderer.render(build_mapping(OperationKind.DELETE, "orderId"))
    assert '"operation": "DeleteItem"' in delete.request
    publish = renderer.render(build_mapping(OperationKind.PUBLISH, "orderId"))
    assert "$util.toJson($ctx.args.input)" in publish.request
    assert "$ctx.error" not in publish.response


def test_static_templates_are_valid_json(renderer: VtlMappingRenderer) -> None:
    """Templates without VTL directives render to plain JSON once $util calls are stubbed."""
    request = renderer.render(build_mapping(OperationKind.DELETE, "orderId")).request
    stubbed = request.replace("$util.dynamodb.toDynamoDBJson($ctx.args.orderId)", '{"S": "1"}')
    assert json.loads(stubbed)["key"] == {"orderId": {"S": "1"}}


def test_unknown_descriptor_raises(renderer: VtlMappingRenderer) -> None:
    descriptor = MappingDescriptor(OperationKind.GET, object(), ResponseShape.ITEM)  # type: ignore[arg-type]
    with pytest.raises(KeyError):
        renderer.render(descriptor)


def test_list_request_type_is_registered(renderer: VtlMappingRenderer) -> None:
    descriptor = MappingDescriptor(OperationKind.LIST, ListRequest(), ResponseShape.CONNECTION)
    assert '"operation": "Scan"' in renderer.render(descriptor).request
