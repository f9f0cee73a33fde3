"""AppSync VTL rendering of mapping descriptors (Jinja templates).

Jinja generates the Velocity text; the Velocity itself runs inside AppSync.
The Jinja comment delimiters are changed so VTL/JSON text such as ``{#`` is
never taken for a Jinja comment.
"""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined, Template

from tablefed.application.dtos.engine import RenderedMapping
from tablefed.application.services.mapping_templates import (
    DeleteItemRequest,
    GetItemRequest,
    ListRequest,
    MappingDescriptor,
    PassThroughRequest,
    PutItemRequest,
    ResponseShape,
    UpdateItemRequest,
)

DYNAMODB_VERSION = "2017-02-28"
DEFAULT_LIST_LIMIT = 20

_KEY_BLOCK = """  "key": {
{% for name in key_fields %}
    "{{ name }}": $util.dynamodb.toDynamoDBJson({{ source }}.{{ name }}){{ "," if not loop.last else "" }}
{% endfor %}
  }"""

_GET_ITEM = """{
  "version": "{{ version }}",
  "operation": "GetItem",
""" + _KEY_BLOCK + """
}
"""

_LIST_QUERY_BODY = """{
  "version": "{{ version }}",
  "operation": "Query",
  "index": "{{ lookup.index }}",
  "query": {
    "expression": "#tfField = :tfValue",
    "expressionNames": { "#tfField": "{{ lookup.field }}" },
    "expressionValues": { ":tfValue": $util.dynamodb.toDynamoDBJson($ctx.args.{{ lookup.field }}) }
  },
  "limit": $limit,
  "nextToken": $util.toJson($ctx.args.nextToken)
}
"""

_LIST_SCAN_BODY = """{
  "version": "{{ version }}",
  "operation": "Scan",
  "limit": $limit,
  "nextToken": $util.toJson($ctx.args.nextToken)
}
"""

_LIST = """#set($limit = $util.defaultIfNull($ctx.args.limit, {{ default_limit }}))
{% for lookup in lookups %}
{{ "#if" if loop.first else "#elseif" }}(!$util.isNull($ctx.args.{{ lookup.field }}))
""" + _LIST_QUERY_BODY + """{% endfor %}
{% if lookups %}
#else
{% endif %}
""" + _LIST_SCAN_BODY + """{% if lookups %}
#end
{% endif %}
"""

_PUT_ITEM = """#set($input = $util.defaultIfNull($ctx.args.input, {}))
#set($now = $util.time.nowISO8601())
{% for name in timestamp_fields %}
$util.qr($input.put("{{ name }}", $now))
{% endfor %}
#set($keyValue = $input.get("{{ key_field }}"))
$util.qr($input.remove("{{ key_field }}"))
{
  "version": "{{ version }}",
  "operation": "PutItem",
  "key": {
    "{{ key_field }}": $util.dynamodb.toDynamoDBJson($keyValue)
  },
  "attributeValues": $util.dynamodb.toMapValuesJson($input)
}
"""

_UPDATE_ITEM = """#set($input = $util.defaultIfNull($ctx.args.input, {}))
{% for name in key_fields %}
$util.qr($input.remove("{{ name }}"))
{% endfor %}
$util.qr($input.put("{{ timestamp_field }}", $util.time.nowISO8601()))
#set($expression = "SET")
#set($names = {})
#set($values = {})
#foreach($entry in $input.entrySet())
#if($foreach.count > 1)#set($expression = "${expression},")#end
#set($expression = "${expression} #${entry.key} = :${entry.key}")
$util.qr($names.put("#${entry.key}", $entry.key))
$util.qr($values.put(":${entry.key}", $entry.value))
#end
{
  "version": "{{ version }}",
  "operation": "UpdateItem",
""" + _KEY_BLOCK + """,
  "update": {
    "expression": "$expression",
    "expressionNames": $util.toJson($names),
    "expressionValues": $util.dynamodb.toMapValuesJson($values)
  },
  "condition": {
    "expression": "{{ guard.expression }}",
    "expressionNames": {
{% for placeholder, name in guard.placeholders.items() %}
      "{{ placeholder }}": "{{ name }}"{{ "," if not loop.last else "" }}
{% endfor %}
    }
  }
}
"""

_DELETE_ITEM = """{
  "version": "{{ version }}",
  "operation": "DeleteItem",
""" + _KEY_BLOCK + """
}
"""

_PASS_THROUGH = """{
  "version": "{{ version }}",
  "payload": $util.toJson($ctx.args.{{ payload_arg }})
}
"""

_ERROR_GUARD = """#if($ctx.error)
$util.error($ctx.error.message, $ctx.error.type)
#end
"""

_RESPONSES: dict[ResponseShape, str] = {
    ResponseShape.ITEM: _ERROR_GUARD + "$util.toJson($ctx.result)\n",
    ResponseShape.CONNECTION: _ERROR_GUARD
    + '{\n  "items": $util.toJson($ctx.result.items),\n'
    '  "nextToken": $util.toJson($ctx.result.nextToken)\n}\n',
    ResponseShape.PASS_THROUGH: "$util.toJson($ctx.result)\n",
}

_REQUESTS: dict[type, str] = {
    GetItemRequest: _GET_ITEM,
    ListRequest: _LIST,
    PutItemRequest: _PUT_ITEM,
    UpdateItemRequest: _UPDATE_ITEM,
    DeleteItemRequest: _DELETE_ITEM,
    PassThroughRequest: _PASS_THROUGH,
}


class VtlMappingRenderer:
    """Renders MappingDescriptors into AppSync request/response VTL."""

    def __init__(self, default_list_limit: int = DEFAULT_LIST_LIMIT) -> None:
        self.default_list_limit = default_list_limit
        self._env = Environment(
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            comment_start_string="<#--",
            comment_end_string="--#>",
        )
        self._requests: dict[type, Template] = {
            kind: self._env.from_string(text) for kind, text in _REQUESTS.items()
        }
        self._responses: dict[ResponseShape, Template] = {
            shape: self._env.from_string(text) for shape, text in _RESPONSES.items()
        }

    def _request_context(self, request: Any) -> dict[str, Any]:
        ctx: dict[str, Any] = {"version": DYNAMODB_VERSION}
        if isinstance(request, (GetItemRequest, DeleteItemRequest)):
            ctx.update(key_fields=[request.key_field], source="$ctx.args")
        elif isinstance(request, ListRequest):
            ctx.update(
                default_limit=self.default_list_limit,
                lookups=[
                    {"field": name, "index": request.index_for(name)}
                    for name in request.indexed_fields
                ],
            )
        elif isinstance(request, PutItemRequest):
            ctx.update(
                key_field=request.key_field,
                timestamp_fields=list(request.timestamp_fields),
            )
        elif isinstance(request, UpdateItemRequest):
            ctx.update(
                key_fields=list(request.key_fields),
                source="$ctx.args",
                timestamp_field=request.timestamp_field,
                guard=request.guard,
            )
        elif isinstance(request, PassThroughRequest):
            ctx.update(payload_arg=request.payload_arg)
        return ctx

    def render(self, descriptor: MappingDescriptor) -> RenderedMapping:
        """Render request and response VTL. Raises KeyError for unknown descriptors."""
        template = self._requests.get(type(descriptor.request))
        if template is None:
            raise KeyError(
                f"No VTL template for {type(descriptor.request).__name__}"
            )
        request = template.render(**self._request_context(descriptor.request))
        response = self._responses[descriptor.response].render()
        return RenderedMapping(request=request, response=response)
