"""Tests for the out-of-request entry points (schema sync notifications, SQS batches)."""

from tablefed.application.dtos.table import TableCreate
from tablefed.domain.entities import DecommissionTask
from tablefed.infrastructure.factory import Services
from tablefed.workers.decommission import message_from_record, process_sqs_event
from tablefed.workers.schema_sync import extract_fragment_changes, process_event

MARKER = "abcdef0123456789"


class TestExtractFragmentChanges:
    def test_s3_notification_records(self) -> None:
        event = {
            "Records": [
                {
                    "eventName": "ObjectCreated:Put",
                    "s3": {"object": {"key": f"schemas/{MARKER}/fragment"}},
                },
                {
                    "eventName": "ObjectRemoved:Delete",
                    "s3": {"object": {"key": "schemas/0000000000000000/fragment"}},
                },
                {
                    "eventName": "ObjectCreated:Put",
                    "s3": {"object": {"key": f"schemas/{MARKER}/document"}},
                },
            ]
        }
        assert extract_fragment_changes(event) == [
            (MARKER, False),
            ("0000000000000000", True),
        ]

    def test_eventbridge_event(self) -> None:
        event = {
            "detail-type": "Object Deleted",
            "detail": {"object": {"key": f"schemas/{MARKER}/fragment"}},
        }
        assert extract_fragment_changes(event) == [(MARKER, True)]

    def test_url_encoded_key(self) -> None:
        event = {"Records": [{"eventName": "ObjectCreated:Put", "s3": {"object": {"key": "schemas%2Fabc%2Ffragment"}}}]}
        assert extract_fragment_changes(event) == [("abc", False)]

    def test_unrelated_event(self) -> None:
        assert extract_fragment_changes({"source": "aws.events"}) == []


async def test_fragment_notification_syncs_tenant(
    services: Services, marker: str, orders_create: TableCreate
) -> None:
    """Notification mode: the fragment write alone, then the handler publishes and provisions."""
    services.fragment_writer.inline_sync = False
    table = (await services.tables.create_table(marker, orders_create)).table
    assert services.backend.engine.active_document is None

    result = await process_event(
        {
            "Records": [
                {
                    "eventName": "ObjectCreated:Put",
                    "s3": {"object": {"key": f"schemas/{marker}/fragment"}},
                }
            ]
        },
        services,
    )

    assert result == {"synced": [marker], "republished": False}
    assert table.generated_type_name in services.backend.engine.active_document
    assert len(services.backend.engine.resolvers_for(table.generated_type_name)) == 6


async def test_removal_notification_republishes_once(services: Services) -> None:
    event = {
        "Records": [
            {"eventName": "ObjectRemoved:Delete", "s3": {"object": {"key": f"schemas/{m}/fragment"}}}
            for m in ("aaaaaaaaaaaaaaaa", "bbbbbbbbbbbbbbbb")
        ]
    }
    result = await process_event(event, services)
    assert result == {"synced": [], "republished": True}
    assert len(services.backend.engine.submissions) == 1


def test_message_from_record() -> None:
    message = message_from_record(
        {
            "messageId": "m-1",
            "receiptHandle": "r-1",
            "body": "{}",
            "attributes": {"ApproximateReceiveCount": "3"},
        }
    )
    assert (message.message_id, message.receipt_handle, message.receive_count) == ("m-1", "r-1", 3)


async def test_sqs_batch_reports_only_retryable_failures(
    services: Services, marker: str, orders_create: TableCreate
) -> None:
    table = (await services.tables.create_table(marker, orders_create)).table
    good = DecommissionTask(marker, "orders", table.table_id).to_json()
    event = {
        "Records": [
            {"messageId": "ok", "receiptHandle": "r-ok", "body": good, "attributes": {}},
            {"messageId": "bad", "receiptHandle": "r-bad", "body": "garbage", "attributes": {}},
        ]
    }

    result = await process_sqs_event(event, services)

    assert result == {"batchItemFailures": []}
    assert services.backend.storage.tables == {}
    assert len(services.backend.dead_letter.messages) == 1


async def test_sqs_batch_failure_is_reported(services: Services) -> None:
    async def boom(_task: DecommissionTask) -> None:
        raise RuntimeError("down")

    services.decommission.decommission = boom
    body = DecommissionTask(MARKER, "orders", "t1").to_json()
    event = {"Records": [{"messageId": "m-9", "receiptHandle": "r-9", "body": body, "attributes": {"ApproximateReceiveCount": "1"}}]}

    result = await process_sqs_event(event, services)

    assert result == {"batchItemFailures": [{"itemIdentifier": "m-9"}]}
