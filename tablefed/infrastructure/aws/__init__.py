"""AWS backends (boto3): S3, DynamoDB, AppSync, SQS."""

from tablefed.infrastructure.aws.appsync_engine import AppSyncEngine
from tablefed.infrastructure.aws.dynamodb_metadata_repo import (
    DynamoDBTableMetadataRepository,
)
from tablefed.infrastructure.aws.dynamodb_provisioner import DynamoDBStorageProvisioner
from tablefed.infrastructure.aws.s3_fragment_store import S3FragmentStore
from tablefed.infrastructure.aws.sqs_queue import SQSDeadLetterSink, SQSDecommissionQueue
from tablefed.infrastructure.aws.vtl_renderer import VtlMappingRenderer

__all__ = [
    "AppSyncEngine",
    "DynamoDBStorageProvisioner",
    "DynamoDBTableMetadataRepository",
    "S3FragmentStore",
    "SQSDeadLetterSink",
    "SQSDecommissionQueue",
    "VtlMappingRenderer",
]
