"""Backend and service factory: builds the memory or AWS backend from settings.

Used by the API lifespan, the schema sync handler and the decommission worker
so every entry point wires the same object graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tablefed.application.services.resolver_provisioner import ResolverProvisioner
from tablefed.application.services.retry_policy import RetryPolicy
from tablefed.application.services.schema_publisher import SchemaPublisher
from tablefed.application.services.schema_synthesizer import SchemaSynthesizer
from tablefed.application.use_cases.tables import (
    DecommissionService,
    DecommissionWorker,
    FragmentWriter,
    SchemaSyncService,
    TableLifecycleService,
)
from tablefed.infrastructure.aws.vtl_renderer import VtlMappingRenderer

if TYPE_CHECKING:
    from tablefed.application.interfaces import (
        IDeadLetterSink,
        IDecommissionQueue,
        IFragmentStore,
        IManagedEngine,
        IMappingRenderer,
        IStorageProvisioner,
        ITableMetadataRepository,
    )
    from tablefed.core.config import Settings


@dataclass
class Backend:
    """Infrastructure adapters for one deployment."""

    metadata_repo: ITableMetadataRepository
    storage: IStorageProvisioner
    fragment_store: IFragmentStore
    engine: IManagedEngine
    queue: IDecommissionQueue
    renderer: IMappingRenderer
    dead_letter: IDeadLetterSink | None = None


@dataclass
class Services:
    """Application services wired over a Backend."""

    backend: Backend
    synthesizer: SchemaSynthesizer
    publisher: SchemaPublisher
    provisioner: ResolverProvisioner
    sync: SchemaSyncService
    fragment_writer: FragmentWriter
    tables: TableLifecycleService
    decommission: DecommissionService
    worker: DecommissionWorker


class BackendFactory:
    """Factory for backends and services based on configuration."""

    @staticmethod
    def create_backend(settings: Settings | None = None) -> Backend:
        """Create the backend named by settings.backend.

        Raises:
            ValueError: Unknown backend.
        """
        from tablefed.core.config import get_settings

        s = settings or get_settings()
        backend = s.backend.lower()

        if backend == "memory":
            from tablefed.infrastructure.memory import (
                InMemoryDeadLetterSink,
                InMemoryDecommissionQueue,
                InMemoryEngine,
                InMemoryFragmentStore,
                InMemoryStorageProvisioner,
                InMemoryTableMetadataRepository,
            )

            return Backend(
                metadata_repo=InMemoryTableMetadataRepository(),
                storage=InMemoryStorageProvisioner(s.physical_table_prefix),
                fragment_store=InMemoryFragmentStore(),
                engine=InMemoryEngine(),
                queue=InMemoryDecommissionQueue(),
                renderer=VtlMappingRenderer(),
                dead_letter=InMemoryDeadLetterSink(),
            )
        if backend == "aws":
            from tablefed.infrastructure.aws import (
                AppSyncEngine,
                DynamoDBStorageProvisioner,
                DynamoDBTableMetadataRepository,
                S3FragmentStore,
                SQSDeadLetterSink,
                SQSDecommissionQueue,
            )
            from tablefed.infrastructure.aws.clients import create_client

            def client(name: str):
                return create_client(name, s.aws_region, s.aws_endpoint_url)

            dynamodb = client("dynamodb")
            sqs = client("sqs")
            return Backend(
                metadata_repo=DynamoDBTableMetadataRepository(dynamodb, s.tables_table_name),
                storage=DynamoDBStorageProvisioner(dynamodb, s.physical_table_prefix),
                fragment_store=S3FragmentStore(client("s3"), s.config_bucket),
                engine=AppSyncEngine(
                    client("appsync"),
                    api_id=s.appsync_api_id,
                    service_role_arn=s.appsync_service_role_arn,
                    region=s.aws_region,
                ),
                queue=SQSDecommissionQueue(sqs, s.decommission_queue_url),
                renderer=VtlMappingRenderer(),
                dead_letter=(
                    SQSDeadLetterSink(sqs, s.dead_letter_queue_url)
                    if s.dead_letter_queue_url
                    else None
                ),
            )
        raise ValueError(f"Unknown backend: {backend}. Supported: 'memory', 'aws'")

    @staticmethod
    def create_services(
        settings: Settings | None = None, backend: Backend | None = None
    ) -> Services:
        """Wire application services over backend (created from settings if None)."""
        from tablefed.core.config import get_settings

        s = settings or get_settings()
        b = backend or BackendFactory.create_backend(s)

        synthesizer = SchemaSynthesizer(b.fragment_store)
        publisher = SchemaPublisher(
            b.engine,
            poll_interval_seconds=s.schema_poll_interval_seconds,
            max_attempts=s.schema_poll_max_attempts,
        )
        provisioner = ResolverProvisioner(b.engine, b.storage, b.renderer)
        sync = SchemaSyncService(synthesizer, publisher, provisioner, b.fragment_store)
        fragment_writer = FragmentWriter(
            b.metadata_repo,
            b.fragment_store,
            sync_service=sync,
            inline_sync=s.inline_schema_sync,
        )
        tables = TableLifecycleService(b.metadata_repo, b.storage, fragment_writer, b.queue)
        decommission = DecommissionService(
            b.metadata_repo, b.storage, provisioner, fragment_writer, sync
        )
        worker = DecommissionWorker(
            b.queue,
            decommission,
            RetryPolicy(
                max_receives=s.decommission_max_receives,
                backoff_base_seconds=s.decommission_backoff_base_seconds,
                backoff_max_seconds=s.decommission_backoff_max_seconds,
            ),
            dead_letter=b.dead_letter,
        )
        return Services(
            backend=b,
            synthesizer=synthesizer,
            publisher=publisher,
            provisioner=provisioner,
            sync=sync,
            fragment_writer=fragment_writer,
            tables=tables,
            decommission=decommission,
            worker=worker,
        )
