"""Application services: schema synthesis, publication, provisioning."""

from tablefed.application.services.resolver_provisioner import (
    ProvisioningReport,
    ResolverProvisioner,
)
from tablefed.application.services.retry_policy import RetryPolicy
from tablefed.application.services.schema_publisher import (
    SchemaPublication,
    SchemaPublisher,
)
from tablefed.application.services.schema_synthesizer import (
    MergedDocument,
    SchemaSynthesizer,
)

__all__ = [
    "MergedDocument",
    "ProvisioningReport",
    "ResolverProvisioner",
    "RetryPolicy",
    "SchemaPublication",
    "SchemaPublisher",
    "SchemaSynthesizer",
]
