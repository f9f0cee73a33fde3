"""Application interfaces (ports)."""

from tablefed.application.interfaces.repositories import ITableMetadataRepository
from tablefed.application.interfaces.services import (
    IDeadLetterSink,
    IDecommissionQueue,
    IFragmentStore,
    IManagedEngine,
    IMappingRenderer,
    IStorageProvisioner,
)

__all__ = [
    "IDeadLetterSink",
    "IDecommissionQueue",
    "IFragmentStore",
    "IManagedEngine",
    "IMappingRenderer",
    "IStorageProvisioner",
    "ITableMetadataRepository",
]
