"""In-process backends (local runs and tests)."""

from tablefed.infrastructure.memory.engine import InMemoryEngine
from tablefed.infrastructure.memory.queue import (
    InMemoryDeadLetterSink,
    InMemoryDecommissionQueue,
)
from tablefed.infrastructure.memory.stores import (
    InMemoryFragmentStore,
    InMemoryStorageProvisioner,
    InMemoryTableMetadataRepository,
)

__all__ = [
    "InMemoryDeadLetterSink",
    "InMemoryDecommissionQueue",
    "InMemoryEngine",
    "InMemoryFragmentStore",
    "InMemoryStorageProvisioner",
    "InMemoryTableMetadataRepository",
]
