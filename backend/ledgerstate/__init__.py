"""ledgerstate: remote-synced entity fields and lazily resolved off-chain documents."""

from ledgerstate.core.exceptions import (
    LedgerStateError,
    OffChainDataConfigurationError,
    OffChainDataError,
    OffChainDataRuntimeError,
    RemoteDataAccessError,
    RemoteDataReadError,
    RemotelyBackedDatasetError,
    StoragePointerError,
)
from ledgerstate.platform.storage import AdapterRegistry, OffChainDataAdapter, StoragePointer
from ledgerstate.platform.sync import DeploymentState, RemotelyBackedDataset
from ledgerstate.schemas import (
    AdapterConfig,
    EventCallbacks,
    FieldDescriptor,
    PointerField,
    WriteResult,
)

__version__ = "0.1.0"

__all__ = [
    "AdapterConfig",
    "AdapterRegistry",
    "DeploymentState",
    "EventCallbacks",
    "FieldDescriptor",
    "LedgerStateError",
    "OffChainDataAdapter",
    "OffChainDataConfigurationError",
    "OffChainDataError",
    "OffChainDataRuntimeError",
    "PointerField",
    "RemoteDataAccessError",
    "RemoteDataReadError",
    "RemotelyBackedDataset",
    "RemotelyBackedDatasetError",
    "StoragePointer",
    "StoragePointerError",
    "WriteResult",
]
