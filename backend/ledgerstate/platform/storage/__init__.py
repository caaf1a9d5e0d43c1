"""Off-chain storage: adapter interface, adapter registry and storage pointers."""

from ledgerstate.platform.storage.backend import Document, OffChainDataAdapter
from ledgerstate.platform.storage.pointer import StoragePointer
from ledgerstate.platform.storage.registry import AdapterRegistry, detect_scheme

__all__ = [
    "AdapterRegistry",
    "Document",
    "OffChainDataAdapter",
    "StoragePointer",
    "detect_scheme",
]
