"""Schemas for ledgerstate."""

from ledgerstate.schemas.dataset import (
    EventCallbacks,
    FieldDescriptor,
    RemoteGetter,
    RemoteSetter,
    WriteResult,
)
from ledgerstate.schemas.storage import (
    AdapterConfig,
    ChildrenSchema,
    PointerField,
    normalize_children,
)

__all__ = [
    "AdapterConfig",
    "ChildrenSchema",
    "EventCallbacks",
    "FieldDescriptor",
    "PointerField",
    "RemoteGetter",
    "RemoteSetter",
    "WriteResult",
    "normalize_children",
]
