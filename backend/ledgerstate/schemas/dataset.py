"""Schemas for remotely backed datasets."""

from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

RemoteGetter = Callable[[], Awaitable[Any]]
RemoteSetter = Callable[[Dict[str, Any]], Awaitable[Any]]


class FieldDescriptor(BaseModel):
    """How a single field is read from and written to the remote storage.

    Fields whose values are written by one physical operation (e.g. a single
    contract call updating several attributes) share a ``setter_group``, so the
    operation is sent only once per commit.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    remote_getter: RemoteGetter
    remote_setter: Optional[RemoteSetter] = None
    setter_group: Optional[str] = Field(
        default=None, description="Id of the write operation; defaults to grouping by equal setters"
    )


class EventCallbacks(BaseModel):
    """Callbacks invoked by whoever submits a prepared transaction."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")

    on_receipt: Optional[Callable[[Any], Any]] = None
    on_transaction_hash: Optional[Callable[[str], Any]] = None


class WriteResult(BaseModel):
    """Result of a remote setter, typically prepared transaction metadata.

    Unknown keys returned by a setter are kept as extra attributes.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")

    transaction_data: Optional[Any] = None
    event_callbacks: EventCallbacks = Field(default_factory=EventCallbacks)
