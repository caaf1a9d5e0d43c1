"""RemotelyBackedDataset: local working copy of fields stored in a remote ledger.

Every field has a remote getter and optionally a remote setter. The first
read of any field fetches all fields at once; afterwards reads are served
from the local copy. Writes are local only until ``update_remote_data``
sends the changed fields, calling each shared setter only once.

States:
- UNDEPLOYED: the entity has no remote representation yet; fields can be
  set locally but not read.
- DEPLOYED: remote getters and setters may be used.
- OBSOLETE: the entity was destroyed remotely; every access fails.

Usage:
    dataset = RemotelyBackedDataset.create_instance()
    dataset.bind({
        "name": FieldDescriptor(
            remote_getter=contract.get_name,
            remote_setter=contract.update_info,
            setter_group="update_info",
        ),
        "data_uri": FieldDescriptor(
            remote_getter=contract.get_data_uri,
            remote_setter=contract.update_info,
            setter_group="update_info",
        ),
    })
    dataset.mark_deployed()
    dataset.set("name", "New name")
    results = await dataset.update_remote_data({"from": manager})
"""

import asyncio
import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple, Union

from ledgerstate.core.exceptions import (
    RemoteDataAccessError,
    RemoteDataReadError,
    RemotelyBackedDatasetError,
)
from ledgerstate.core.logging import ContextualLogger
from ledgerstate.core.logging import logger as default_logger
from ledgerstate.schemas.dataset import FieldDescriptor, RemoteSetter, WriteResult


class DeploymentState(str, Enum):
    """Lifecycle of the remote representation of a dataset."""

    UNDEPLOYED = "undeployed"
    DEPLOYED = "deployed"
    OBSOLETE = "obsolete"


@dataclass
class _FieldCell:
    """Runtime state of one field."""

    descriptor: FieldDescriptor
    value: Any = None
    baseline: Any = None
    fetched: bool = False
    # Set locally since the last known remote value
    modified: bool = False

    @property
    def dirty(self) -> bool:
        return self.fetched and self.value != self.baseline


@dataclass
class _SetterGroup:
    """Fields written by one remote setter."""

    group_id: str
    setter: Optional[RemoteSetter]
    fields: List[str]


class RemotelyBackedDataset:
    """Field-level synchronization between a local copy and a remote storage."""

    def __init__(self, logger: Optional[ContextualLogger] = None):
        """Initialize an empty, undeployed dataset.

        Args:
            logger: Optional contextual logger
        """
        self.logger = logger or default_logger.with_context(component="remotely_backed_dataset")
        self._state = DeploymentState.UNDEPLOYED
        self._cells: Dict[str, _FieldCell] = {}
        self._groups: List[_SetterGroup] = []
        self._bound = False
        self._syncing: Optional[asyncio.Task] = None

    @classmethod
    def create_instance(
        cls, logger: Optional[ContextualLogger] = None
    ) -> "RemotelyBackedDataset":
        """Create a new dataset."""
        return cls(logger=logger)

    def bind(self, fields: Mapping[str, Union[FieldDescriptor, Mapping[str, Any]]]) -> None:
        """Register the fields backed by this dataset.

        All fields start unfetched; the first read of any of them fetches all.

        Args:
            fields: Mapping of field name to FieldDescriptor (or its dict form)

        Raises:
            RemotelyBackedDatasetError: If fields were already bound or a setter
                group declares different setters
        """
        if self._bound:
            raise RemotelyBackedDatasetError("Dataset fields are already bound.")

        cells: Dict[str, _FieldCell] = {}
        groups: Dict[Hashable, _SetterGroup] = {}
        for name, descriptor in fields.items():
            if not isinstance(descriptor, FieldDescriptor):
                descriptor = FieldDescriptor.model_validate(dict(descriptor))
            cells[name] = _FieldCell(descriptor=descriptor)

            key, group_id = self._group_key(name, descriptor)
            group = groups.setdefault(key, _SetterGroup(group_id, None, []))
            group.fields.append(name)
            if descriptor.remote_setter is None:
                continue
            if group.setter is None:
                group.setter = descriptor.remote_setter
            elif group.setter != descriptor.remote_setter:
                raise RemotelyBackedDatasetError(
                    f"Conflicting remote setters in setter group '{group_id}'."
                )

        self._cells = cells
        self._groups = list(groups.values())
        self._bound = True
        self.logger.debug(f"Bound {len(cells)} fields in {len(groups)} setter groups")

    @staticmethod
    def _group_key(name: str, descriptor: FieldDescriptor) -> Tuple[Hashable, str]:
        """Key and display id of the setter group a field belongs to."""
        if descriptor.setter_group:
            return ("group", descriptor.setter_group), descriptor.setter_group
        if descriptor.remote_setter is not None:
            setter = descriptor.remote_setter
            return ("setter", setter), getattr(setter, "__name__", name)
        return ("field", name), name

    @property
    def field_names(self) -> List[str]:
        """Names of bound fields."""
        return list(self._cells)

    @property
    def state(self) -> DeploymentState:
        """Current deployment state."""
        return self._state

    def is_obsolete(self) -> bool:
        """Is the dataset marked as obsolete?"""
        return self._state == DeploymentState.OBSOLETE

    def mark_obsolete(self) -> None:
        """Mark the dataset as obsolete.

        Called once the remote representation was destroyed. Nothing is
        propagated anywhere; further access to the dataset just fails.
        """
        self._state = DeploymentState.OBSOLETE

    def is_deployed(self) -> bool:
        """Is the dataset deployed to the remote storage?"""
        return self._state == DeploymentState.DEPLOYED

    def mark_deployed(self) -> None:
        """Mark the dataset as deployed.

        Called once the remote storage is set up, created or connected to.
        An obsolete dataset stays obsolete.
        """
        if self._state == DeploymentState.UNDEPLOYED:
            self._state = DeploymentState.DEPLOYED

    def _cell(self, name: str) -> _FieldCell:
        try:
            return self._cells[name]
        except KeyError:
            raise RemotelyBackedDatasetError(f"Unknown field: {name}") from None

    def _check_readable(self) -> None:
        if self.is_obsolete():
            raise RemoteDataAccessError("This object was destroyed in a remote storage!")
        if not self.is_deployed():
            raise RemoteDataAccessError("Cannot fetch undeployed object")

    async def get(self, name: str) -> Any:
        """Get the current value of a field.

        Fetches all fields from the remote storage if none was fetched yet.
        A locally set value always takes precedence over the remote one.

        Args:
            name: Field name

        Returns:
            Current value of the field

        Raises:
            RemoteDataAccessError: If the dataset is obsolete or undeployed
            RemoteDataReadError: If fetching from the remote storage fails
        """
        self._check_readable()
        cell = self._cell(name)
        # A reset landing while the fetch runs leaves the field unfetched again
        while not cell.fetched:
            await self._sync_remote_data()
        return cell.value

    def set(self, name: str, value: Any) -> None:
        """Set a field value locally.

        Nothing is sent to the remote storage until ``update_remote_data``.

        Raises:
            RemoteDataAccessError: If the dataset is obsolete
        """
        if self.is_obsolete():
            raise RemoteDataAccessError("This object was destroyed in a remote storage!")
        cell = self._cell(name)
        cell.value = value
        cell.modified = True

    def is_dirty(self, name: str) -> bool:
        """Does the field differ from its last known remote value?"""
        return self._cell(name).dirty

    def dirty_fields(self) -> List[str]:
        """Names of fields that differ from their last known remote values."""
        return [name for name, cell in self._cells.items() if cell.dirty]

    async def reset(self) -> None:
        """Forget the fetched remote state; the next read fetches again.

        A fetch that is still running is waited for first, so its values
        cannot land after the reset. Locally modified values are kept and keep
        taking precedence.
        """
        task = self._syncing
        if task is not None and not task.done():
            await asyncio.wait([task])
        self._syncing = None
        for cell in self._cells.values():
            cell.fetched = False
            if not cell.modified:
                cell.value = None
            cell.baseline = None

    async def _sync_remote_data(self) -> None:
        """Fetch all fields, sharing one fetch between concurrent callers."""
        if self._syncing is None:
            self._syncing = asyncio.ensure_future(self._fetch_remote_data())
        task = self._syncing
        try:
            await asyncio.shield(task)
        except Exception:
            # A failed fetch is retried by the next read
            if self._syncing is task and task.done():
                self._syncing = None
            raise

    async def _fetch_remote_data(self) -> None:
        names = list(self._cells)
        self.logger.debug(f"Fetching {len(names)} fields from remote storage")
        getters = [
            asyncio.ensure_future(self._cells[name].descriptor.remote_getter()) for name in names
        ]
        try:
            values = await asyncio.gather(*getters)
        except Exception as e:
            # Getters still running are abandoned, a retry fetches everything again
            for getter in getters:
                getter.cancel()
            await asyncio.gather(*getters, return_exceptions=True)
            self.logger.warning(f"Cannot sync remote data: {e}")
            raise RemoteDataReadError(f"Cannot sync remote data: {e}", e) from e

        # All fields become fetched at once
        for name, value in zip(names, values):
            cell = self._cells[name]
            cell.baseline = value
            if not cell.modified:
                cell.value = value
            cell.fetched = True

    async def update_remote_data(
        self, options: Optional[Dict[str, Any]] = None
    ) -> List[WriteResult]:
        """Send locally changed fields to the remote storage.

        Every setter group with at least one dirty field is written exactly
        once, with its own deep copy of ``options``. Each returned result gets
        an ``on_receipt`` callback that marks the group's fields as synced once
        the write is confirmed; an existing callback is still called.

        Args:
            options: Options passed to every remote setter, typically
                transaction options such as ``{"from": address}``

        Returns:
            One WriteResult per written setter group

        Raises:
            RemoteDataAccessError: If the dataset is obsolete or undeployed
            RemoteDataReadError: If the initial fetch fails
            Exception: The first failure raised by a remote setter
        """
        self._check_readable()
        while any(not cell.fetched for cell in self._cells.values()):
            await self._sync_remote_data()

        groups = [
            group
            for group in self._groups
            if group.setter is not None and any(self._cells[f].dirty for f in group.fields)
        ]
        if not groups:
            return []

        self.logger.debug(
            f"Updating remote data: {len(groups)} setter groups "
            f"({', '.join(group.group_id for group in groups)})"
        )
        outcomes = await asyncio.gather(
            *(self._write_group(group, options) for group in groups),
            return_exceptions=True,
        )

        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            self.logger.error(
                f"{len(failures)} of {len(groups)} remote setters failed: {failures[0]}"
            )
            raise failures[0]
        return list(outcomes)

    async def _write_group(
        self, group: _SetterGroup, options: Optional[Dict[str, Any]]
    ) -> WriteResult:
        # Values sent by this write; the baseline moves to them on receipt
        committed = {name: self._cells[name].value for name in group.fields}

        raw_result = await group.setter(copy.deepcopy(options or {}))
        if isinstance(raw_result, WriteResult):
            result = raw_result
        elif isinstance(raw_result, Mapping):
            result = WriteResult.model_validate(dict(raw_result))
        elif raw_result is None:
            result = WriteResult()
        else:
            # Opaque results such as a transaction hash
            result = WriteResult(transaction_data=raw_result)

        original_on_receipt = result.event_callbacks.on_receipt

        def on_receipt(receipt: Any) -> Any:
            self._mark_synced(committed)
            if original_on_receipt is not None:
                return original_on_receipt(receipt)
            return None

        result.event_callbacks.on_receipt = on_receipt
        return result

    def _mark_synced(self, committed: Dict[str, Any]) -> None:
        for name, value in committed.items():
            cell = self._cells[name]
            cell.baseline = value
            if cell.value == value:
                cell.modified = False
        self.logger.debug(f"Marked fields as synced: {', '.join(committed)}")
