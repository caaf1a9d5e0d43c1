"""StoragePointer: lazy, recursive view of an off-chain JSON document.

A pointer holds a uri and a declarative schema of the pointer-typed fields in
the document the uri refers to. Nothing is downloaded until ``contents`` is
awaited for the first time; every pointer-typed field is then exposed as a
child StoragePointer, so deeper levels stay lazy as well.

Usage:
    pointer = StoragePointer.create_instance(
        "in-memory://hotel",
        {"descriptionUri": {"children": {"roomTypes": {"nested": True}}}},
        registry=registry,
    )
    contents = await pointer.contents
    description = await contents["descriptionUri"].contents

    # Or resolve the whole tree at once
    plain = await pointer.to_plain_object(["descriptionUri"])
"""

import asyncio
import copy
from typing import Any, Awaitable, Dict, List, Optional, Sequence

from ledgerstate.core.config import settings
from ledgerstate.core.exceptions import StoragePointerError
from ledgerstate.core.logging import ContextualLogger
from ledgerstate.core.logging import logger as default_logger
from ledgerstate.platform.storage.backend import Document, OffChainDataAdapter
from ledgerstate.platform.storage.registry import AdapterRegistry
from ledgerstate.schemas.storage import (
    ChildrenInput,
    ChildrenSchema,
    PointerField,
    normalize_children,
)

PathSelection = Optional[Dict[str, Optional[List[str]]]]

# Stands for "use settings.DEFAULT_RESOLVE_DEPTH"; None already means unlimited
_DEFAULT_DEPTH: Any = object()


class StoragePointer:
    """Lazily downloaded off-chain document with recursively resolved pointers.

    Pointers form a tree: every access path builds its own child pointers, and
    each child downloads independently of its siblings.
    """

    def __init__(
        self,
        uri: str,
        children: ChildrenSchema,
        registry: AdapterRegistry,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the pointer. Use ``create_instance`` to get validation.

        Args:
            uri: Uri of the document, including the scheme
            children: Normalized schema of pointer-typed fields
            registry: Registry used to look up the adapter for the uri scheme
            logger: Optional contextual logger
        """
        self._ref = uri
        self._children = children
        self._registry = registry
        self._base_logger = logger or default_logger
        self.logger = self._base_logger.with_context(component="storage_pointer", ref=uri)

        self._adapter: Optional[OffChainDataAdapter] = None
        self._data: Optional[Document] = None
        self._downloaded = False
        self._downloading: Optional[asyncio.Task] = None

    @classmethod
    def create_instance(
        cls,
        uri: Optional[str],
        children: ChildrenInput = None,
        *,
        registry: AdapterRegistry,
        logger: Optional[ContextualLogger] = None,
    ) -> "StoragePointer":
        """Create a pointer after validating the uri and the schema.

        Args:
            uri: Uri of the document, e.g. ``https://example.com/data``
            children: Schema of pointer-typed fields (PointerFields or dicts)
            registry: Registry used to look up the adapter for the uri scheme
            logger: Optional contextual logger

        Returns:
            New StoragePointer

        Raises:
            StoragePointerError: If the uri is empty or field names conflict
        """
        if not uri:
            raise StoragePointerError("Cannot instantiate StoragePointer without uri")
        return cls(uri, normalize_children(children), registry, logger)

    @property
    def ref(self) -> str:
        """Uri of the document."""
        return self._ref

    @property
    def children(self) -> ChildrenSchema:
        """Schema of pointer-typed fields."""
        return self._children

    @property
    def contents(self) -> Awaitable[Document]:
        """Awaitable with the projected document; downloaded on first access."""
        return self._get_contents()

    def __repr__(self) -> str:
        return f"StoragePointer(ref={self._ref!r})"

    async def _get_contents(self) -> Document:
        if not self._downloaded:
            await self._download_from_storage()
        return self._data

    async def reset(self) -> None:
        """Force the document to be downloaded again on next access.

        A download that is still running is waited for first.
        """
        task = self._downloading
        if task is not None and not task.done():
            await asyncio.wait([task])
        self._downloading = None
        self._downloaded = False
        self._data = None
        self.logger.debug("Storage pointer reset")

    def _get_adapter(self) -> OffChainDataAdapter:
        """Get the adapter for the uri scheme, reused for the pointer's lifetime."""
        if self._adapter is None:
            self._adapter = self._registry.get_adapter_for_uri(self._ref)
        return self._adapter

    async def _download_from_storage(self) -> None:
        """Download the document, sharing one download between concurrent callers."""
        if self._downloading is None:
            self._downloading = asyncio.ensure_future(self._download())
        task = self._downloading
        try:
            await asyncio.shield(task)
        except Exception:
            # Failed downloads are not memoized
            if self._downloading is task and task.done():
                self._downloading = None
            raise

    async def _download(self) -> None:
        adapter = self._get_adapter()
        self.logger.debug("Downloading off-chain document")
        try:
            data = await adapter.download(self._ref)
        except Exception as e:
            self.logger.warning(f"Failed to download off-chain document: {e}")
            raise StoragePointerError(f"Cannot download data: {e}", e) from e

        self._data = self._init_from_storage({} if data is None else data)
        self._downloaded = True

    def _create_child(self, uri: str, children: ChildrenSchema) -> "StoragePointer":
        return StoragePointer.create_instance(
            uri, children, registry=self._registry, logger=self._base_logger
        )

    def _init_from_storage(self, raw: Document) -> Document:
        """Project a downloaded document through the schema.

        Args:
            raw: Document as returned by the adapter

        Returns:
            Copy of the document with pointer-typed fields replaced by pointers

        Raises:
            StoragePointerError: If the document does not match the schema
        """
        data = copy.deepcopy(raw)
        if isinstance(data, list):
            return data
        if not isinstance(data, dict):
            raise StoragePointerError(
                f"Cannot access document '{self._ref}' which does not appear to be an object."
            )

        for field_name, field_def in self._children.items():
            field_data = data.get(field_name)
            if _is_missing(field_data):
                if field_def.required:
                    raise StoragePointerError(
                        f"Cannot access field '{field_name}' which is required."
                    )
                continue

            if field_def.nested:
                data[field_name] = self._wrap_nested(field_name, field_def, field_data)
            elif isinstance(field_data, list):
                data[field_name] = [
                    self._wrap_list_item(field_name, field_def, item) for item in field_data
                ]
            elif isinstance(field_data, str):
                data[field_name] = self._create_child(field_data, field_def.children)
            else:
                raise StoragePointerError(
                    f"Cannot access field '{field_name}' on '{field_data}' which does not "
                    f"appear to be of type string but {type(field_data).__name__}."
                )
        return data

    def _wrap_nested(
        self, field_name: str, field_def: PointerField, field_data: Any
    ) -> Dict[str, "StoragePointer"]:
        if isinstance(field_data, list):
            raise StoragePointerError(
                f"Cannot access field '{field_name}'. Nested pointer cannot be a list."
            )
        if not isinstance(field_data, dict):
            raise StoragePointerError(
                f"Cannot access field '{field_name}' on '{field_data}' which does not "
                f"appear to be of type dict but {type(field_data).__name__}."
            )

        pointers = {}
        for key, uri in field_data.items():
            if not isinstance(uri, str):
                raise StoragePointerError(
                    f"Cannot access field '{field_name}.{key}' which does not appear "
                    "to be of type string."
                )
            pointers[key] = self._create_child(uri, field_def.children)
        return pointers

    def _wrap_list_item(self, field_name: str, field_def: PointerField, item: Any) -> Any:
        """Wrap the pointer members of one list item.

        Each child declared in ``field_def.children`` names a key of the item
        whose value is a uri.
        """
        if not isinstance(item, dict):
            return item

        for ref_name, ref_def in field_def.children.items():
            value = item.get(ref_name)
            if _is_missing(value):
                if ref_def.required:
                    raise StoragePointerError(
                        f"Cannot access field '{field_name}.{ref_name}' which is required."
                    )
                continue
            if not isinstance(value, str):
                raise StoragePointerError(
                    f"Cannot access field '{field_name}.{ref_name}' which does not appear "
                    "to be of type string."
                )
            item[ref_name] = self._create_child(value, ref_def.children)
        return item

    @staticmethod
    def _split_paths(resolved_fields: Optional[Sequence[str]]) -> PathSelection:
        """Split dot-notation paths into first segment -> remaining paths.

        A bare segment (no remaining path) selects the whole subtree and wins
        over longer paths with the same first segment.
        """
        if resolved_fields is None:
            return None

        selection: Dict[str, Optional[List[str]]] = {}
        for path in resolved_fields:
            head, _, rest = path.partition(".")
            if head in selection and selection[head] is None:
                continue
            if rest:
                selection.setdefault(head, []).append(rest)
            else:
                selection[head] = None
        return selection

    async def to_plain_object(
        self,
        resolved_fields: Optional[Sequence[str]] = None,
        depth: Optional[int] = _DEFAULT_DEPTH,
    ) -> Dict[str, Any]:
        """Recursively turn the document tree into plain data.

        Sibling pointers are resolved concurrently.

        Args:
            resolved_fields: Paths in dot notation (``father.son.child``) of the
                pointers to resolve. None resolves every pointer, an empty list
                resolves none. Pointers that are not resolved are replaced with
                their uri. Items of lists are addressed as if they were on the
                list level (``pointers.field``).
            depth: Maximum number of pointer hops to resolve. It caps path
                selection too: with ``depth=0`` nothing is resolved even if
                selected. Defaults to ``settings.DEFAULT_RESOLVE_DEPTH``; an
                explicit None means unlimited.

        Returns:
            ``{"ref": uri, "contents": plain document}``

        Raises:
            StoragePointerError: When any document on the way cannot be resolved
        """
        if depth is _DEFAULT_DEPTH:
            depth = settings.DEFAULT_RESOLVE_DEPTH

        contents = await self.contents
        if isinstance(contents, list):
            return {"ref": self._ref, "contents": copy.deepcopy(contents)}

        selection = self._split_paths(resolved_fields)
        can_descend = depth is None or depth > 0
        child_depth = None if depth is None else depth - 1

        names = list(contents)
        values = await asyncio.gather(
            *(
                self._plain_field(name, contents[name], selection, can_descend, child_depth)
                for name in names
            )
        )
        return {"ref": self._ref, "contents": dict(zip(names, values))}

    async def _plain_field(
        self,
        field_name: str,
        value: Any,
        selection: PathSelection,
        can_descend: bool,
        child_depth: Optional[int],
    ) -> Any:
        if field_name not in self._children:
            return copy.deepcopy(value)

        resolve = can_descend and (selection is None or field_name in selection)
        child_fields = None if selection is None else selection.get(field_name)
        return await self._plain_value(value, resolve, child_fields, child_depth)

    async def _plain_value(
        self,
        value: Any,
        resolve: bool,
        resolved_fields: Optional[List[str]],
        depth: Optional[int],
    ) -> Any:
        if isinstance(value, StoragePointer):
            if resolve:
                return await value.to_plain_object(resolved_fields, depth)
            return value.ref
        if isinstance(value, dict):
            keys = list(value)
            items = await asyncio.gather(
                *(self._plain_value(value[key], resolve, resolved_fields, depth) for key in keys)
            )
            return dict(zip(keys, items))
        if isinstance(value, list):
            return list(
                await asyncio.gather(
                    *(self._plain_value(item, resolve, resolved_fields, depth) for item in value)
                )
            )
        return copy.deepcopy(value)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""
