"""Schemas for off-chain storage: pointer field definitions and adapter configs."""

from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ledgerstate.core.exceptions import StoragePointerError


class PointerField(BaseModel):
    """Definition of a pointer-typed field in an off-chain document.

    The raw value of the field is a uri that gets wrapped in its own
    StoragePointer. With ``nested`` set, the raw value is a mapping of
    dynamically named uris instead, each wrapped individually.
    """

    model_config = ConfigDict(frozen=True)

    required: bool = Field(default=True, description="Fail when the field is missing")
    nested: bool = Field(
        default=False, description="Raw value is a mapping of names to uris"
    )
    children: Dict[str, "PointerField"] = Field(
        default_factory=dict, description="Schema of the document the uri points to"
    )


PointerField.model_rebuild()

ChildrenSchema = Dict[str, PointerField]
ChildrenInput = Optional[Mapping[str, Union[PointerField, Mapping[str, Any]]]]


def normalize_children(children: ChildrenInput) -> ChildrenSchema:
    """Validate a pointer schema and fill in explicit defaults.

    Field names have to be unique under case-insensitive comparison, on every
    level of the schema.

    Args:
        children: Mapping of field name to PointerField or plain dict

    Returns:
        Mapping of field name to PointerField

    Raises:
        StoragePointerError: If two field names on one level differ only by case
    """
    normalized: ChildrenSchema = {}
    seen = set()
    for field_name, definition in (children or {}).items():
        if field_name.lower() in seen:
            raise StoragePointerError("Cannot create instance: Conflict in field names.")
        seen.add(field_name.lower())

        if isinstance(definition, PointerField):
            entry = definition
        else:
            entry = PointerField.model_validate(dict(definition or {}))
        # Validates deeper levels too
        normalize_children(entry.children)
        normalized[field_name] = entry
    return normalized


class AdapterConfig(BaseModel):
    """Factory configuration of an off-chain data adapter.

    ``create`` is called with ``options`` every time the registry hands out
    an adapter for the scheme.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    create: Callable[[Dict[str, Any]], Any]
    options: Dict[str, Any] = Field(default_factory=dict)
