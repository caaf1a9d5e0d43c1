"""Adapter registry mapping uri schemes to off-chain data adapters.

A registry is built once by the application and passed to every
StoragePointer, so independent configurations can live side by side.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Union

from ledgerstate.core.exceptions import (
    OffChainDataConfigurationError,
    OffChainDataRuntimeError,
)
from ledgerstate.core.logging import ContextualLogger
from ledgerstate.core.logging import logger as default_logger
from ledgerstate.platform.storage.backend import OffChainDataAdapter
from ledgerstate.schemas.storage import AdapterConfig

AdapterEntry = Union[AdapterConfig, OffChainDataAdapter, Mapping[str, Any]]

_SCHEME_PATTERN = re.compile(r"([a-zA-Z-]+)://")


def detect_scheme(uri: str) -> Optional[str]:
    """Detect the scheme of a uri, i.e. ``scheme`` from ``scheme://some-data``.

    Args:
        uri: Uri to inspect

    Returns:
        The scheme as written in the uri, or None if there is none
    """
    match = _SCHEME_PATTERN.search(uri or "")
    return match.group(1) if match else None


class AdapterRegistry:
    """Registry of off-chain data adapters keyed by lower-cased uri scheme.

    An entry is either an adapter instance, which is shared by every caller,
    or an AdapterConfig (or a dict with ``create``/``options``), in which case a
    fresh adapter is created on every lookup.
    """

    def __init__(
        self,
        adapters: Optional[Mapping[str, AdapterEntry]] = None,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the registry.

        Args:
            adapters: Mapping of uri scheme to adapter entry
            logger: Optional contextual logger

        Raises:
            OffChainDataConfigurationError: If a scheme is declared twice
        """
        self.logger = logger or default_logger.with_context(component="adapter_registry")
        self._adapters: Dict[str, Union[AdapterConfig, OffChainDataAdapter]] = {}
        for scheme, entry in (adapters or {}).items():
            self.register(scheme, entry)

    @property
    def schemes(self) -> List[str]:
        """Registered schemes, lower-cased."""
        return sorted(self._adapters)

    def register(self, scheme: str, entry: AdapterEntry) -> None:
        """Register an adapter for a scheme.

        Args:
            scheme: Uri scheme, case-insensitive
            entry: Adapter instance or adapter config

        Raises:
            OffChainDataConfigurationError: If the scheme is already registered
                or the entry is not usable
        """
        normalized = scheme.lower()
        if normalized in self._adapters:
            raise OffChainDataConfigurationError(f"Adapter declared twice: {normalized}")

        if isinstance(entry, AdapterConfig):
            self._adapters[normalized] = entry
        elif isinstance(entry, Mapping):
            try:
                self._adapters[normalized] = AdapterConfig.model_validate(dict(entry))
            except ValueError as e:
                raise OffChainDataConfigurationError(
                    f"Invalid adapter configuration for {normalized}: {e}", e
                ) from e
        elif callable(getattr(entry, "download", None)):
            # Any object implementing the adapter interface
            self._adapters[normalized] = entry
        else:
            raise OffChainDataConfigurationError(
                f"Invalid adapter configuration for {normalized}: {type(entry).__name__}"
            )

        self.logger.debug(f"Registered off-chain data adapter for scheme '{normalized}'")

    def get_adapter(self, scheme: Optional[str]) -> OffChainDataAdapter:
        """Get an adapter for a scheme.

        Args:
            scheme: Uri scheme, case-insensitive

        Returns:
            The registered adapter instance or a fresh one built from its config

        Raises:
            OffChainDataRuntimeError: If there is no adapter for the scheme
        """
        normalized = scheme.lower() if scheme else None
        if not normalized or normalized not in self._adapters:
            raise OffChainDataRuntimeError(f"Unsupported data storage type: {normalized}")

        entry = self._adapters[normalized]
        if isinstance(entry, AdapterConfig):
            return entry.create(entry.options)
        return entry

    def get_adapter_for_uri(self, uri: str) -> OffChainDataAdapter:
        """Get an adapter for the scheme of a uri."""
        return self.get_adapter(detect_scheme(uri))
