"""Off-chain data adapter interface.

Adapters are injected by the application through an AdapterRegistry; this
package does not ship any concrete storage implementation.

Usage:
    class HttpsAdapter(OffChainDataAdapter):
        async def download(self, uri: str) -> Optional[Document]:
            ...

    registry = AdapterRegistry({"https": HttpsAdapter()})
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

Document = Union[Dict[str, Any], List[Any]]


class OffChainDataAdapter(ABC):
    """Abstract adapter for one off-chain storage (one uri scheme).

    All methods are async. Documents are JSON-like structures.
    """

    @abstractmethod
    async def upload(self, data: Document) -> str:
        """Upload a new document.

        Args:
            data: Document to store

        Returns:
            Uri of the stored document
        """
        pass

    @abstractmethod
    async def update(self, uri: str, data: Document) -> str:
        """Replace the document stored under a uri.

        Args:
            uri: Uri of an existing document
            data: New document

        Returns:
            Uri of the stored document
        """
        pass

    @abstractmethod
    async def download(self, uri: str) -> Optional[Document]:
        """Download the document stored under a uri.

        Args:
            uri: Uri including the scheme, e.g. ``in-memory://abc``

        Returns:
            The document, or None if the storage holds nothing there
        """
        pass
