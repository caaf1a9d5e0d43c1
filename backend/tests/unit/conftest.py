"""Unit test conftest for setting up test environment."""

import os
from typing import Dict, List, Optional
from uuid import uuid4

# Set environment before importing any ledgerstate modules
os.environ.setdefault("LEDGERSTATE_LOG_LEVEL", "DEBUG")

import pytest  # noqa: E402

from ledgerstate.platform.storage import AdapterRegistry, OffChainDataAdapter  # noqa: E402
from ledgerstate.platform.storage.backend import Document  # noqa: E402


class InMemoryAdapter(OffChainDataAdapter):
    """Off-chain adapter keeping documents in a dict, shared per class."""

    storage: Dict[str, Document] = {}

    def __init__(self, options: Optional[dict] = None):
        self.options = options or {}
        self.downloaded: List[str] = []

    @staticmethod
    def _key(uri: str) -> str:
        return uri.split("://", 1)[-1]

    @classmethod
    def create(cls, data: Document) -> str:
        """Store a document and return its uri."""
        key = str(uuid4())
        cls.storage[key] = data
        return f"in-memory://{key}"

    async def upload(self, data: Document) -> str:
        return self.create(data)

    async def update(self, uri: str, data: Document) -> str:
        self.storage[self._key(uri)] = data
        return uri

    async def download(self, uri: str) -> Optional[Document]:
        self.downloaded.append(uri)
        return self.storage.get(self._key(uri))


@pytest.fixture(autouse=True)
def clean_in_memory_storage():
    """Start every test with empty in-memory storage."""
    InMemoryAdapter.storage = {}
    yield
    InMemoryAdapter.storage = {}


@pytest.fixture
def in_memory_adapter():
    """Shared in-memory adapter instance."""
    return InMemoryAdapter()


@pytest.fixture
def registry(in_memory_adapter):
    """Registry serving the in-memory adapter under ``in-memory://``."""
    return AdapterRegistry({"in-memory": in_memory_adapter})


@pytest.fixture
def in_memory_adapter_class():
    """The in-memory adapter class, for adapter factory configurations."""
    return InMemoryAdapter
