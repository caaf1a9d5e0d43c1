"""Exceptions for ledgerstate.

All library exceptions inherit from LedgerStateError and keep the failure
that caused them in ``original_error``.

Configuration errors (bad uri, conflicting schema names, duplicate adapters)
are not retryable. RemoteDataReadError and download failures usually are.
"""

from typing import Optional


class LedgerStateError(Exception):
    """Base exception for ledgerstate."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        """Initialize the error.

        Args:
            message: Human-readable description
            original_error: The underlying failure, if any
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class OffChainDataError(LedgerStateError):
    """Generic error related to off-chain stored data."""

    pass


class OffChainDataConfigurationError(OffChainDataError):
    """Raised when the off-chain adapters are misconfigured."""

    pass


class OffChainDataRuntimeError(OffChainDataError):
    """Raised when an off-chain storage cannot be used (e.g. unsupported scheme)."""

    pass


class StoragePointerError(LedgerStateError):
    """Raised when a StoragePointer cannot be created or resolved.

    Examples:
    - Missing uri
    - Conflicting field names in the schema
    - Required pointer field missing from the document
    - Pointer field of a wrong type
    - Adapter failure during download
    """

    pass


class RemotelyBackedDatasetError(LedgerStateError):
    """Generic error raised by a RemotelyBackedDataset."""

    pass


class RemoteDataAccessError(RemotelyBackedDatasetError):
    """Raised when remote data cannot be accessed in the dataset's current state."""

    pass


class RemoteDataReadError(RemotelyBackedDatasetError):
    """Raised when reading from the remote storage fails.

    The dataset stays unfetched, so reading again retries the whole fetch.
    """

    pass
