"""Sync module for ledgerstate.

Provides:
- RemotelyBackedDataset: Local working copy of remotely stored fields
- DeploymentState: Lifecycle of the dataset's remote representation
"""

from .dataset import DeploymentState, RemotelyBackedDataset

__all__ = [
    "DeploymentState",
    "RemotelyBackedDataset",
]
