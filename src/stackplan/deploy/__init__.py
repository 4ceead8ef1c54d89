"""Public deploy exports for stackplan."""

from __future__ import annotations

from .orchestrator import DeploymentOrchestrator, EntryState
from .remote import LocalRemoteClient, RemoteClient, RemoteResult

__all__ = [
    "DeploymentOrchestrator",
    "EntryState",
    "RemoteClient",
    "RemoteResult",
    "LocalRemoteClient",
]
