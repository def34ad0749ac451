"""
Protocol definitions for external infrastructure collaborators.

Protocols define contracts that adapters must fulfill, enabling:
- Duck typing with static type checking
- Dependency inversion (depend on abstractions, not concretions)
- Easy mocking in tests

Available Protocols:
    ObjectStore: Blob storage used for chat attachments

Usage:
    from core.protocols import ObjectStore
    from core.storage import get_object_store

    store: ObjectStore = get_object_store()
    target = store.generate_upload_url()
    # client uploads to target.url, then sends target.ref with the message
    url = store.get_url(target.ref)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class UploadTarget:
    """
    Where a client should upload a new object.

    Attributes:
        ref: Opaque storage reference the client sends back with the message
        url: URL the client uploads the bytes to
    """

    ref: str
    url: str


@runtime_checkable
class ObjectStore(Protocol):
    """
    Protocol for attachment blob storage.

    The store is opaque to the messaging layer: it only issues upload
    targets and resolves references to URLs.
    """

    def generate_upload_url(self) -> UploadTarget:
        """Reserve a new storage reference and return its upload target."""
        ...

    def get_url(self, ref: str) -> str | None:
        """
        Resolve a storage reference to a URL.

        Returns:
            URL string, or None if the reference cannot be resolved
        """
        ...
