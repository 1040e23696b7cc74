"""Abstract remote record services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class RemoteServiceError(Exception):
    """Error from a remote record service."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteService(ABC, Generic[T]):
    """
    Remote authority for one record type.

    Every mutation answers with the complete collection as it stands after
    the mutation, not just the affected record. That is the only way to
    learn the identity the server assigned to a newly created record.
    """

    @abstractmethod
    async def list_all(self) -> list[T]:
        """The complete server collection. An empty collection is ``[]``."""
        ...

    @abstractmethod
    async def create_or_update(self, record: T) -> list[T]:
        """Create (temporary identity) or update (permanent identity) a record.

        Returns:
            The complete collection after the mutation.

        Raises:
            RemoteServiceError: If the server rejected the request or is unreachable.
        """
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Delete a record by its permanent identity.

        Raises:
            RemoteServiceError: If the deletion was not acknowledged.
        """
        ...
