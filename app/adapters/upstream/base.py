from abc import ABC, abstractmethod
from typing import Any


class AbstractSpeciesClient(ABC):
    """Interface for the upstream species catalog."""

    @abstractmethod
    async def fetch_page(self, *, offset: int, limit: int) -> dict[str, Any]:
        """Fetch one page of the paginated list endpoint.

        Returns:
            dict[str, Any]: Upstream body with at least ``count`` and ``results``.

        Raises:
            UpstreamFetchError: If the call fails or returns a non-success status.
        """
        ...

    @abstractmethod
    async def fetch_item(self, identifier: str) -> dict[str, Any]:
        """Fetch one item by name or numeric id.

        Raises:
            UpstreamNotFoundError: If the upstream reports 404.
            UpstreamFetchError: For any other failure.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying HTTP resources."""
        return None
