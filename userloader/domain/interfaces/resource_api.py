"""Interface for the remote resource-creation API.

The scheduler depends only on this contract: an awaitable call that returns
the created resource, or raises RemoteApiError carrying the HTTP status.
"""

import abc
from typing import Any, Dict


class ResourceApi(abc.ABC):
    """Abstract Base Class for the remote bulk-creation endpoint."""

    @abc.abstractmethod
    async def create_resource(self, payload: Any) -> Dict[str, Any]:
        """Creates one resource remotely.

        Args:
            payload: The record to create (e.g., a UserRecord).

        Returns:
            The created resource as returned by the API.

        Raises:
            RemoteApiError: If the API rejected the request or could not be reached.
        """
        pass
