"""
Cosmos DB client management.

Provides the client factory for the metadata container, plus an in-memory
container for local development.

Using the repository pattern means most code never touches this module
directly - it goes through VideoRepository which handles the translation
between domain models and stored documents.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

from azure.cosmos.exceptions import CosmosResourceNotFoundError

logger = logging.getLogger(__name__)


class CosmosConnectionError(Exception):
    """Raised when the Cosmos client cannot be built."""
    pass


@dataclass
class CosmosConfig:
    """Configuration for the metadata container."""
    connection_string: str
    database_name: str = "VideoDB"
    container_name: str = "Videos"


class CosmosContainer(Protocol):
    """
    The subset of azure.cosmos ContainerProxy the repository uses.

    Using a protocol means tests can provide a mock without
    talking to a real account.
    """

    def upsert_item(self, body: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...

    def read_item(self, item: str, partition_key: Any, **kwargs: Any) -> dict[str, Any]: ...

    def query_items(self, query: str, **kwargs: Any) -> Iterable[dict[str, Any]]: ...

    def delete_item(self, item: str, partition_key: Any, **kwargs: Any) -> None: ...


def create_cosmos_client(config: CosmosConfig):
    """
    Build a CosmosClient from a connection string.

    The client holds a connection pool and is meant to live for the whole
    process. Callers cache it; see api.dependencies.
    """
    from azure.cosmos import CosmosClient

    if not config.connection_string:
        raise CosmosConnectionError("Cosmos DB connection string is required")

    try:
        client = CosmosClient.from_connection_string(config.connection_string)
    except (ValueError, KeyError) as e:
        logger.error(
            "Cosmos connection string rejected",
            extra={"error": str(e)}
        )
        raise CosmosConnectionError(f"Invalid Cosmos DB connection string: {e}") from e

    logger.info(
        "Initialized Cosmos client",
        extra={
            "database": config.database_name,
            "container": config.container_name,
        }
    )

    return client


def get_container(client, config: CosmosConfig) -> CosmosContainer:
    """Resolve the metadata container proxy. Makes no network call."""
    return (
        client
        .get_database_client(config.database_name)
        .get_container_client(config.container_name)
    )


# ---------------------------------------------------------------------------
# Mock Container for Local Development
# ---------------------------------------------------------------------------

class MockCosmosContainer:
    """
    In-memory stand-in for a Cosmos container partitioned by /id.

    Implements just enough of ContainerProxy to support VideoRepository:
    point reads and deletes raise the SDK's not-found error like the real
    service, and queries recognise the ORDER BY the repository issues.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self) -> None:
        # {id: document}
        self._items: dict[str, dict[str, Any]] = {}
        logger.info("Initialized mock Cosmos container (in-memory)")

    def upsert_item(self, body: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        stored = copy.deepcopy(body)
        self._items[stored["id"]] = stored
        return copy.deepcopy(stored)

    def read_item(self, item: str, partition_key: Any, **kwargs: Any) -> dict[str, Any]:
        if item not in self._items:
            raise CosmosResourceNotFoundError(
                status_code=404,
                message=f"Entity with the specified id does not exist: {item}",
            )
        return copy.deepcopy(self._items[item])

    def query_items(self, query: str, **kwargs: Any) -> list[dict[str, Any]]:
        """
        Evaluate the queries VideoRepository issues.

        Handles SELECT * with an optional ORDER BY c.<field> ASC|DESC.
        Anything else returns every item unordered.
        """
        items = [copy.deepcopy(doc) for doc in self._items.values()]

        query_upper = query.upper()
        if "ORDER BY" in query_upper:
            order_clause = query[query_upper.index("ORDER BY") + len("ORDER BY"):]
            parts = order_clause.split()
            field = parts[0].split(".", 1)[-1]
            descending = len(parts) > 1 and parts[1].upper() == "DESC"
            items.sort(key=lambda doc: doc.get(field) or "", reverse=descending)

        return items

    def delete_item(self, item: str, partition_key: Any, **kwargs: Any) -> None:
        if item not in self._items:
            raise CosmosResourceNotFoundError(
                status_code=404,
                message=f"Entity with the specified id does not exist: {item}",
            )
        del self._items[item]

    # Helper methods for testing
    def _get(self, item: str) -> Optional[dict[str, Any]]:
        """Raw stored document (for test assertions)."""
        return self._items.get(item)
