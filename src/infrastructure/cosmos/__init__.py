"""
Cosmos DB integration for video metadata.

Includes an in-memory container for local development without an account.
"""

from .client import (
    CosmosConfig,
    CosmosConnectionError,
    MockCosmosContainer,
    create_cosmos_client,
    get_container,
)

__all__ = [
    "CosmosConfig",
    "CosmosConnectionError",
    "MockCosmosContainer",
    "create_cosmos_client",
    "get_container",
]
