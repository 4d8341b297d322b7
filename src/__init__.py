"""
Video API - brokers time-limited access to Azure Blob Storage for videos.

This package contains the complete application:
- core: Framework-agnostic video lifecycle logic
- infrastructure: Azure Blob Storage and Cosmos DB integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
