"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Azure Blob Storage (existence, delete, SAS URLs)
- cosmos: Azure Cosmos DB (video metadata)

These wrappers translate between external formats and our domain models.
"""
