"""
Infrastructure layer - external service integrations.

- storage: Azure Blob Storage client and connection bootstrap
- metrics: sinks for blob read latency
"""
