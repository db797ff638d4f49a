"""
Azure Blob Reader - serves Azure Blob Storage objects as virtual files.

This package contains the complete application:
- core: Framework-agnostic reader logic (paths, metadata, downloads, redirects)
- infrastructure: Azure SDK integration and metrics sinks
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
