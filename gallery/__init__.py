"""
Image Gallery - upload, browse and manage images kept in object storage.

This package contains the complete application:
- core: Framework-agnostic gallery state and actions
- infrastructure: Object storage clients
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
