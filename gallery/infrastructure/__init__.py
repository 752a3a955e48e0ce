"""
Infrastructure layer - external service integrations.

- storage: Object storage (R2/S3/MinIO) holding the gallery images

These wrappers implement the protocols the core gallery depends on.
"""
