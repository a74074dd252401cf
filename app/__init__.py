"""UMKM Assistant application package.

FastAPI backend that answers small-business finance questions, optionally
grounded on one uploaded document, receipt photo or shop video.
Subpackages include:
- api: FastAPI route definitions
- core: configuration, logging and error types
- services: upload storage, extraction, frame sampling, AI gateway
- schemas: Pydantic models
- workers: housekeeping scheduler
"""

__all__ = [
    "api",
    "core",
    "services",
    "schemas",
    "workers",
]

__version__ = "1.0.0"
