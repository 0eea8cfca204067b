"""Balloon position consolidation service.

Subpackages:
- api: FastAPI application, middleware and routes.
- schemas: Pydantic models for records, results and weather samples.
- services: Validator, snapshot fetcher, consolidator, caches and services.
"""

__version__ = "0.1.0"

__all__ = ["api", "schemas", "services"]
