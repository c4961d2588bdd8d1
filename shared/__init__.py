"""
Shared utilities for the edge cache service.

This package aggregates the ambient building blocks used by service_edge:

- config: Service configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application skeleton (health, metrics, error handlers)

Do not import from service_edge into shared/.
"""
