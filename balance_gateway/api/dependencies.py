"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from balance_gateway.config import settings
from balance_gateway.infrastructure.cache import ResponseCache
from balance_gateway.infrastructure.clients.backend import BackendClient

# Shared across requests so a closeout can invalidate what balance views cached
response_cache = ResponseCache(ttl_seconds=settings.cache_ttl_seconds)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_backend_client() -> BackendClient:
    """Provide payments backend client instance"""
    return BackendClient()


def get_response_cache() -> ResponseCache:
    return response_cache
