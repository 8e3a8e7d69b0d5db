"""Upstream weather provider access used by the proxy endpoint."""

from .weatherapi_client import (
    UPSTREAM_ENDPOINTS,
    InvalidEndpointError,
    build_upstream_params,
    build_upstream_url,
    fetch_upstream,
    resolve_endpoint,
)

__all__ = [
    "UPSTREAM_ENDPOINTS",
    "InvalidEndpointError",
    "build_upstream_params",
    "build_upstream_url",
    "fetch_upstream",
    "resolve_endpoint",
]
