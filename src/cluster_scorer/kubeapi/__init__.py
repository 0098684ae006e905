"""Kubernetes API client package.

Provides a lightweight HTTP client for the Kubernetes API server that
returns raw, validated node and pod objects with minimal processing.
Snapshot conversion and scoring are handled elsewhere.

Exports:
    KubeApiClient: HTTP client with authentication and pagination.
    types: Module containing Pydantic models for API responses.
    DEFAULT_API_SERVER_URL: In-cluster API server URL.
    DEFAULT_TOKEN_FILE: In-cluster service account token path.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import types
from .client import (
    DEFAULT_API_SERVER_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_TOKEN_FILE,
    ExpiredTokenError,
    KubeApiClient,
)

__all__ = [
    "DEFAULT_API_SERVER_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TOKEN_FILE",
    "ExpiredTokenError",
    "KubeApiClient",
    "types",
]
