"""Kubernetes API server client.

Provides an HTTP client with bearer token authentication, thread safety,
chunked list pagination and response validation using Pydantic models.
"""

import base64
import json
import threading
import time
from pathlib import Path
from typing import Any, TypeVar

import httpx
import pydantic
import structlog

from .types import RawListMeta, RawNode, RawPod

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

logger = structlog.get_logger(__name__)

DEFAULT_API_SERVER_URL = "https://kubernetes.default.svc"
DEFAULT_TOKEN_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/token"
DEFAULT_TIMEOUT = 30.0

# Page size for chunked LIST requests.
LIST_PAGE_LIMIT = 500


class ExpiredTokenError(Exception):
    """Raised when the service account token has expired."""


def validate_jwt_not_expired(token: str) -> None:
    """Check that a JWT bearer token has not expired.

    Decodes the JWT payload without verifying the signature and checks
    the ``exp`` claim against the current time. If the token is not a valid
    JWT or has no ``exp`` claim, a warning is logged and execution continues.

    Args:
        token: The raw JWT string (header.payload.signature).

    Raises:
        ExpiredTokenError: If the token's ``exp`` claim is in the past.
    """
    parts = token.split(".")
    if len(parts) != 3:  # noqa: PLR2004
        logger.warning("Token does not appear to be a JWT, skipping expiry check")
        return

    try:
        payload_b64 = parts[1]
        padding = 4 - len(payload_b64) % 4
        if padding != 4:  # noqa: PLR2004
            payload_b64 += "=" * padding

        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
    except (ValueError, json.JSONDecodeError):
        logger.warning("Failed to decode JWT payload, skipping expiry check")
        return

    exp = payload.get("exp") if isinstance(payload, dict) else None
    if exp is None:
        logger.warning("JWT has no 'exp' claim, skipping expiry check")
        return

    now = time.time()
    if now >= exp:
        msg = f"Service account token has expired (exp={exp}, now={int(now)})"
        raise ExpiredTokenError(msg)

    logger.info("JWT expiry validated", expires_in_seconds=int(exp - now))


def _validate_items(
    model: type[ModelT],
    items: list[Any],
    kind: str,
) -> list[ModelT]:
    """Validate list items one by one, skipping malformed objects.

    A single object with an unexpected shape is logged and dropped so that it
    cannot fail the whole listing.
    """
    validated = []
    for item in items:
        try:
            validated.append(model.model_validate(item))
        except pydantic.ValidationError as exc:
            metadata = item.get("metadata") if isinstance(item, dict) else None
            if not isinstance(metadata, dict):
                metadata = {}
            logger.warning(
                "Skipping malformed object",
                kind=kind,
                name=metadata.get("name", ""),
                namespace=metadata.get("namespace", ""),
                error_count=exc.error_count(),
            )
    return validated


class KubeApiClient:
    """HTTP client for the Kubernetes API server.

    Lists nodes and pods cluster-wide and returns Pydantic-validated raw
    objects. Conversion into scoring snapshots is left to the snapshot layer.

    Thread-safe through thread-local storage of httpx.Client instances.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_SERVER_URL,
        token_file: str | Path | None = None,
        ca_file: str | Path | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the API client.

        Args:
            base_url: API server URL (e.g., "https://kubernetes.default.svc").
            token_file: Path to file containing the bearer token.
            ca_file: CA bundle used to verify the API server certificate.
                System trust store is used when omitted.
            timeout: Request timeout in seconds (default: 30.0).

        Raises:
            ValueError: If base_url is empty or timeout is not positive.
            FileNotFoundError: If token_file or ca_file doesn't exist.
        """
        if not base_url:
            msg = "base_url cannot be empty"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"Accept": "application/json"}

        if token_file:
            token_path = Path(token_file)
            if not token_path.exists():
                msg = f"Token file not found: {token_file}"
                raise FileNotFoundError(msg)
            token = token_path.read_text().strip()
            validate_jwt_not_expired(token)
            self._headers["Authorization"] = f"Bearer {token}"

        self._verify: str | bool = True
        if ca_file:
            if not Path(ca_file).exists():
                msg = f"CA file not found: {ca_file}"
                raise FileNotFoundError(msg)
            self._verify = str(ca_file)

        self._local = threading.local()

    @property
    def client(self) -> httpx.Client:
        """Get or create the thread-local httpx client."""
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self._timeout,
                verify=self._verify,
            )
        return self._local.client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the thread-local HTTP client if open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def _make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a GET request to the API server.

        Args:
            endpoint: API path (e.g., "/api/v1/nodes").
            params: Optional query parameters.

        Returns:
            Raw JSON response as dictionary.

        Raises:
            httpx.HTTPError: If HTTP request fails.
            RuntimeError: If the API server answers with a failure Status or
                a body that is not a JSON object.
        """
        start_time = time.time()
        params = params or {}

        try:
            logger.debug(
                "Making API request",
                method="GET",
                endpoint=endpoint,
                params=params,
            )
            response = self.client.get(endpoint, params=params)
            response.raise_for_status()
            duration = time.time() - start_time
            logger.debug("API request completed", duration_seconds=round(duration, 3))

            try:
                data = response.json()
            except ValueError as exc:
                logger.error("API response is not JSON", endpoint=endpoint)
                msg = f"API returned a non-JSON response for {endpoint}"
                raise RuntimeError(msg) from exc
            if not isinstance(data, dict):
                logger.error("API response is not an object", endpoint=endpoint)
                msg = f"API returned an unexpected response shape for {endpoint}"
                raise RuntimeError(msg)

            if data.get("kind") == "Status" and data.get("status") == "Failure":
                message = data.get("message", "unknown failure")
                logger.error(
                    "API error response",
                    error_message=message,
                    reason=data.get("reason", ""),
                )
                msg = f"API returned failure status: {message}"
                raise RuntimeError(msg)
            return data  # noqa: TRY300

        except httpx.HTTPError:
            duration = time.time() - start_time
            logger.exception(
                "API request failed",
                duration_seconds=round(duration, 3),
            )
            raise

    def _list_items(self, endpoint: str) -> list[dict[str, Any]]:
        """Collect all items of a LIST endpoint across continue pages."""
        items: list[dict[str, Any]] = []
        params: dict[str, Any] = {"limit": LIST_PAGE_LIMIT}

        while True:
            data = self._make_request(endpoint=endpoint, params=params)
            page_items = data.get("items") or []
            if not isinstance(page_items, list):
                msg = f"API returned non-list items for {endpoint}"
                raise RuntimeError(msg)
            items.extend(page_items)

            list_meta = RawListMeta.model_validate(data.get("metadata") or {})
            if not list_meta.continue_token:
                return items
            params = {"limit": LIST_PAGE_LIMIT, "continue": list_meta.continue_token}

    def list_nodes(self) -> list[RawNode]:
        """Fetch all nodes from the API server.

        Returns:
            List of validated RawNode objects. Nodes with an unexpected
            shape are skipped.

        Raises:
            httpx.HTTPError: If HTTP request fails.
            RuntimeError: If the API server returns a failure Status.
        """
        return _validate_items(RawNode, self._list_items("/api/v1/nodes"), "node")

    def list_pods(self) -> list[RawPod]:
        """Fetch all pods in all namespaces from the API server.

        Returns:
            List of validated RawPod objects. Pods with an unexpected
            shape are skipped.

        Raises:
            httpx.HTTPError: If HTTP request fails.
            RuntimeError: If the API server returns a failure Status.
        """
        return _validate_items(RawPod, self._list_items("/api/v1/pods"), "pod")
