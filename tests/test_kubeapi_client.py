"""Tests for KubeApiClient request handling.

HTTP traffic is served by an httpx.MockTransport injected as the
thread-local client, so no network access is needed.
"""

import httpx
import pytest

from cluster_scorer.kubeapi import client


def _install_transport(api: client.KubeApiClient, handler) -> list[httpx.Request]:
    """Route the client's requests to handler and record them."""
    seen: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    api._local.client = httpx.Client(
        base_url=api.base_url,
        transport=httpx.MockTransport(recording_handler),
    )
    return seen


@pytest.fixture
def api() -> client.KubeApiClient:
    return client.KubeApiClient(base_url="https://k8s.test/")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_empty_base_url_rejected():
    """An empty base URL raises ValueError."""
    with pytest.raises(ValueError, match="base_url"):
        client.KubeApiClient(base_url="")


def test_non_positive_timeout_rejected():
    """A zero timeout raises ValueError."""
    with pytest.raises(ValueError, match="timeout"):
        client.KubeApiClient(base_url="https://k8s.test", timeout=0)


def test_missing_token_file_rejected(tmp_path):
    """A token file path that does not exist raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="Token file"):
        client.KubeApiClient(
            base_url="https://k8s.test",
            token_file=tmp_path / "missing",
        )


def test_missing_ca_file_rejected(tmp_path):
    """A CA file path that does not exist raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="CA file"):
        client.KubeApiClient(base_url="https://k8s.test", ca_file=tmp_path / "ca")


def test_token_sent_as_bearer_header(tmp_path):
    """The token file content is sent as a bearer token."""
    token_file = tmp_path / "token"
    token_file.write_text("opaque-token\n")

    api = client.KubeApiClient(base_url="https://k8s.test", token_file=token_file)

    assert api.client.headers["Authorization"] == "Bearer opaque-token"
    api.close()


def test_base_url_trailing_slash_stripped(api: client.KubeApiClient):
    assert api.base_url == "https://k8s.test"


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def test_list_nodes_follows_continue_pages(api: client.KubeApiClient):
    """Items from every page are returned in order."""

    first_page = {
        "kind": "NodeList",
        "metadata": {"continue": "page-2"},
        "items": [{"metadata": {"name": "worker-1"}}],
    }
    last_page = {
        "kind": "NodeList",
        "metadata": {},
        "items": [{"metadata": {"name": "worker-2"}}],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("continue") == "page-2":
            return httpx.Response(200, json=last_page)
        return httpx.Response(200, json=first_page)

    seen = _install_transport(api, handler)

    nodes = api.list_nodes()

    assert [n.metadata.name for n in nodes] == ["worker-1", "worker-2"]
    assert len(seen) == 2
    assert seen[0].url.path == "/api/v1/nodes"
    assert seen[0].url.params["limit"] == str(client.LIST_PAGE_LIMIT)


def test_list_pods_parses_items(api: client.KubeApiClient):
    """Pods are validated into RawPod models."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/pods"
        pod = {
            "metadata": {"name": "p", "namespace": "ns"},
            "spec": {"containers": [{"name": "c"}]},
        }
        return httpx.Response(
            200,
            json={"kind": "PodList", "metadata": {}, "items": [pod]},
        )

    _install_transport(api, handler)

    (pod,) = api.list_pods()

    assert pod.metadata.namespace == "ns"
    assert pod.spec.containers[0].name == "c"
    assert pod.spec.init_containers == []


def test_empty_items_list(api: client.KubeApiClient):
    """A list response with null items yields no objects."""
    _install_transport(
        api,
        lambda request: httpx.Response(200, json={"metadata": {}, "items": None}),
    )
    assert api.list_nodes() == []


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def test_http_error_status_raises(api: client.KubeApiClient):
    """Non-2xx responses raise httpx.HTTPStatusError."""
    _install_transport(
        api,
        lambda request: httpx.Response(
            403,
            json={"kind": "Status", "status": "Failure", "reason": "Forbidden"},
        ),
    )
    with pytest.raises(httpx.HTTPStatusError):
        api.list_nodes()


def test_failure_status_body_raises_runtime_error(api: client.KubeApiClient):
    """A Failure Status body raises RuntimeError with the server message."""
    _install_transport(
        api,
        lambda request: httpx.Response(
            200,
            json={
                "kind": "Status",
                "status": "Failure",
                "message": "too old resource version",
            },
        ),
    )
    with pytest.raises(RuntimeError, match="too old resource version"):
        api.list_pods()


def test_non_json_body_raises_runtime_error(api: client.KubeApiClient):
    """A 2xx HTML page from a proxy raises RuntimeError, not a JSON error."""
    _install_transport(
        api,
        lambda request: httpx.Response(200, text="<html>proxy</html>"),
    )
    with pytest.raises(RuntimeError, match="non-JSON"):
        api.list_pods()


def test_json_array_body_raises_runtime_error(api: client.KubeApiClient):
    """A JSON body that is not an object raises RuntimeError."""
    _install_transport(api, lambda request: httpx.Response(200, json=[1, 2]))
    with pytest.raises(RuntimeError, match="unexpected response shape"):
        api.list_nodes()


def test_non_list_items_raises_runtime_error(api: client.KubeApiClient):
    """An items field that is not a list raises RuntimeError."""
    _install_transport(
        api,
        lambda request: httpx.Response(200, json={"items": {"name": "x"}}),
    )
    with pytest.raises(RuntimeError, match="non-list items"):
        api.list_nodes()


# ---------------------------------------------------------------------------
# Malformed objects
# ---------------------------------------------------------------------------


def test_malformed_pod_skipped(api: client.KubeApiClient):
    """A pod with an invalid shape is dropped while the rest are returned."""
    good = {
        "metadata": {"name": "good", "namespace": "ns"},
        "spec": {"containers": [{"resources": {"requests": {"cpu": "1"}}}]},
    }
    bad = {
        "metadata": {"name": "bad", "namespace": "ns"},
        "spec": {"containers": [{"resources": {"requests": {"cpu": 1}}}]},
    }
    _install_transport(
        api,
        lambda request: httpx.Response(200, json={"items": [good, bad]}),
    )

    pods = api.list_pods()

    assert [p.metadata.name for p in pods] == ["good"]


def test_non_object_item_skipped(api: client.KubeApiClient):
    """List entries that are not objects are dropped."""
    _install_transport(
        api,
        lambda request: httpx.Response(
            200,
            json={"items": ["garbage", {"metadata": {"name": "worker-1"}}]},
        ),
    )

    nodes = api.list_nodes()

    assert [n.metadata.name for n in nodes] == ["worker-1"]
