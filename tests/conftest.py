from types import SimpleNamespace

import pytest
from kubernetes.client.rest import ApiException


class FakeLogResponse:
    def __init__(self, text):
        self.data = text.encode("utf-8")
        self.released = False

    def release_conn(self):
        self.released = True


class FakeCoreV1Api:
    """In-memory stand-in for kubernetes.client.CoreV1Api.

    pods maps pod name -> container names (dict order is the API order);
    logs maps (pod, container) -> log text. Any name listed in failing_pods
    or any (pod, container) in failing_logs raises ApiException.
Every call records its _request_timeout in timeouts.
    """

    def __init__(self, pods=None, logs=None, failing_pods=(), failing_logs=(), fail_listing=False):
        self.pods = pods or {}
        self.logs = logs or {}
        self.failing_pods = set(failing_pods)
        self.failing_logs = set(failing_logs)
        self.fail_listing = fail_listing
        self.calls = []
        self.timeouts = []

    def list_namespaced_pod(self, namespace, _request_timeout=None):
        self.calls.append(("list_namespaced_pod", namespace))
        self.timeouts.append(_request_timeout)
        if self.fail_listing:
            raise ApiException(status=403, reason="Forbidden")
        return SimpleNamespace(items=[
            SimpleNamespace(metadata=SimpleNamespace(name=name, namespace=namespace))
            for name in self.pods
        ])

    def read_namespaced_pod(self, name, namespace, _request_timeout=None):
        self.calls.append(("read_namespaced_pod", name))
        self.timeouts.append(_request_timeout)
        if name in self.failing_pods or name not in self.pods:
            raise ApiException(status=404, reason="Not Found")
        containers = [SimpleNamespace(name=c) for c in self.pods[name]]
        return SimpleNamespace(
            metadata=SimpleNamespace(name=name, namespace=namespace),
            spec=SimpleNamespace(containers=containers),
        )

    def read_namespaced_pod_log(self, name, namespace, container=None, _preload_content=True,
                                _request_timeout=None):
        self.calls.append(("read_namespaced_pod_log", name, container))
        self.timeouts.append(_request_timeout)
        if (name, container) in self.failing_logs:
            raise ApiException(status=400, reason="container is waiting to start")
        return FakeLogResponse(self.logs.get((name, container), ""))


class RecordingSink:
    """Report sink that records every call in order."""

    def __init__(self):
        self.calls = []

    def write_title(self, namespace):
        self.calls.append(("title", namespace))

    def write_filter_summary(self, pattern, extra_args=""):
        self.calls.append(("summary", pattern, extra_args))

    def write_pod_header(self, pod_name):
        self.calls.append(("pod", pod_name))

    def write_container_header(self, container_name):
        self.calls.append(("container", container_name))

    def write_block(self, text, fenced=False):
        self.calls.append(("block", text, fenced))

    def write_no_pattern_notice(self):
        self.calls.append(("notice",))

    def write_error(self, message):
        self.calls.append(("error", message))


DEMO_APP_LOG = "\n".join([
    "starting app",
    "loading config",
    "config loaded",
    "listening on :8080",
    "GET /health 200",
    "ERROR db connection refused",
    "retrying",
    "retry 1",
    "retry 2",
    "connected",
    "GET /health 200",
    "GET /health 200",
    "GET /health 200",
]) + "\n"

DEMO_SIDECAR_LOG = "\n".join([
    "proxy starting",
    "upstream ok",
    "warn: slow upstream",
    "upstream ok",
    "error: upstream reset",
    "upstream ok",
]) + "\n"


@pytest.fixture
def demo_cluster():
    return FakeCoreV1Api(
        pods={"web-1": ["app", "sidecar"]},
        logs={("web-1", "app"): DEMO_APP_LOG, ("web-1", "sidecar"): DEMO_SIDECAR_LOG},
    )


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("KNSLOGS_KUBE_CONTEXT", "KNSLOGS_KUBECONFIG", "KNSLOGS_REQUEST_TIMEOUT",
                 "KNSLOGS_LOG_LEVEL", "KNSLOGS_NO_COLOR", "NO_COLOR"):
        monkeypatch.delenv(name, raising=False)
