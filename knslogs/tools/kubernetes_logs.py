"""
Kubernetes Logs Tool
Get the current logs of one pod container.
"""

import logging
from typing import Any, Dict, Optional

from .kubernetes_client import CLUSTER_ERRORS, get_k8s_client

logger = logging.getLogger(__name__)


def get_pod_logs(pod_name: str, namespace: str, container: str, v1=None,
                 request_timeout: Optional[int] = None) -> Dict[str, Any]:
    """
    Get the complete current log text of a container.

    The body is read raw and decoded here so that JSON-looking log lines
    are not deserialized by the client.

    Args:
        pod_name: Name of the pod
        namespace: Namespace of the pod
        container: Container name
        v1: Optional CoreV1Api instance
        request_timeout: Optional API request timeout in seconds

    Returns:
        Dict containing either:
        - pod_name, namespace, container
        - logs: Full log text
        - line_count: Number of log lines
        - message, status
        or, on failure:
        - error, pod_name, namespace, container, message
    """
    try:
        v1 = v1 or get_k8s_client()

        response = v1.read_namespaced_pod_log(
            name=pod_name,
            namespace=namespace,
            container=container,
            _preload_content=False,
            _request_timeout=request_timeout
        )
        logs = response.data.decode("utf-8", errors="replace") if response.data else ""
        response.release_conn()

        line_count = len(logs.splitlines())

        return {
            "pod_name": pod_name,
            "namespace": namespace,
            "container": container,
            "logs": logs,
            "line_count": line_count,
            "message": f"Retrieved {line_count} log line(s) from {pod_name}/{container}",
            "status": "OK"
        }

    except CLUSTER_ERRORS as e:
        logger.warning(f"Failed to get logs for {namespace}/{pod_name}/{container}: {e}")
        return {
            "error": str(e),
            "pod_name": pod_name,
            "namespace": namespace,
            "container": container,
            "message": f"Failed to get pod logs: {str(e)}"
        }
