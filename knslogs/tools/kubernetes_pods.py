"""
Kubernetes Pods Tool
Enumerate pods in a namespace and the containers of a pod.
"""

import logging
from typing import Any, Dict, Optional

from .kubernetes_client import CLUSTER_ERRORS, get_k8s_client

logger = logging.getLogger(__name__)


def list_pods(namespace: str, v1=None, request_timeout: Optional[int] = None) -> Dict[str, Any]:
    """
    List the pods of a namespace in the order the API returns them.

    Args:
        namespace: Namespace to list
        v1: Optional CoreV1Api instance (created from kubeconfig when omitted)
        request_timeout: Optional API request timeout in seconds

    Returns:
        Dict containing either:
        - pods: Pod names
        - total_count: Number of pods
        - namespace, message, status
        or, on failure:
        - error, namespace, message
    """
    try:
        v1 = v1 or get_k8s_client()
        pods = v1.list_namespaced_pod(namespace=namespace, _request_timeout=request_timeout)

        pod_names = [pod.metadata.name for pod in pods.items]

        return {
            "pods": pod_names,
            "total_count": len(pod_names),
            "namespace": namespace,
            "message": f"Found {len(pod_names)} pod(s) in namespace {namespace}",
            "status": "OK"
        }

    except CLUSTER_ERRORS as e:
        logger.error(f"Failed to list pods in {namespace}: {e}")
        return {
            "error": str(e),
            "namespace": namespace,
            "message": f"Failed to list pods: {str(e)}"
        }


def get_container_names(pod_name: str, namespace: str, v1=None,
                        request_timeout: Optional[int] = None) -> Dict[str, Any]:
    """
    Get the container names declared in a pod spec, in spec order.

    Init and ephemeral containers are not included.

    Args:
        pod_name: Name of the pod
        namespace: Namespace of the pod
        v1: Optional CoreV1Api instance
        request_timeout: Optional API request timeout in seconds

    Returns:
        Dict containing either:
        - pod_name, namespace
        - containers: Container names
        - message, status
        or, on failure:
        - error, pod_name, namespace, message
    """
    try:
        v1 = v1 or get_k8s_client()
        pod = v1.read_namespaced_pod(name=pod_name, namespace=namespace,
                                     _request_timeout=request_timeout)

        containers = [c.name for c in (pod.spec.containers or [])]

        return {
            "pod_name": pod_name,
            "namespace": namespace,
            "containers": containers,
            "message": f"Pod {pod_name} has {len(containers)} container(s)",
            "status": "OK"
        }

    except CLUSTER_ERRORS as e:
        logger.error(f"Failed to read pod {namespace}/{pod_name}: {e}")
        return {
            "error": str(e),
            "pod_name": pod_name,
            "namespace": namespace,
            "message": f"Failed to get containers: {str(e)}"
        }
