"""
Kubernetes Client
Shared CoreV1Api construction for the cluster tools.
"""

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ..config import Settings
from ..exceptions import ClusterConfigError

logger = logging.getLogger(__name__)

# Failures of a single API call; these become per-item error results.
CLUSTER_ERRORS = (ApiException, HTTPError, OSError)


def get_k8s_client(settings: Optional[Settings] = None) -> client.CoreV1Api:
    """
    Get a CoreV1Api client.

    In-cluster configuration is tried first unless an explicit context or
    kubeconfig was requested; the local kubeconfig is the fallback.

    Args:
        settings: Optional Settings carrying kube_context / kubeconfig

    Returns:
        Configured CoreV1Api instance

    Raises:
        ClusterConfigError: If no configuration could be loaded
    """
    settings = settings or Settings()
    explicit = bool(settings.kube_context or settings.kubeconfig)

    if not explicit:
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes configuration")
            return client.CoreV1Api()
        except config.ConfigException:
            pass

    try:
        config.load_kube_config(
            config_file=settings.kubeconfig,
            context=settings.kube_context,
        )
    except (config.ConfigException, OSError) as e:
        raise ClusterConfigError(f"Failed to load Kubernetes config: {str(e)}") from e

    logger.debug(
        f"Loaded kubeconfig (file={settings.kubeconfig or 'default'}, "
        f"context={settings.kube_context or 'current'})"
    )
    return client.CoreV1Api()

