"""
knslogs Tools Package
Cluster access, search pattern resolution and log filtering
"""

from .patterns import FilterSpec, resolve_filter_spec, MODE_PATTERNS
from .log_filter import LogFilter, SearchOptions, filter_logs, parse_search_args

# Kubernetes tools
from .kubernetes_client import get_k8s_client
from .kubernetes_pods import list_pods, get_container_names
from .kubernetes_logs import get_pod_logs

__all__ = [
    "FilterSpec",
    "resolve_filter_spec",
    "MODE_PATTERNS",
    "LogFilter",
    "SearchOptions",
    "filter_logs",
    "parse_search_args",
    # Kubernetes tools
    "get_k8s_client",
    "list_pods",
    "get_container_names",
    "get_pod_logs"
]
