"""
Namespace Log Collector
Walks the pods and containers of a namespace and writes their logs to a report sink.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .report import ReportSink
from .tools.kubernetes_logs import get_pod_logs
from .tools.kubernetes_pods import get_container_names, list_pods
from .tools.log_filter import LogFilter
from .tools.patterns import FilterSpec

logger = logging.getLogger(__name__)


@dataclass
class CollectionSummary:
    """Counts for one run; failures never change the exit code."""

    pods: int = 0
    containers: int = 0
    failures: int = 0


def collect_namespace_logs(namespace: str, filter_spec: FilterSpec, sink: ReportSink, v1,
                           log_filter: Optional[LogFilter] = None,
                           request_timeout: Optional[int] = None) -> CollectionSummary:
    """
    Collect the logs of every container of every pod in a namespace.

    Pods and containers are visited in the order the API returns them and
    one container is fetched, filtered and written at a time. A failed
    cluster call is written to the sink in place of the output it would
    have produced and the walk moves on to the next item.

    Args:
        namespace: Namespace to collect
        filter_spec: Resolved FilterSpec, shared read-only by every container
        sink: Report sink receiving the structured writes
        v1: CoreV1Api instance
        log_filter: Prebuilt LogFilter for filter_spec (built here if omitted)
        request_timeout: Optional API request timeout in seconds

    Returns:
        CollectionSummary for the run
    """
    log_filter = log_filter or LogFilter(filter_spec)
    summary = CollectionSummary()

    sink.write_title(namespace)
    sink.write_filter_summary(filter_spec.pattern, filter_spec.extra_args)

    pods_result = list_pods(namespace, v1=v1, request_timeout=request_timeout)
    if "error" in pods_result:
        summary.failures += 1
        sink.write_error(pods_result["message"])
        return summary

    logger.info(pods_result["message"])

    for pod_name in pods_result["pods"]:
        summary.pods += 1
        sink.write_pod_header(pod_name)

        containers_result = get_container_names(pod_name, namespace, v1=v1,
                                                request_timeout=request_timeout)
        if "error" in containers_result:
            summary.failures += 1
            sink.write_error(containers_result["message"])
            continue

        for container in containers_result["containers"]:
            summary.containers += 1
            sink.write_container_header(container)

            if not filter_spec.has_pattern:
                sink.write_no_pattern_notice()

            logs_result = get_pod_logs(pod_name, namespace, container, v1=v1,
                                       request_timeout=request_timeout)
            if "error" in logs_result:
                summary.failures += 1
                sink.write_error(logs_result["message"])
                continue

            if filter_spec.has_pattern:
                sink.write_block(log_filter.apply(logs_result["logs"]), fenced=True)
            else:
                sink.write_block(logs_result["logs"], fenced=False)

    logger.debug(
        f"Collected {summary.containers} container(s) from {summary.pods} pod(s) "
        f"in {namespace} with {summary.failures} failure(s)"
    )
    return summary
