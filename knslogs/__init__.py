"""
knslogs - Namespace log inspection for Kubernetes workloads.

Enumerates the pods of a namespace and their containers, fetches each
container's logs, optionally filters them with a search pattern, and
prints them or compiles them into a Markdown report.

Package Structure:
    - cli.py: Command-line interface and entry point
    - collector.py: Pod/container walk feeding the report sink
    - report.py: Terminal and Markdown file sinks
    - config.py: Environment (.env) settings
    - tools/: Cluster access, pattern resolution and log filtering

Usage:
    knslogs --error --file error_report.md my_namespace
    python -m knslogs --all my_namespace
"""

__version__ = "0.1.0"
