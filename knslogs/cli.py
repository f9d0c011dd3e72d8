"""
knslogs command-line interface.

Parses the command line into an immutable FilterSpec and report target,
then hands them to the collector.

Exit Codes:
    0: Normal completion, or help displayed
    1: Usage error (missing namespace, unknown argument, bad search
       arguments), unwritable report file, closed output pipe or no
       usable cluster configuration
    130: Interrupted
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional, Sequence

from .collector import collect_namespace_logs
from .config import load_settings
from .exceptions import ClusterConfigError, SearchArgumentError
from .report import RED, build_sink, color
from .tools.kubernetes_client import get_k8s_client
from .tools.log_filter import LogFilter
from .tools.patterns import resolve_filter_spec

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DESCRIPTION = """\
Search Kubernetes pod logs for specified patterns and compile results into a Markdown report.
Custom 'rg' (ripgrep) arguments can be passed with --rg-args for more advanced search options."""

EXAMPLES = """\
Examples:
  knslogs --error --file error_report.md my_namespace
  knslogs --all --rg-args '--ignore-case --follow' my_namespace
  knslogs -s 'custom pattern or regex' my_namespace"""

# Options whose value may itself start with "-", e.g. --rg-args '--ignore-case'.
_VALUE_OPTIONS = {
    "-s": "--search",
    "--search": "--search",
    "-f": "--file",
    "--file": "--file",
    "--rg-args": "--rg-args",
    "--context": "--context",
}


class _UsageParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        print(color(f"{self.prog}: error: {message}", RED), file=sys.stderr)
        sys.exit(1)


def _search_selection(value: str):
    return ("search", value)


def build_parser() -> argparse.ArgumentParser:
    """
    Build the knslogs argument parser.

    -h selects the HTTP pattern, so help is only available as --help.
    Every mode flag and --search append to the same "selections" list;
    the pattern resolver takes the last one.
    """
    parser = _UsageParser(
        prog="knslogs",
        usage="%(prog)s [options] <namespace>",
        description=DESCRIPTION,
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )

    parser.add_argument("-a", "--all", dest="selections", action="append_const", const=("mode", "all"),
                        help="Use the default search pattern for logs.")
    parser.add_argument("-e", "--error", dest="selections", action="append_const", const=("mode", "error"),
                        help="Select the 'error' log level pattern to search.")
    parser.add_argument("-w", "--warn", dest="selections", action="append_const", const=("mode", "warn"),
                        help="Select the 'warn' log level pattern to search.")
    parser.add_argument("-h", "--http", dest="selections", action="append_const", const=("mode", "http"),
                        help="Select the 'http' log level pattern to search.")
    parser.add_argument("-f", "--file", dest="report_file", metavar="<filename.md>",
                        help="Specify the output Markdown filename for the report.")
    parser.add_argument("-s", "--search", dest="selections", action="append", type=_search_selection,
                        metavar="<pattern>", help="Specify a custom search pattern.")
    parser.add_argument("--rg-args", dest="rg_args", default="", metavar="'<args>'",
                        help="Provide custom 'rg' (ripgrep) arguments.")
    parser.add_argument("--context", dest="kube_context", metavar="<name>",
                        help="Kubeconfig context to use (default: KNSLOGS_KUBE_CONTEXT or current context).")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging.")
    parser.add_argument("--help", action="help",
                        help="Show this help message and exit.")
    parser.add_argument("namespaces", nargs="*", metavar="<namespace>",
                        help=argparse.SUPPRESS)

    return parser


def _attach_option_values(argv: Sequence[str]) -> List[str]:
    """Join value options with their values so values may begin with '-'."""
    result: List[str] = []
    tokens = iter(argv)
    for token in tokens:
        if token in _VALUE_OPTIONS:
            value = next(tokens, None)
            if value is not None:
                result.append(f"{_VALUE_OPTIONS[token]}={value}")
                continue
        result.append(token)
    return result


def parse_args(argv: Sequence[str], parser: Optional[argparse.ArgumentParser] = None) -> argparse.Namespace:
    """
    Parse the command line and validate the namespace.

    Exactly one namespace is required; a missing namespace or any
    further positional argument is a usage error (exit 1).
    """
    parser = parser or build_parser()
    args = parser.parse_intermixed_args(_attach_option_values(argv))

    if len(args.namespaces) > 1:
        print(color(f"Unknown argument: {args.namespaces[1]}", RED), file=sys.stderr)
        sys.exit(1)
    if not args.namespaces:
        print(color("Namespace is required. Use --help for usage information.", RED), file=sys.stderr)
        sys.exit(1)

    args.namespace = args.namespaces[0]
    return args


def _log_level(name: str) -> int:
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def _discard_stdout() -> None:
    """Point stdout at devnull so the interpreter's final flush cannot fail."""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):
        logger.debug("stdout has no file descriptor to redirect")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main entry point for knslogs.

    This function:
    1. Prints help when run without arguments
    2. Parses arguments and loads .env configuration
    3. Validates the search arguments before touching the cluster
    4. Collects the namespace logs into the terminal or a Markdown report
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()

    if not argv:
        parser.print_help()
        sys.exit(0)

    args = parse_args(argv, parser)

    try:
        settings = load_settings()
    except ValueError as e:
        print(color(f"ERROR: {e}", RED), file=sys.stderr)
        sys.exit(1)
    if args.kube_context:
        settings = replace(settings, kube_context=args.kube_context)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else _log_level(settings.log_level),
        format=LOG_FORMAT,
    )

    filter_spec = resolve_filter_spec(args.selections, args.rg_args)
    try:
        log_filter = LogFilter(filter_spec)
    except SearchArgumentError as e:
        print(color(f"ERROR: {e}", RED), file=sys.stderr)
        sys.exit(1)

    try:
        sink = build_sink(args.report_file, use_color=settings.color)
    except OSError as e:
        print(color(f"ERROR: Cannot write report file: {e}", RED), file=sys.stderr)
        sys.exit(1)

    try:
        v1 = get_k8s_client(settings)
        collect_namespace_logs(
            args.namespace,
            filter_spec,
            sink,
            v1,
            log_filter=log_filter,
            request_timeout=settings.request_timeout,
        )
    except ClusterConfigError as e:
        print(color(f"ERROR: {e}", RED), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(130)
    except BrokenPipeError:
        # Reader went away (e.g. piped into head); stop without a traceback.
        _discard_stdout()
        sys.exit(1)
    except OSError as e:
        print(color(f"ERROR: {e}", RED), file=sys.stderr)
        sys.exit(1)
    finally:
        sink.close()

    if args.report_file:
        logger.info(f"Report written to {args.report_file}")
    sys.exit(0)


if __name__ == "__main__":
    main()
