"""
Report Sinks
Terminal and Markdown file targets for the collected logs.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

logger = logging.getLogger(__name__)

# ---------------------------
# Color output
# ---------------------------
RED = "\033[31m"
GREEN = "\033[32m"
RESET = "\033[0m"

NO_PATTERN_NOTICE = "No valid search pattern specified. Showing full logs."


def color(text: str, c: str) -> str:
    return f"{c}{text}{RESET}"


def pod_prefix(pod_name: str, namespace: str) -> str:
    return f"Pod: {pod_name} in Namespace: {namespace}"


def _with_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


class ReportSink:
    """Structured write operations shared by every report target.

    Writes arrive in pod-then-container traversal order and are emitted in
    that order.
    """

    def __init__(self):
        self.namespace = ""

    def write_title(self, namespace: str) -> None:
        self.namespace = namespace

    def write_filter_summary(self, pattern: str, extra_args: str = "") -> None:
        pass

    def write_pod_header(self, pod_name: str) -> None:
        raise NotImplementedError

    def write_container_header(self, container_name: str) -> None:
        raise NotImplementedError

    def write_block(self, text: str, fenced: bool = False) -> None:
        raise NotImplementedError

    def write_no_pattern_notice(self) -> None:
        raise NotImplementedError

    def write_error(self, message: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class TerminalSink(ReportSink):
    """Write straight to standard output, highlighting pod headers.

    With show_logs=False only the pod and container headers are printed,
    which is how progress is shown while a file report is written.
    """

    def __init__(self, stream: Optional[TextIO] = None, err_stream: Optional[TextIO] = None,
                 use_color: bool = True, show_logs: bool = True):
        super().__init__()
        self._stream = stream
        self._err_stream = err_stream
        self.use_color = use_color
        self.show_logs = show_logs

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    @property
    def err_stream(self) -> TextIO:
        return self._err_stream or sys.stderr

    def _print(self, text: str, c: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
        if c and self.use_color:
            text = color(text, c)
        print(text, file=stream or self.stream, flush=True)

    def write_pod_header(self, pod_name: str) -> None:
        self._print(pod_prefix(pod_name, self.namespace), GREEN)

    def write_container_header(self, container_name: str) -> None:
        self._print(f"Container: {container_name}")

    def write_block(self, text: str, fenced: bool = False) -> None:
        if not self.show_logs or not text:
            return
        self.stream.write(_with_newline(text))
        self.stream.flush()

    def write_no_pattern_notice(self) -> None:
        if self.show_logs:
            self._print(NO_PATTERN_NOTICE)

    def write_error(self, message: str) -> None:
        self._print(message, RED, stream=self.err_stream)


class MarkdownFileSink(ReportSink):
    """Write a Markdown report to a file.

    The file is opened once, created or truncated, and every write is
    appended to that one handle and flushed. It is opened on the first
    write unless open() was called earlier.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._file: Optional[TextIO] = None

    def open(self) -> None:
        """Create or truncate the report file; a no-op once it is open."""
        if self._file is None:
            self._file = open(self.path, "w", encoding="utf-8")
            logger.debug(f"Started report file {self.path}")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _write(self, content: str) -> None:
        if self._file is None:
            self.open()
        self._file.write(content)
        self._file.flush()

    def write_title(self, namespace: str) -> None:
        super().write_title(namespace)
        self._write(f"# Logs from Namespace: {namespace}\n\n")

    def write_filter_summary(self, pattern: str, extra_args: str = "") -> None:
        if pattern:
            summary = f"Filter applied: `{pattern}` with custom arguments: `{extra_args}`"
        else:
            summary = "Full logs are shown without a specific filter."
        self._write(f"## Search Pattern Used\n\n{summary}\n\n")

    def write_pod_header(self, pod_name: str) -> None:
        self._write(f"## {pod_prefix(pod_name, self.namespace)}\n")

    def write_container_header(self, container_name: str) -> None:
        self._write(f"### Container: {container_name}\n")

    def write_block(self, text: str, fenced: bool = False) -> None:
        if fenced:
            body = text.rstrip("\n")
            self._write(f"```\n{body}\n```\n")
        elif text:
            self._write(_with_newline(text))

    def write_no_pattern_notice(self) -> None:
        self._write(f"{NO_PATTERN_NOTICE}\n")

    def write_error(self, message: str) -> None:
        self._write(f"> **Error:** {message}\n")


class FanOutSink(ReportSink):
    """Forward every write to several sinks, in the order given."""

    def __init__(self, sinks: Iterable[ReportSink]):
        super().__init__()
        self.sinks: List[ReportSink] = list(sinks)

    def write_title(self, namespace: str) -> None:
        super().write_title(namespace)
        for sink in self.sinks:
            sink.write_title(namespace)

    def write_filter_summary(self, pattern: str, extra_args: str = "") -> None:
        for sink in self.sinks:
            sink.write_filter_summary(pattern, extra_args)

    def write_pod_header(self, pod_name: str) -> None:
        for sink in self.sinks:
            sink.write_pod_header(pod_name)

    def write_container_header(self, container_name: str) -> None:
        for sink in self.sinks:
            sink.write_container_header(container_name)

    def write_block(self, text: str, fenced: bool = False) -> None:
        for sink in self.sinks:
            sink.write_block(text, fenced)

    def write_no_pattern_notice(self) -> None:
        for sink in self.sinks:
            sink.write_no_pattern_notice()

    def write_error(self, message: str) -> None:
        for sink in self.sinks:
            sink.write_error(message)

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()


def build_sink(report_file: Optional[str] = None, use_color: bool = True) -> ReportSink:
    """
    Build the sink for a run.

    Args:
        report_file: Markdown report path, or None for terminal output only
        use_color: Use ANSI colors on the terminal

    Returns:
        TerminalSink, or a FanOutSink of a headers-only TerminalSink and a
        MarkdownFileSink when a report file is given

    Raises:
        OSError: If the report file cannot be created
    """
    if not report_file:
        return TerminalSink(use_color=use_color)

    markdown = MarkdownFileSink(report_file)
    markdown.open()
    return FanOutSink([
        TerminalSink(use_color=use_color, show_logs=False),
        markdown,
    ])
