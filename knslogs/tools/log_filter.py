"""
Log Filter Tool
Applies ripgrep-style search semantics to container log text.

Filtering follows the options the report has always used
(`--smart-case --follow --multiline --multiline-dotall -A 3 -B 2 -C 2`);
passthrough arguments are parsed as ripgrep flags and may override them.
"""

import argparse
import logging
import re
import shlex
from bisect import bisect_right
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from ..exceptions import SearchArgumentError
from .patterns import FilterSpec

logger = logging.getLogger(__name__)

BASE_SEARCH_ARGS = "--smart-case --follow --multiline --multiline-dotall -A 3 -B 2 -C 2"
CONTEXT_SEPARATOR = "--"

# Group names, backreferences and escapes are not literal text for smart case.
_NON_LITERAL = re.compile(r"\(\?P<[^>]*>|\(\?P=[^)]*\)|\\[pP]\{[^}]*\}|\\.")


@dataclass(frozen=True)
class SearchOptions:
    """Parsed search flags."""

    case_mode: str = "smart"  # smart | insensitive | sensitive
    fixed_strings: bool = False
    invert_match: bool = False
    word_regexp: bool = False
    line_regexp: bool = False
    after_context: int = 0
    before_context: int = 0
    context: int = 0
    multiline: bool = False
    multiline_dotall: bool = False
    max_count: Optional[int] = None
    line_number: bool = False
    count: bool = False
    patterns: Tuple[str, ...] = ()
    context_separator: str = CONTEXT_SEPARATOR

    @property
    def lines_before(self) -> int:
        return max(self.before_context, self.context)

    @property
    def lines_after(self) -> int:
        return max(self.after_context, self.context)


class _SearchArgParser(argparse.ArgumentParser):
    def error(self, message):
        raise SearchArgumentError(f"Invalid search arguments: {message}")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative number, got {value}")
    return number


def _build_search_parser() -> argparse.ArgumentParser:
    parser = _SearchArgParser(prog="search", add_help=False, allow_abbrev=False)

    parser.add_argument("-i", "--ignore-case", dest="case_mode", action="store_const", const="insensitive")
    parser.add_argument("-s", "--case-sensitive", dest="case_mode", action="store_const", const="sensitive")
    parser.add_argument("-S", "--smart-case", dest="case_mode", action="store_const", const="smart")

    parser.add_argument("-F", "--fixed-strings", dest="fixed_strings", action="store_true")
    parser.add_argument("--no-fixed-strings", dest="fixed_strings", action="store_false")
    parser.add_argument("-v", "--invert-match", dest="invert_match", action="store_true")
    parser.add_argument("-w", "--word-regexp", dest="word_regexp", action="store_true")
    parser.add_argument("-x", "--line-regexp", dest="line_regexp", action="store_true")

    parser.add_argument("-A", "--after-context", dest="after_context", type=_non_negative_int)
    parser.add_argument("-B", "--before-context", dest="before_context", type=_non_negative_int)
    parser.add_argument("-C", "--context", dest="context", type=_non_negative_int)
    parser.add_argument("--context-separator", dest="context_separator")

    parser.add_argument("-U", "--multiline", dest="multiline", action="store_true")
    parser.add_argument("--no-multiline", dest="multiline", action="store_false")
    parser.add_argument("--multiline-dotall", dest="multiline_dotall", action="store_true")
    parser.add_argument("--no-multiline-dotall", dest="multiline_dotall", action="store_false")

    parser.add_argument("-m", "--max-count", dest="max_count", type=_non_negative_int)
    parser.add_argument("-n", "--line-number", dest="line_number", action="store_true")
    parser.add_argument("-N", "--no-line-number", dest="line_number", action="store_false")
    parser.add_argument("-c", "--count", dest="count", action="store_true")
    parser.add_argument("-e", "--regexp", dest="patterns", action="append")

    # Accepted for compatibility; logs are text, not a directory walk.
    parser.add_argument("-L", "--follow", dest="follow", action="store_true")

    parser.set_defaults(
        case_mode="smart",
        after_context=0,
        before_context=0,
        context=0,
        context_separator=CONTEXT_SEPARATOR,
        patterns=[],
    )
    return parser


def parse_search_args(extra_args: str = "") -> SearchOptions:
    """
    Parse passthrough search arguments on top of the base options.

    Args:
        extra_args: Raw argument string, e.g. "--fixed-strings -C 5"

    Returns:
        SearchOptions with passthrough flags applied after the base flags

    Raises:
        SearchArgumentError: On unknown flags, bad values or unbalanced quotes
    """
    parser = _build_search_parser()
    namespace = parser.parse_args(shlex.split(BASE_SEARCH_ARGS))

    try:
        tokens = shlex.split(extra_args or "")
    except ValueError as e:
        raise SearchArgumentError(f"Invalid search arguments: {e}") from e

    namespace = parser.parse_args(tokens, namespace=namespace)

    return SearchOptions(
        case_mode=namespace.case_mode,
        fixed_strings=namespace.fixed_strings,
        invert_match=namespace.invert_match,
        word_regexp=namespace.word_regexp,
        line_regexp=namespace.line_regexp,
        after_context=namespace.after_context,
        before_context=namespace.before_context,
        context=namespace.context,
        multiline=namespace.multiline,
        multiline_dotall=namespace.multiline_dotall,
        max_count=namespace.max_count,
        line_number=namespace.line_number,
        count=namespace.count,
        patterns=tuple(namespace.patterns),
        context_separator=namespace.context_separator,
    )


def _has_uppercase(pattern: str, literal: bool) -> bool:
    if not literal:
        pattern = _NON_LITERAL.sub("", pattern)
    return any(ch.isupper() for ch in pattern)


def compile_search(pattern: str, options: SearchOptions) -> Pattern:
    """
    Compile the search expression for the given options.

    Smart case searches case-insensitively unless a pattern contains an
    uppercase literal character.

    Raises:
        SearchArgumentError: If the expression is not a valid regex
    """
    sources = [pattern] + list(options.patterns)

    if options.case_mode == "smart":
        ignore_case = not any(_has_uppercase(p, options.fixed_strings) for p in sources)
    else:
        ignore_case = options.case_mode == "insensitive"

    if options.fixed_strings:
        sources = [re.escape(p) for p in sources]

    expression = "|".join(f"(?:{p})" for p in sources)
    if options.word_regexp:
        expression = rf"(?<!\w)(?:{expression})(?!\w)"
    if options.line_regexp:
        expression = rf"^(?:{expression})$"

    flags = re.MULTILINE
    if options.multiline and options.multiline_dotall:
        flags |= re.DOTALL
    if ignore_case:
        flags |= re.IGNORECASE

    try:
        return re.compile(expression, flags)
    except re.error as e:
        raise SearchArgumentError(f"Invalid search pattern {pattern!r}: {e}") from e


def _split_lines(text: str) -> Tuple[List[str], List[int]]:
    """Split text into lines and the offset at which each line starts."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    starts = []
    offset = 0
    for line in lines:
        starts.append(offset)
        offset += len(line) + 1
    return lines, starts


def _merge_windows(windows: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    merged: List[Tuple[int, int]] = []
    for start, end in windows:
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class LogFilter:
    """Search container logs with one FilterSpec for the whole run.

    The passthrough arguments and the expression are validated once, when
    the filter is built, so a bad invocation fails before any logs are
    fetched.
    """

    def __init__(self, filter_spec: FilterSpec):
        self.filter_spec = filter_spec
        self.options = parse_search_args(filter_spec.extra_args)
        self._regex = compile_search(filter_spec.pattern, self.options) if filter_spec.has_pattern else None

    def _match_spans(self, text: str, lines: List[str], starts: List[int]) -> List[Tuple[int, int]]:
        spans: List[Tuple[int, int]] = []

        if self.options.multiline:
            for match in self._regex.finditer(text):
                first = bisect_right(starts, match.start()) - 1
                if first >= len(lines):
                    continue
                last = bisect_right(starts, match.end() - 1) - 1 if match.end() > match.start() else first
                last = min(last, len(lines) - 1)
                if spans and first <= spans[-1][1]:
                    spans[-1] = (spans[-1][0], max(spans[-1][1], last))
                else:
                    spans.append((first, last))
        else:
            spans = [(i, i) for i, line in enumerate(lines) if self._regex.search(line)]

        if self.options.invert_match:
            covered = {i for first, last in spans for i in range(first, last + 1)}
            spans = [(i, i) for i in range(len(lines)) if i not in covered]

        if self.options.max_count is not None:
            spans = spans[:self.options.max_count]
        return spans

    def apply(self, text: str) -> str:
        """
        Filter log text.

        Args:
            text: Raw log text

        Returns:
            The raw text unchanged when no pattern is set; otherwise the
            matching lines with their context, or an empty string when
            nothing matches
        """
        if self._regex is None:
            return text

        lines, starts = _split_lines(text)
        if not lines:
            return ""

        spans = self._match_spans(text, lines, starts)
        if not spans:
            return ""

        matched = {i for first, last in spans for i in range(first, last + 1)}
        if self.options.count:
            return str(len(matched))

        before, after = self.options.lines_before, self.options.lines_after
        windows = _merge_windows([
            (max(0, first - before), min(len(lines) - 1, last + after))
            for first, last in spans
        ])

        output: List[str] = []
        for index, (start, end) in enumerate(windows):
            if index and (before or after):
                output.append(self.options.context_separator)
            for i in range(start, end + 1):
                if self.options.line_number:
                    marker = ":" if i in matched else "-"
                    output.append(f"{i + 1}{marker}{lines[i]}")
                else:
                    output.append(lines[i])

        logger.debug(f"Filter kept {len(matched)} matching line(s) of {len(lines)}")
        return "\n".join(output)


def filter_logs(text: str, filter_spec: FilterSpec) -> str:
    """Filter log text with a FilterSpec; see LogFilter.apply."""
    return LogFilter(filter_spec).apply(text)
