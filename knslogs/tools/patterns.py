"""
Search Pattern Resolver
Maps the selected filter mode or custom pattern to a FilterSpec.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "error|warn|fatal"
ERROR_PATTERN = "error"
WARN_PATTERN = "warn"
HTTP_PATTERN = r"\b(404|403|500|502|503|504)\b"

MODE_PATTERNS = {
    "all": DEFAULT_PATTERN,
    "error": ERROR_PATTERN,
    "warn": WARN_PATTERN,
    "http": HTTP_PATTERN,
}


@dataclass(frozen=True)
class FilterSpec:
    """Search expression plus raw passthrough search arguments.

    An empty pattern means no filtering: full logs are shown.
    """

    pattern: str = ""
    extra_args: str = ""

    @property
    def has_pattern(self) -> bool:
        return bool(self.pattern)


def resolve_filter_spec(selections: Optional[Iterable[Tuple[str, str]]] = None,
                        extra_args: Optional[str] = None) -> FilterSpec:
    """
    Resolve the filter selections given on the command line.

    Each selection is ("mode", <name>) for a predefined mode or
    ("search", <pattern>) for a custom pattern, in command-line order.
    The last selection wins and earlier ones are ignored without error,
    so `--error --warn` searches for `warn`.

    Args:
        selections: Mode/search selections in the order they were given
        extra_args: Raw passthrough search arguments

    Returns:
        FilterSpec for the run

    Raises:
        KeyError: If a mode name is not one of MODE_PATTERNS
    """
    selections = list(selections or [])
    pattern = ""

    if selections:
        if len(selections) > 1:
            logger.debug(f"{len(selections)} filter selections given, using the last one")
        kind, value = selections[-1]
        pattern = MODE_PATTERNS[value] if kind == "mode" else value

    return FilterSpec(pattern=pattern, extra_args=(extra_args or "").strip())
