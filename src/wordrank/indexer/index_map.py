"""
Builds the word/url -> value map from inverted index output.

Each input line has the form `<key>,<value1>[,<value2>,...]`. For a word key
the values are the sites the word was found in. For a URL key the single
value is the number of times the URL was found.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Union

from wordrank.common.config import INPUT_DELIMITER
from wordrank.common.errors import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawEntry:
    """One parsed input line."""
    key: str
    raw_value: str


@dataclass
class BuildResult:
    """The frozen index map plus line counters from the build pass."""
    index_map: Mapping[str, str]
    lines_read: int = 0
    lines_skipped: int = 0


def parse_line(line, delimiter=INPUT_DELIMITER):
    """
    Split a line into key and value at the first delimiter only.

    The value is kept as-is since it may itself be a delimiter separated list.

    Returns:
        RawEntry, or None for a blank line.

    Raises:
        ParseError: if the line has no delimiter or an empty key.
    """
    if not line or not line.strip():
        return None

    key, sep, raw_value = line.partition(delimiter)
    if not sep:
        raise ParseError(line, "missing delimiter")
    if not key:
        raise ParseError(line, "empty key")
    return RawEntry(key, raw_value)


def iter_lines(data):
    """Yield lines from either raw text or an iterable of lines, split on newlines only."""
    if isinstance(data, str):
        lines = data.split('\n')
        if lines[-1] == '':
            lines.pop()
        for line in lines:
            yield line.rstrip('\r')
    else:
        for line in data:
            yield line.rstrip('\r\n')


def build_index_map(data: Union[str, Iterable[str]], delimiter=INPUT_DELIMITER) -> BuildResult:
    """
    Fold every line into a single key -> raw value map.

    A later line with the same key overwrites the earlier value. Lines that
    cannot be parsed are logged, counted and skipped. The returned map is a
    read-only view so it can be shared with the writer threads.
    """
    index_map = {}
    lines_read = 0
    lines_skipped = 0

    for line_number, line in enumerate(iter_lines(data), start=1):
        lines_read += 1
        try:
            entry = parse_line(line, delimiter)
        except ParseError as e:
            lines_skipped += 1
            logger.warning(f"Skipping line {line_number}: {e}")
            continue

        if entry is None:
            continue

        if entry.key in index_map:
            logger.debug(f"Line {line_number} overwrites earlier value for key {entry.key!r}")
        index_map[entry.key] = entry.raw_value

    logger.info(f"Built index map with {len(index_map)} keys from {lines_read} lines ({lines_skipped} skipped)")
    return BuildResult(
        index_map=MappingProxyType(index_map),
        lines_read=lines_read,
        lines_skipped=lines_skipped,
    )

