"""
Utility functions for the inverted index loader.
"""
from urllib.parse import urlparse
import re

URL_SCHEMES = ('http', 'https', 'ftp')

_HOST_LABEL = re.compile(r'^(?!-)[a-z0-9-]{1,63}(?<!-)$', re.IGNORECASE)
_TLD = re.compile(r'^([a-z]{2,63}|xn--[a-z0-9-]{1,59})$', re.IGNORECASE)
_IPV4 = re.compile(r'^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$')


def _is_valid_host(host):
    """Check that a host is an IPv4 address, localhost or a fully qualified domain name."""
    if not host or len(host) > 253:
        return False

    match = _IPV4.match(host)
    if match:
        return all(int(part) <= 255 for part in match.groups())

    if host.lower() == 'localhost':
        return True

    labels = host.rstrip('.').split('.')
    if len(labels) < 2:
        return False
    if not _TLD.match(labels[-1]):
        return False
    return all(_HOST_LABEL.match(label) for label in labels)


def is_url(value):
    """Return True when value looks like an absolute URL with a scheme and a well formed host."""
    if not value or any(ch.isspace() for ch in value):
        return False

    try:
        parsed = urlparse(value)
        # Accessing .port raises ValueError for out of range or non numeric ports
        parsed.port
    except ValueError:
        return False

    if parsed.scheme.lower() not in URL_SCHEMES:
        return False
    return _is_valid_host(parsed.hostname)


def chunked(items, size):
    """Split a list into consecutive slices of at most size items."""
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


def backoff_delay(attempt, base, cap):
    """Exponential backoff for the given 1-based retry attempt, capped at cap seconds."""
    return min(cap, base * (2 ** (attempt - 1)))
