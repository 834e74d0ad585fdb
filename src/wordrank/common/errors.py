"""
Error types raised by the inverted index loader.
"""


class WordRankError(Exception):
    """Base class for loader errors."""


class InputError(WordRankError):
    """The input file was not given, is missing, or cannot be read."""


class ParseError(WordRankError):
    """A line of the inverted index output could not be split into key and value."""

    def __init__(self, line, reason):
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class StoreTransportError(WordRankError):
    """A batch call to the store failed outright (connectivity, auth, throttling)."""


class RetryExhaustedError(WordRankError):
    """Items were still unprocessed after the last allowed retry."""

    def __init__(self, failed):
        super().__init__(f"{len(failed)} item(s) still unprocessed after retries")
        self.failed = failed


class StoreRejectedError(WordRankError):
    """The store refused the request itself (bad item, missing table). Retrying cannot help."""

    def __init__(self, code, message):
        super().__init__(f"{code}: {message}")
        self.code = code
