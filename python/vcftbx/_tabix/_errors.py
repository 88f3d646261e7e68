from __future__ import annotations

__all__ = []


class TabixReaderError(Exception):
    """Error opening an indexed file."""


class InvalidIndexError(TabixReaderError):
    def __init__(self, path: str, reason: str = "no valid index found"):
        self.path = path
        super().__init__(f"Invalid index for {path}: {reason}")


class InvalidPathError(TabixReaderError):
    def __init__(self, path: object):
        self.path = path
        super().__init__(f"Invalid path: {path!r}")


class SequenceLookupError(Exception):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Sequence {name} is not in the index.")


class FetchError(Exception):
    def __init__(self, tid: int, start: int, end: int, reason: str = ""):
        self.tid = tid
        self.start = start
        self.end = end
        msg = f"Error fetching sequence {tid} [{start}, {end})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ReadError(Exception):
    """Error reading the next record of a region query."""

    @property
    def is_eof(self) -> bool:
        """Whether no record was read because the end of the region was reached."""
        return False


class NoIterError(ReadError):
    def __init__(self):
        super().__init__("No region has been fetched or the previous fetch failed.")


class TruncatedError(ReadError):
    """A record could not be decoded, e.g. the file is truncated or a line lacks the
    columns the index is configured with."""


class InvalidRecordError(ReadError):
    """A record is not valid text in the reader's encoding."""


class NoMoreRecordError(ReadError):
    def __init__(self):
        super().__init__("No more records in the fetched region.")

    @property
    def is_eof(self) -> bool:
        return True
