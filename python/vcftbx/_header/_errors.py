from __future__ import annotations

from .._types import Namespace

__all__ = []


class HeaderError(Exception):
    """Base class for recoverable header errors."""


class UnknownNameError(HeaderError):
    """A name is not present in a dictionary namespace."""

    def __init__(self, namespace: Namespace, name: str):
        self.namespace = namespace
        self.name = name
        super().__init__(f"{namespace.name.lower()} {name} not found in header")


class UnknownSequenceError(UnknownNameError):
    def __init__(self, name: str):
        super().__init__(Namespace.CONTIG, name)


class UnknownIdError(UnknownNameError):
    def __init__(self, name: str):
        super().__init__(Namespace.TAG, name)


class UnknownSampleError(UnknownNameError):
    def __init__(self, name: str):
        super().__init__(Namespace.SAMPLE, name)


class TagTypeError(HeaderError):
    """Base class for errors looking up the type of an INFO/FORMAT tag."""


class UndefinedTagError(TagTypeError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"tag {name} is undefined in header")


class UnexpectedTagTypeError(TagTypeError):
    """A stored type or length code is outside the supported set, which means the header is
    corrupt or newer than this library."""

    def __init__(self, detail: str):
        super().__init__(f"unexpected tag type in header: {detail}")


class DuplicateSampleNameError(HeaderError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"duplicate sample name {name} when subsetting header")


class HeaderParseError(HeaderError):
    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"invalid header line ({reason}): {line}")


class UnsupportedCategoryError(RuntimeError):
    """A header record carries a category code outside the closed set of categories. This
    can only happen if the header's internal record list was corrupted and is not meant
    to be recovered from."""

    def __init__(self, code: object):
        self.code = code
        super().__init__(f"Unknown header record category: {code!r}")
