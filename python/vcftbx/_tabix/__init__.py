from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Union
from urllib.parse import urlparse

import pysam
from attrs import define
from loguru import logger

from .._types import Id
from ._errors import (
    FetchError,
    InvalidIndexError,
    InvalidPathError,
    NoIterError,
    NoMoreRecordError,
    ReadError,
    SequenceLookupError,
)
from ._index import ContainerFormat, IndexConfig, QueryCursor, read_meta_lines

__all__ = ["TabixReader", "QueryState", "overlap"]


INDEX_SUFFIXES = (".tbi", ".csi")


def overlap(
    tid1: int, begin1: int, end1: int, tid2: int, begin2: int, end2: int
) -> bool:
    """Whether two half-open genomic intervals overlap."""
    return tid1 == tid2 and begin1 < end2 and begin2 < end1


class QueryState(str, Enum):
    NO_QUERY = "no_query"
    POSITIONED = "positioned"
    EXHAUSTED = "exhausted"


@define
class _Query:
    tid: int
    """Sequence id of the fetched region."""
    start: int
    """0-based start of the fetched region."""
    end: int
    """0-based, exclusive end of the fetched region."""
    cursor: QueryCursor
    exhausted: bool = False


def _is_url(path: str) -> bool:
    return "://" in path


class TabixReader:
    """Region queries on a BGZF-compressed, tabix-indexed text file, e.g. a ``.vcf.gz``
    or ``.bed.gz``.

    Only the lines whose span overlaps a fetched region are returned, in file order.

    .. code-block:: python

        with TabixReader("calls.bed.gz") as reader:
            tid = reader.seq_name_to_id("chr1")
            reader.fetch(tid, 1000, 1003)
            for line in reader.records():
                ...

    .. note::
        A reader must not be used from several threads at once: :meth:`fetch` replaces
        the current query and :meth:`read` advances it.
    """

    path: str
    index_path: str
    config: IndexConfig
    """Column configuration and sequence names from the index."""
    format: ContainerFormat
    """Detected format and compression of the data stream."""

    def __init__(
        self,
        path: Union[str, Path],
        index: Optional[Union[str, Path]] = None,
        encoding: str = "ascii",
    ) -> None:
        """Open an indexed file and load its index.

        Parameters
        ----------
        path
            Path or URL of the BGZF-compressed file.
        index
            Path or URL of the index. By default ``<path>.tbi`` is used, or ``<path>.csi``
            if only that exists.
        encoding
            Encoding of the text lines.

        Raises
        ------
        InvalidIndexError
            If no index is found, it is malformed, or the file cannot be opened with it.
        InvalidRecordError
            If a header line is not valid text in ``encoding``.
        """
        self.path = str(path)
        self.encoding = encoding
        self.index_path = self._find_index(self.path, index)
        self.config = IndexConfig.from_index(self.index_path)
        self._query: Optional[_Query] = None

        try:
            self._tabix: Optional[pysam.TabixFile] = pysam.TabixFile(
                self.path, index=self.index_path, encoding=encoding
            )
        except (OSError, ValueError) as err:
            raise InvalidIndexError(self.path, str(err)) from err

        try:
            self.format = ContainerFormat.from_htsfile(self._tabix)
            self._header = read_meta_lines(self.path, self.config.meta_char, encoding)
        except Exception:
            self.close()
            raise

        logger.debug(
            f"Opened {self.path} ({self.format.format}, {self.format.compression}) with"
            f" {len(self.config.names)} indexed sequences."
        )

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> TabixReader:
        """Open a local file.

        Raises
        ------
        InvalidPathError
            If ``path`` is not a path or cannot be represented as text.
        """
        try:
            _path = os.fspath(path)
        except TypeError:
            raise InvalidPathError(path) from None
        if isinstance(_path, bytes):
            try:
                _path = _path.decode()
            except UnicodeDecodeError:
                raise InvalidPathError(path) from None
        return cls(_path)

    @classmethod
    def from_url(cls, url: str) -> TabixReader:
        """Open a remote file, e.g. over ``https://`` or ``s3://``. The index is expected
        next to it with a ``.tbi`` suffix."""
        if not urlparse(url).scheme:
            raise InvalidPathError(url)
        return cls(url)

    @staticmethod
    def _find_index(path: str, index: Optional[Union[str, Path]]) -> str:
        if index is not None:
            return str(index)
        if _is_url(path):
            return path + INDEX_SUFFIXES[0]
        for suffix in INDEX_SUFFIXES:
            if Path(path + suffix).exists():
                return path + suffix
        raise InvalidIndexError(path, "no .tbi or .csi index found")

    @property
    def header(self) -> List[str]:
        """Leading meta lines of the file, verbatim and in order."""
        return list(self._header)

    @property
    def state(self) -> QueryState:
        if self._query is None:
            return QueryState.NO_QUERY
        if self._query.exhausted:
            return QueryState.EXHAUSTED
        return QueryState.POSITIONED

    @property
    def closed(self) -> bool:
        return self._tabix is None

    def _check_open(self) -> pysam.TabixFile:
        if self._tabix is None:
            raise ValueError("I/O operation on closed reader.")
        return self._tabix

    def seq_name_to_id(self, name: str) -> Id:
        """Sequence id of a sequence name in the index.

        Raises
        ------
        SequenceLookupError
            If the sequence is not in the index.
        """
        tid = self.config.tid(name)
        if tid < 0:
            raise SequenceLookupError(name)
        return Id(tid)

    def seqnames(self) -> List[str]:
        """Names of the indexed sequences, in index order."""
        return list(self.config.names)

    def fetch(self, tid: int, start: int, end: int) -> None:
        """Query the region ``[start, end)`` on sequence ``tid``, replacing any previous
        query. Coordinates are 0-based and half-open.

        Raises
        ------
        FetchError
            If the index cannot produce an iterator for the region. The reader then has
            no active query.
        """
        tabix = self._check_open()
        self._query = None

        if not 0 <= tid < len(self.config.names):
            raise FetchError(tid, start, end, "sequence id is not in the index")
        try:
            cursor = QueryCursor.open(tabix, self.config, tid, start, end)
        except (OSError, ValueError) as err:
            raise FetchError(tid, start, end, str(err)) from err

        self._query = _Query(tid, start, end, cursor)
        logger.debug(f"Fetched {self.config.names[tid]}:{start}-{end}.")

    def read(self) -> str:
        """Next line overlapping the fetched region.

        Raises
        ------
        NoIterError
            If no region has been fetched, or the last fetch failed.
        NoMoreRecordError
            If there are no more overlapping lines.
        TruncatedError
            If a line could not be read or its position could not be decoded.
        InvalidRecordError
            If a line is not valid text in the reader's encoding.
        """
        self._check_open()
        query = self._query
        if query is None:
            raise NoIterError()
        if query.exhausted:
            raise NoMoreRecordError()

        while True:
            try:
                line = next(query.cursor)
            except StopIteration:
                query.exhausted = True
                raise NoMoreRecordError() from None
            except ReadError:
                query.exhausted = True
                raise
            if overlap(query.tid, query.start, query.end, line.tid, line.begin, line.end):
                return line.text

    def records(self) -> Iterator[str]:
        """Iterate over the lines overlapping the fetched region. Stops at the end of the
        region and raises any other :class:`ReadError`. A new :meth:`fetch` is needed to
        iterate over the region again."""
        while True:
            try:
                line = self.read()
            except NoMoreRecordError:
                return
            yield line

    def __iter__(self) -> Iterator[str]:
        return self.records()

    def close(self) -> None:
        """Release the current query, then the file and index. Closing twice is a no-op."""
        self._query = None
        if self._tabix is not None:
            self._tabix.close()
            self._tabix = None

    def __enter__(self) -> TabixReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TabixReader(path={self.path!r}, sequences={len(self.config.names)}, state={self.state.value})"
