from __future__ import annotations

import re
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Tuple

import numpy as np
import pysam
from attrs import define, field
from pysam.libcbgzf import BGZFile

from ._errors import InvalidIndexError, InvalidRecordError, TruncatedError

__all__ = []


TBI_MAGIC = b"TBI\x01"
CSI_MAGIC = b"CSI\x01"
ZERO_BASED = 0x10000
"""Preset flag for zero-based, half-open coordinates (UCSC style)."""
CONF_BYTES = 28
CIGAR = re.compile(r"(\d+)([MIDNSHP=X])")


class Preset(IntEnum):
    GENERIC = 0
    SAM = 1
    VCF = 2


@define(frozen=True)
class ContainerFormat:
    """What the data stream was detected as."""

    format: str
    """File format, e.g. ``'VCF'``, ``'BED'`` or ``'TEXT_FORMAT'``."""
    compression: str
    """Compression, e.g. ``'BGZF'``."""

    @classmethod
    def from_htsfile(cls, handle: pysam.HTSFile) -> ContainerFormat:
        return cls(str(handle.format), str(handle.compression))


@define
class IndexConfig:
    """Column configuration and sequence names of a tabix index.

    Coordinates in the data lines are decoded according to this configuration, never
    by guessing from the file contents.
    """

    preset: Preset
    zero_based: bool
    """Whether begin positions are 0-based (e.g. BED) rather than 1-based."""
    seq_col: int
    """1-based column of the sequence name."""
    begin_col: int
    """1-based column of the begin position."""
    end_col: int
    """1-based column of the end position, 0 if there is none."""
    meta_char: str
    """Lines starting with this character are header/comment lines."""
    skip: int
    """Number of leading lines to skip, regardless of the meta character."""
    names: Tuple[str, ...]
    """Sequence names, in index order. Position is the sequence id."""
    _tids: Dict[str, int] = field(init=False, repr=False)

    def __attrs_post_init__(self):
        self._tids = {name: tid for tid, name in enumerate(self.names)}

    @classmethod
    def from_conf(cls, conf: List[int], names: bytes) -> IndexConfig:
        """Build a config from the seven integers of a tabix configuration block (format,
        sequence/begin/end columns, meta character, skip, names length) and the
        NUL-terminated name table."""
        fmt, seq_col, begin_col, end_col, meta, skip = conf[:6]
        _names = tuple(n.decode() for n in names.rstrip(b"\0").split(b"\0")) if names else ()
        return cls(
            preset=Preset(fmt & 0xFFFF),
            zero_based=bool(fmt & ZERO_BASED),
            seq_col=seq_col,
            begin_col=begin_col,
            end_col=end_col,
            meta_char=chr(meta),
            skip=skip,
            names=_names,
        )

    @classmethod
    def from_index(cls, path: str) -> IndexConfig:
        """Read the configuration from the header of a ``.tbi`` or ``.csi`` index.

        Raises
        ------
        InvalidIndexError
            If the index cannot be opened or is not a tabix index.
        """
        try:
            handle = BGZFile(path, "rb")
        except (OSError, ValueError) as err:
            raise InvalidIndexError(path, str(err)) from err

        try:
            magic = _read_exact(handle, 4, path)
            if magic == TBI_MAGIC:
                _read_ints(handle, 1, path)  # n_ref
                conf = _read_ints(handle, 7, path)
            elif magic == CSI_MAGIC:
                _, _, l_aux = _read_ints(handle, 3, path)
                if l_aux < CONF_BYTES:
                    raise InvalidIndexError(path, "CSI index has no tabix configuration")
                conf = _read_ints(handle, 7, path)
            else:
                raise InvalidIndexError(path, "not a TBI or CSI index")
            if conf[6] < 0:
                raise InvalidIndexError(path, "negative name table length")
            names = _read_exact(handle, conf[6], path)
        finally:
            handle.close()

        try:
            return cls.from_conf(conf, names)
        except (ValueError, UnicodeDecodeError) as err:
            raise InvalidIndexError(path, str(err)) from err

    def tid(self, name: str) -> int:
        """Id of a sequence name, -1 if it is not indexed."""
        return self._tids.get(name, -1)

    def span(self, line: str) -> Tuple[int, int, int]:
        """Decode the sequence id and 0-based, half-open ``[begin, end)`` of a data line.

        Raises
        ------
        TruncatedError
            If the line lacks the configured columns or they are not integers.
        """
        fields = line.split("\t")
        try:
            seq = fields[self.seq_col - 1]
            pos = int(fields[self.begin_col - 1])
        except (IndexError, ValueError) as err:
            raise TruncatedError(f"Could not decode position of line: {line!r}") from err

        if self.zero_based:
            begin, end = pos, pos + 1
        else:
            begin, end = pos - 1, pos
        begin = max(begin, 0)
        end = max(end, 1)

        if self.preset is Preset.GENERIC:
            if self.end_col > 0:
                try:
                    end = int(fields[self.end_col - 1])
                except (IndexError, ValueError) as err:
                    raise TruncatedError(
                        f"Could not decode end of line: {line!r}"
                    ) from err
        elif self.preset is Preset.VCF:
            if len(fields) > 3 and fields[3]:
                end = begin + len(fields[3])
            if len(fields) > 7:
                info_end = _info_end(fields[7], begin)
                if info_end > begin:
                    end = info_end
        elif self.preset is Preset.SAM:
            if len(fields) > 5:
                ref_len = sum(
                    int(n) for n, op in CIGAR.findall(fields[5]) if op in "MDN=X"
                )
                if ref_len > 0:
                    end = begin + ref_len

        return self.tid(seq), begin, end


def _info_end(info: str, begin: int) -> int:
    """Value of ``END=`` in an INFO column, which is 1-based inclusive and therefore equal
    to a 0-based exclusive end. Returns ``begin`` if absent or invalid."""
    for entry in info.split(";"):
        if entry.startswith("END="):
            try:
                return int(entry[4:])
            except ValueError:
                return begin
    return begin


def _read_exact(handle: BGZFile, n: int, path: str) -> bytes:
    data = handle.read(n)
    if len(data) != n:
        raise InvalidIndexError(path, "unexpected end of index")
    return data


def _read_ints(handle: BGZFile, n: int, path: str) -> List[int]:
    return np.frombuffer(_read_exact(handle, 4 * n, path), dtype="<i4").tolist()


def read_meta_lines(path: str, meta_char: str, encoding: str = "ascii") -> List[str]:
    """Leading lines of a BGZF text file that start with the meta character. The first
    line that does not ends the header.

    Raises
    ------
    InvalidRecordError
        If a header line is not valid text in the given encoding.
    """
    header: List[str] = []
    handle = BGZFile(path, "rb")
    try:
        while True:
            raw = handle.readline()
            if not raw:
                break
            try:
                line = raw.decode(encoding).rstrip("\r\n")
            except UnicodeDecodeError as err:
                raise InvalidRecordError(
                    f"Header line is not valid {encoding}: {raw!r}"
                ) from err
            if not line.startswith(meta_char):
                break
            header.append(line)
    finally:
        handle.close()
    return header


@define(frozen=True)
class RawLine:
    """A data line together with its span, as decoded by the index configuration."""

    text: str
    tid: int
    begin: int
    end: int


class QueryCursor:
    """Lines of a single region query, each paired with its decoded span.

    Iteration stops at the end of the region. Lines that htslib cannot read or parse, and
    lines whose span cannot be decoded, raise :class:`TruncatedError`. Lines that are not
    valid text in the reader's encoding raise :class:`InvalidRecordError`.
    """

    def __init__(self, lines: Iterable[str], config: IndexConfig):
        self._lines: Iterator[str] = iter(lines)
        self._config = config

    @classmethod
    def open(
        cls,
        tabix: pysam.TabixFile,
        config: IndexConfig,
        tid: int,
        start: int,
        end: int,
    ) -> QueryCursor:
        """Position a cursor at the index block covering ``[start, end)`` on sequence
        ``tid``. Ranges that cannot contain anything produce an empty cursor.

        Raises
        ------
        ValueError
            If the index cannot produce an iterator for the region.
        """
        contig = config.names[tid]
        start = max(start, 0)
        if end <= start:
            return cls((), config)
        return cls(tabix.fetch(contig, start, end, multiple_iterators=False), config)

    def __iter__(self) -> QueryCursor:
        return self

    def __next__(self) -> RawLine:
        try:
            line = next(self._lines)
        except UnicodeDecodeError as err:
            raise InvalidRecordError(str(err)) from err
        except (OSError, ValueError) as err:
            # htslib parse failures surface as ValueError("iteration failed ...")
            raise TruncatedError(str(err)) from err
        tid, begin, end = self._config.span(line)
        return RawLine(line, tid, begin, end)
