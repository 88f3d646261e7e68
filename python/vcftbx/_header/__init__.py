from __future__ import annotations

from copy import deepcopy
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from .._types import HeaderCategory, Id, Namespace, TagLength, TagType
from ._dict import TAG_CATEGORIES, HeaderDict
from ._errors import (
    DuplicateSampleNameError,
    HeaderParseError,
    UnknownIdError,
    UnknownNameError,
    UnknownSampleError,
    UnknownSequenceError,
)
from ._records import (
    HRec,
    HeaderRecord,
    contig_length,
    decode_record,
    parse_header_line,
    tag_def,
)

__all__ = ["Header", "SAMPLE_REMOVED"]


SAMPLE_REMOVED = -1
"""Value of :attr:`Header.subset` for requested samples that are not in the template."""
DEFAULT_FILEFORMAT = "VCFv4.2"
FIXED_COLUMNS = ["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO"]


class Header:
    """Header of a VCF/BCF file: its records and the dictionary of contigs, samples and
    FILTER/INFO/FORMAT tags they define.

    A new header is empty apart from the mandatory ``##fileformat`` line. Use
    :meth:`from_template` or :meth:`from_template_subset` to derive an independently
    mutable header from an existing one, or :meth:`from_lines` to parse header text.

    Examples
    --------
    .. code-block:: python

        header = Header()
        header.push_record("##contig=<ID=chrX,length=155270560>")
        header.push_record(
            '##INFO=<ID=DP,Number=1,Type=Integer,Description="Total depth">'
        )
        header.push_sample("NA12878")
        header.info_type("DP")  # (TagType.INTEGER, TagLength.FIXED)
    """

    dictionary: HeaderDict
    """Dictionary of contig, sample and tag ids."""
    subset: Optional[NDArray[np.int32]]
    """For headers created by :meth:`from_template_subset`, maps each requested sample's
    position to its id in the template, or :data:`SAMPLE_REMOVED`. None otherwise."""

    def __init__(self) -> None:
        self.dictionary = HeaderDict()
        self._hrecs: List[HRec] = [
            HRec(HeaderCategory.GENERIC, "fileformat", value=DEFAULT_FILEFORMAT)
        ]
        self.subset = None

    @classmethod
    def _from_parts(
        cls,
        dict_: HeaderDict,
        hrecs: List[HRec],
        subset: Optional[NDArray[np.int32]] = None,
    ) -> Header:
        header = cls.__new__(cls)
        header.dictionary = dict_
        header._hrecs = hrecs
        header.subset = subset
        return header

    @classmethod
    def from_template(cls, header: Header) -> Header:
        """Create a new header using another header as the template. The new header can
        be modified independently from the template.

        Parameters
        ----------
        header
            The header to use as the template.
        """
        return cls._from_parts(header.dictionary.copy(), deepcopy(header._hrecs))

    @classmethod
    def from_template_subset(cls, header: Header, samples: Sequence[str]) -> Header:
        """Create a new header using another header as the template, keeping only the
        given samples in the given order.

        The mapping from each requested sample to its id in the template is stored in
        :attr:`subset`, with :data:`SAMPLE_REMOVED` for names the template does not have.
        Samples that are not found are not kept in the new header.

        Parameters
        ----------
        header
            The header to use as the template.
        samples
            Names of the samples to keep.

        Raises
        ------
        DuplicateSampleNameError
            If a name is requested more than once, or the template holds the name more
            than once so that it cannot be resolved to a single sample.
        """
        imap = np.full(len(samples), SAMPLE_REMOVED, np.int32)
        dict_ = header.dictionary.copy(samples=False)
        seen: Set[str] = set()
        for i, name in enumerate(samples):
            if name in seen:
                raise DuplicateSampleNameError(name)
            seen.add(name)
            ids = header.dictionary.sample_ids(name)
            if len(ids) > 1:
                raise DuplicateSampleNameError(name)
            if not ids:
                continue
            imap[i] = ids[0]
            dict_.push_sample(name)

        logger.debug(
            f"Subset header to {dict_.count(Namespace.SAMPLE)} of {len(samples)} requested samples."
        )
        return cls._from_parts(dict_, deepcopy(header._hrecs), imap)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> Header:
        """Create a header from VCF header text: ``##`` meta lines optionally followed by
        the ``#CHROM`` line, whose columns after ``FORMAT`` are the sample names.

        Raises
        ------
        HeaderParseError
            If a line is not a header line or is malformed.
        """
        header = cls()
        for line in lines:
            line = line.rstrip("\r\n")
            if not line:
                continue
            if line.startswith("##"):
                header.push_record(line)
            elif line.startswith("#CHROM"):
                for sample in line.split("\t")[9:]:
                    header.push_sample(sample)
                break
            else:
                raise HeaderParseError(line, "not a header line")
        return header

    def copy(self) -> Header:
        """Independent copy of this header, including its subset mapping."""
        subset = None if self.subset is None else self.subset.copy()
        return self._from_parts(self.dictionary.copy(), deepcopy(self._hrecs), subset)

    # -- mutation -----------------------------------------------------------

    def push_sample(self, sample: str) -> Header:
        """Add a sample to the end of the sample list.

        .. note::
            Duplicate names are not rejected here, only when subsetting.
        """
        self.dictionary.push_sample(sample)
        return self

    def push_record(self, record: str) -> Header:
        """Add a record to the header.

        Parameters
        ----------
        record
            The header line, e.g. ``'##contig=<ID=chrX,length=155270560>'``.

        Raises
        ------
        HeaderParseError
            If the line is malformed.
        """
        self._add_hrec(parse_header_line(record))
        return self

    def _add_hrec(self, hrec: HRec):
        category = hrec.category
        if category == HeaderCategory.GENERIC:
            if hrec.key == "fileformat":
                self._hrecs[0].value = hrec.value
                return
            if any(
                r.category == category and r.key == hrec.key and r.value == hrec.value
                for r in self._hrecs
            ):
                return
        elif category == HeaderCategory.STRUCTURED:
            if hrec.id is not None and any(
                r.category == category and r.key == hrec.key and r.id == hrec.id
                for r in self._hrecs
            ):
                logger.warning(f"Duplicate {hrec.key} record {hrec.id}, ignoring.")
                return
        elif category == HeaderCategory.CONTIG:
            assert hrec.id is not None
            _, added = self.dictionary.define_contig(hrec.id, contig_length(hrec))
            if not added:
                logger.warning(f"Duplicate contig {hrec.id}, ignoring.")
                return
        else:
            assert hrec.id is not None
            _, added = self.dictionary.define_tag(
                HeaderCategory(category), hrec.id, tag_def(hrec)
            )
            if not added:
                logger.warning(f"Duplicate {hrec.key} tag {hrec.id}, ignoring.")
                return
        self._hrecs.append(hrec)

    def remove_filter(self, tag: str) -> Header:
        """Remove a ``FILTER`` entry from the header. No-op if it is not defined."""
        return self._remove(tag, HeaderCategory.FILTER)

    def remove_info(self, tag: str) -> Header:
        """Remove an ``INFO`` entry from the header. No-op if it is not defined."""
        return self._remove(tag, HeaderCategory.INFO)

    def remove_format(self, tag: str) -> Header:
        """Remove a ``FORMAT`` entry from the header. No-op if it is not defined."""
        return self._remove(tag, HeaderCategory.FORMAT)

    def remove_contig(self, tag: str) -> Header:
        """Remove a contig entry from the header. No-op if it is not defined."""
        return self._remove(tag, HeaderCategory.CONTIG)

    def remove_structured(self, tag: str) -> Header:
        """Remove structured entries with the given ``ID``, e.g. ``'DEL'`` for
        ``##ALT=<ID=DEL,...>``. No-op if there are none."""
        return self._remove(tag, HeaderCategory.STRUCTURED)

    def remove_generic(self, tag: str) -> Header:
        """Remove generic entries with the given key. The ``fileformat`` line is never
        removed."""
        return self._remove(tag, HeaderCategory.GENERIC)

    def _remove(self, tag: str, category: HeaderCategory) -> Header:
        if category in TAG_CATEGORIES:
            self.dictionary.undefine_tag(category, tag)
        elif category is HeaderCategory.CONTIG:
            self.dictionary.undefine_contig(tag)

        def matches(hrec: HRec) -> bool:
            if hrec.category != category:
                return False
            if category is HeaderCategory.GENERIC:
                return hrec.key == tag
            return hrec.id == tag

        self._hrecs = self._hrecs[:1] + [r for r in self._hrecs[1:] if not matches(r)]
        return self

    # -- records ------------------------------------------------------------

    def header_records(self) -> List[HeaderRecord]:
        """Typed records of this header, in order, excluding the leading ``##fileformat``
        line.

        Raises
        ------
        UnsupportedCategoryError
            If a stored record has a category outside :class:`HeaderCategory`.
        """
        return [decode_record(hrec) for hrec in self._hrecs[1:]]

    @property
    def version(self) -> str:
        """Value of the ``##fileformat`` line."""
        version = self._hrecs[0].value
        assert version is not None
        return version

    def to_lines(self) -> List[str]:
        """Header text, one line per record, ending with the ``#CHROM`` line."""
        chrom = FIXED_COLUMNS
        if self.sample_count > 0:
            chrom = chrom + ["FORMAT"] + self.samples
        return [hrec.to_line() for hrec in self._hrecs] + ["\t".join(chrom)]

    def __str__(self) -> str:
        return "\n".join(self.to_lines()) + "\n"

    def __repr__(self) -> str:
        return (
            f"Header(version={self.version!r}, contigs={len(self.contigs)},"
            f" samples={self.sample_count}, records={len(self._hrecs) - 1})"
        )

    # -- lookups ------------------------------------------------------------

    @property
    def samples(self) -> List[str]:
        return self.dictionary.names(Namespace.SAMPLE)

    @property
    def sample_count(self) -> int:
        return self.dictionary.count(Namespace.SAMPLE)

    @property
    def contigs(self) -> List[str]:
        return self.dictionary.names(Namespace.CONTIG)

    def rid2name(self, rid: Id) -> str:
        """Name of the contig with id ``rid``."""
        return self.dictionary.id_to_name(Namespace.CONTIG, rid)

    def name2rid(self, name: str) -> Id:
        """Id of a contig.

        Raises
        ------
        UnknownSequenceError
            If the contig is not in the header.
        """
        try:
            return self.dictionary.name_to_id(Namespace.CONTIG, name)
        except UnknownNameError:
            raise UnknownSequenceError(name) from None

    def name_to_id(self, name: str) -> Id:
        """Convert a FILTER/INFO/FORMAT name, e.g. a ``FILTER`` value, to its id.

        Raises
        ------
        UnknownIdError
            If no category defines the name.
        """
        try:
            return self.dictionary.name_to_id(Namespace.TAG, name)
        except UnknownNameError:
            raise UnknownIdError(name) from None

    def id_to_name(self, id: Id) -> str:
        """Convert a FILTER/INFO/FORMAT id back to its name."""
        return self.dictionary.id_to_name(Namespace.TAG, id)

    def sample_to_id(self, sample: str) -> Id:
        """Convert a sample name to its id.

        Raises
        ------
        UnknownSampleError
            If the sample is not in the header.
        """
        try:
            return self.dictionary.name_to_id(Namespace.SAMPLE, sample)
        except UnknownNameError:
            raise UnknownSampleError(sample) from None

    def id_to_sample(self, id: Id) -> str:
        return self.dictionary.id_to_name(Namespace.SAMPLE, id)

    def info_type(self, tag: str) -> Tuple[TagType, TagLength]:
        """Type and arity of an ``INFO`` tag, see :meth:`HeaderDict.tag_type`."""
        return self.dictionary.tag_type(HeaderCategory.INFO, tag)

    def format_type(self, tag: str) -> Tuple[TagType, TagLength]:
        """Type and arity of a ``FORMAT`` tag, see :meth:`HeaderDict.tag_type`."""
        return self.dictionary.tag_type(HeaderCategory.FORMAT, tag)
