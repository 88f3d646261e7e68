from __future__ import annotations

from enum import IntEnum
from typing import NewType

__all__ = ["Id", "Namespace", "HeaderCategory", "TagType", "TagLength"]


Id = NewType("Id", int)
"""Dense, non-negative index into exactly one :class:`Namespace` of a header dictionary."""


class Namespace(IntEnum):
    """Independent id spaces of a header dictionary. FILTER, INFO and FORMAT tags share
    the :attr:`TAG` namespace, as in BCF."""

    TAG = 0
    CONTIG = 1
    SAMPLE = 2


class HeaderCategory(IntEnum):
    """Category codes of header records."""

    FILTER = 0
    INFO = 1
    FORMAT = 2
    CONTIG = 3
    STRUCTURED = 4
    GENERIC = 5


class TagType(IntEnum):
    """Scalar value kind of an INFO/FORMAT tag."""

    FLAG = 0
    INTEGER = 1
    FLOAT = 2
    STRING = 3

    @classmethod
    def decode(cls, code: int) -> TagType:
        """Decode a stored type code.

        Raises
        ------
        UnexpectedTagTypeError
            If the code does not correspond to a known tag type.
        """
        from ._header._errors import UnexpectedTagTypeError

        try:
            return cls(code)
        except ValueError as err:
            raise UnexpectedTagTypeError(f"type code {code}") from err


class TagLength(IntEnum):
    """Arity policy of an INFO/FORMAT tag."""

    FIXED = 0
    """A fixed number of values, see the tag's ``Number``."""
    VARIABLE = 1
    """Number of values is determined by the caller (``Number=.``)."""
    ALT_ALLELES = 2
    """One value per alternate allele (``Number=A``)."""
    GENOTYPES = 3
    """One value per possible genotype (``Number=G``)."""
    ALLELES = 4
    """One value per allele including the reference (``Number=R``)."""

    @classmethod
    def decode(cls, code: int) -> TagLength:
        """Decode a stored length code.

        Raises
        ------
        UnexpectedTagTypeError
            If the code does not correspond to a known tag length.
        """
        from ._header._errors import UnexpectedTagTypeError

        try:
            return cls(code)
        except ValueError as err:
            raise UnexpectedTagTypeError(f"length code {code}") from err
