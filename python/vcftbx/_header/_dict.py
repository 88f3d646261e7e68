from __future__ import annotations

import sys
from copy import deepcopy
from typing import Dict, List, Optional, Tuple

from attrs import define, field

from .._types import HeaderCategory, Id, Namespace, TagLength, TagType
from ._errors import UndefinedTagError, UnknownNameError

__all__ = ["HeaderDict", "TagDef", "ContigDef"]


TAG_CATEGORIES = (HeaderCategory.FILTER, HeaderCategory.INFO, HeaderCategory.FORMAT)


@define
class TagDef:
    """Definition of a tag in one category."""

    type_code: int
    """Raw :class:`TagType` code. Always :attr:`TagType.FLAG` for FILTER tags."""
    length_code: int
    """Raw :class:`TagLength` code. Always :attr:`TagLength.FIXED` for FILTER tags."""
    number: int = 0
    """Number of values when the length is fixed."""


@define
class ContigDef:
    length: Optional[int] = None
    """Length of the contig, if declared."""


@define
class _NameTable:
    """Interned names with a reverse map from name to id. Names may repeat in the list
    (samples); the map keeps the first id of each name."""

    names: List[str] = field(factory=list)
    ids: Dict[str, int] = field(factory=dict)

    def push(self, name: str) -> Id:
        name = sys.intern(name)
        idx = len(self.names)
        self.names.append(name)
        self.ids.setdefault(name, idx)
        return Id(idx)

    def get(self, name: str) -> Optional[Id]:
        idx = self.ids.get(name)
        return None if idx is None else Id(idx)

    def get_or_push(self, name: str) -> Id:
        idx = self.get(name)
        if idx is None:
            idx = self.push(name)
        return idx

    def __len__(self) -> int:
        return len(self.names)


@define
class HeaderDict:
    """Dictionary of a header: maps contig, sample and tag names to dense integer ids.

    Each :class:`Namespace` is an independent table. Ids are indices into these tables
    and are never renumbered: removing a definition leaves the id allocated so that ids
    handed out earlier still resolve with :meth:`id_to_name`, and redefining the same
    name reuses it.
    """

    _tags: _NameTable = field(factory=_NameTable, alias="_tags")
    _tag_defs: List[Dict[HeaderCategory, TagDef]] = field(
        factory=list, alias="_tag_defs"
    )
    """Per tag id, the definition in each category that defines it."""
    _contigs: _NameTable = field(factory=_NameTable, alias="_contigs")
    _contig_defs: List[Optional[ContigDef]] = field(factory=list, alias="_contig_defs")
    """Per contig id, its definition or None if it was removed."""
    _samples: _NameTable = field(factory=_NameTable, alias="_samples")

    def copy(self, samples: bool = True) -> HeaderDict:
        """Independent deep copy of the dictionary, optionally with an empty sample table."""
        out = deepcopy(self)
        if not samples:
            out._samples = _NameTable()
        return out

    def _table(self, namespace: Namespace) -> _NameTable:
        if namespace == Namespace.TAG:
            return self._tags
        elif namespace == Namespace.CONTIG:
            return self._contigs
        elif namespace == Namespace.SAMPLE:
            return self._samples
        raise ValueError(f"Unknown namespace {namespace!r}")

    def _is_live(self, namespace: Namespace, idx: int) -> bool:
        if namespace == Namespace.TAG:
            return bool(self._tag_defs[idx])
        elif namespace == Namespace.CONTIG:
            return self._contig_defs[idx] is not None
        return True

    def name_to_id(self, namespace: Namespace, name: str) -> Id:
        """Look up the id of a name.

        Raises
        ------
        UnknownNameError
            If the name is not defined in the namespace.
        """
        idx = self._table(namespace).get(name)
        if idx is None or not self._is_live(namespace, idx):
            raise UnknownNameError(namespace, name)
        return idx

    def id_to_name(self, namespace: Namespace, id: Id) -> str:
        """Reverse lookup. Ids must come from this dictionary."""
        return self._table(namespace).names[id]

    def count(self, namespace: Namespace) -> int:
        """Number of live entries in a namespace."""
        return len(self.names(namespace))

    def names(self, namespace: Namespace) -> List[str]:
        """Live names of a namespace, in id order."""
        table = self._table(namespace)
        return [n for i, n in enumerate(table.names) if self._is_live(namespace, i)]

    # -- tags ---------------------------------------------------------------

    def _tag_def(self, category: HeaderCategory, name: str) -> TagDef:
        idx = self._tags.get(name)
        if idx is None or category not in self._tag_defs[idx]:
            raise UndefinedTagError(name)
        return self._tag_defs[idx][category]

    def tag_type(
        self, category: HeaderCategory, name: str
    ) -> Tuple[TagType, TagLength]:
        """Type and arity of an INFO or FORMAT tag.

        Raises
        ------
        UndefinedTagError
            If the tag is not defined in the category.
        UnexpectedTagTypeError
            If the stored type or length code is not recognized.
        """
        if category not in (HeaderCategory.INFO, HeaderCategory.FORMAT):
            raise ValueError("Tag types only exist for INFO and FORMAT tags.")
        tag = self._tag_def(category, name)
        return TagType.decode(tag.type_code), TagLength.decode(tag.length_code)

    def tag_number(self, category: HeaderCategory, name: str) -> int:
        """Declared ``Number`` of a fixed length tag."""
        return self._tag_def(category, name).number

    def has_tag(self, category: HeaderCategory, name: str) -> bool:
        idx = self._tags.get(name)
        return idx is not None and category in self._tag_defs[idx]

    def define_tag(
        self, category: HeaderCategory, name: str, tag: TagDef
    ) -> Tuple[Id, bool]:
        """Define a tag in a category. Returns its id and whether it was newly defined;
        an existing definition in the same category is kept as is."""
        if category not in TAG_CATEGORIES:
            raise ValueError(f"{category.name} is not a tag category.")
        idx = self._tags.get_or_push(name)
        if idx == len(self._tag_defs):
            self._tag_defs.append({})
        defs = self._tag_defs[idx]
        if category in defs:
            return idx, False
        defs[category] = tag
        return idx, True

    def undefine_tag(self, category: HeaderCategory, name: str) -> bool:
        idx = self._tags.get(name)
        if idx is None:
            return False
        return self._tag_defs[idx].pop(category, None) is not None

    # -- contigs ------------------------------------------------------------

    def define_contig(self, name: str, length: Optional[int] = None) -> Tuple[Id, bool]:
        idx = self._contigs.get_or_push(name)
        if idx == len(self._contig_defs):
            self._contig_defs.append(None)
        if self._contig_defs[idx] is not None:
            return idx, False
        self._contig_defs[idx] = ContigDef(length)
        return idx, True

    def undefine_contig(self, name: str) -> bool:
        idx = self._contigs.get(name)
        if idx is None or self._contig_defs[idx] is None:
            return False
        self._contig_defs[idx] = None
        return True

    def contig_length(self, name: str) -> Optional[int]:
        idx = self.name_to_id(Namespace.CONTIG, name)
        contig = self._contig_defs[idx]
        assert contig is not None
        return contig.length

    # -- samples ------------------------------------------------------------

    def push_sample(self, name: str) -> Id:
        """Append a sample. Duplicate names are accepted; name lookups resolve to the
        first sample with that name."""
        return self._samples.push(name)

    def sample_ids(self, name: str) -> List[Id]:
        """All ids holding a sample name."""
        return [Id(i) for i, n in enumerate(self._samples.names) if n == name]
