from __future__ import annotations

from typing import List, Optional, Tuple

from attrs import define, field
from loguru import logger
from typing_extensions import assert_never

from .._types import HeaderCategory, TagLength, TagType
from ._dict import TagDef
from ._errors import HeaderParseError, UnsupportedCategoryError

__all__ = [
    "HeaderRecord",
    "FilterRecord",
    "InfoRecord",
    "FormatRecord",
    "ContigRecord",
    "StructuredRecord",
    "GenericRecord",
    "parse_header_line",
]


STRUCTURED_CATEGORIES = {
    "FILTER": HeaderCategory.FILTER,
    "INFO": HeaderCategory.INFO,
    "FORMAT": HeaderCategory.FORMAT,
    "contig": HeaderCategory.CONTIG,
}
TYPE_CODES = {
    "Flag": TagType.FLAG,
    "Integer": TagType.INTEGER,
    "Float": TagType.FLOAT,
    "String": TagType.STRING,
    "Character": TagType.STRING,
}
LENGTH_CODES = {
    ".": TagLength.VARIABLE,
    "A": TagLength.ALT_ALLELES,
    "R": TagLength.ALLELES,
    "G": TagLength.GENOTYPES,
}
QUOTED_KEYS = {"Description", "Source", "Version"}


@define
class HRec:
    """A header line as stored in a header's record list. ``category`` is kept as the raw
    code so that it can be checked when records are handed out."""

    category: int
    key: str
    value: Optional[str] = None
    """Value of a generic record."""
    keys: List[str] = field(factory=list)
    values: List[str] = field(factory=list)

    def get(self, key: str) -> Optional[str]:
        for k, v in zip(self.keys, self.values):
            if k == key:
                return v
        return None

    @property
    def id(self) -> Optional[str]:
        return self.get("ID")

    def to_line(self) -> str:
        if self.value is not None:
            return f"##{self.key}={self.value}"
        pairs = ",".join(
            f"{k}={_quote(v) if k in QUOTED_KEYS or _needs_quotes(v) else v}"
            for k, v in zip(self.keys, self.values)
        )
        return f"##{self.key}=<{pairs}>"


def _needs_quotes(value: str) -> bool:
    return any(c in value for c in ',"<>=') or value != value.strip()


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _parse_pairs(line: str, body: str) -> Tuple[List[str], List[str]]:
    keys: List[str] = []
    values: List[str] = []
    i = 0
    n = len(body)
    while i < n:
        eq = body.find("=", i)
        if eq < 0:
            raise HeaderParseError(line, "missing '=' in key-value pair")
        key = body[i:eq].strip()
        if not key:
            raise HeaderParseError(line, "empty key")
        i = eq + 1
        if i < n and body[i] == '"':
            i += 1
            chars = []
            while True:
                if i >= n:
                    raise HeaderParseError(line, "unterminated quoted value")
                c = body[i]
                if c == "\\" and i + 1 < n:
                    chars.append(body[i + 1])
                    i += 2
                elif c == '"':
                    i += 1
                    break
                else:
                    chars.append(c)
                    i += 1
            value = "".join(chars)
            if i < n and body[i] != ",":
                raise HeaderParseError(line, "unexpected text after quoted value")
        else:
            comma = body.find(",", i)
            if comma < 0:
                comma = n
            value = body[i:comma]
            i = comma
        keys.append(key)
        values.append(value)
        i += 1  # skip ','
    return keys, values


def parse_header_line(line: str) -> HRec:
    """Parse a single ``##key=value`` or ``##key=<k=v,...>`` header line.

    Parameters
    ----------
    line
        The header line, with or without a trailing newline.

    Raises
    ------
    HeaderParseError
        If the line is malformed or a FILTER/INFO/FORMAT/contig line lacks required keys.
    """
    line = line.rstrip("\r\n")
    if not line.startswith("##"):
        raise HeaderParseError(line, "header lines must start with '##'")
    key, sep, value = line[2:].partition("=")
    if not sep or not key:
        raise HeaderParseError(line, "expected '##key=value'")

    if not value.startswith("<"):
        return HRec(HeaderCategory.GENERIC, key, value=value)

    if not value.endswith(">"):
        raise HeaderParseError(line, "structured value must end with '>'")
    keys, values = _parse_pairs(line, value[1:-1])
    category = STRUCTURED_CATEGORIES.get(key, HeaderCategory.STRUCTURED)
    hrec = HRec(category, key, keys=keys, values=values)

    if category is not HeaderCategory.STRUCTURED and not hrec.id:
        raise HeaderParseError(line, f"{key} lines require an ID")
    if category in (HeaderCategory.INFO, HeaderCategory.FORMAT):
        tag_def(hrec, line)
    elif category is HeaderCategory.CONTIG:
        contig_length(hrec, line)
    return hrec


def tag_def(hrec: HRec, line: Optional[str] = None) -> TagDef:
    """Type and arity of a FILTER, INFO or FORMAT record."""
    if hrec.category == HeaderCategory.FILTER:
        return TagDef(TagType.FLAG, TagLength.FIXED, 0)

    line = hrec.to_line() if line is None else line
    number = hrec.get("Number")
    type_ = hrec.get("Type")
    if number is None:
        raise HeaderParseError(line, "missing Number")
    if type_ is None:
        raise HeaderParseError(line, "missing Type")
    if type_ not in TYPE_CODES:
        raise HeaderParseError(line, f"unknown Type {type_}")

    if number in LENGTH_CODES:
        length, n = LENGTH_CODES[number], 0
    else:
        try:
            length, n = TagLength.FIXED, int(number)
        except ValueError:
            raise HeaderParseError(line, f"invalid Number {number}")
        if n < 0:
            raise HeaderParseError(line, f"invalid Number {number}")

    type_code = TYPE_CODES[type_]
    if type_code is TagType.FLAG and (length is not TagLength.FIXED or n != 0):
        logger.warning(f"Flag {hrec.id} should have Number=0, found Number={number}.")
    return TagDef(type_code, length, n)


def contig_length(hrec: HRec, line: Optional[str] = None) -> Optional[int]:
    length = hrec.get("length")
    if length is None:
        return None
    try:
        return int(length)
    except ValueError:
        line = hrec.to_line() if line is None else line
        raise HeaderParseError(line, f"invalid contig length {length}")


@define(frozen=True)
class HeaderRecord:
    """A header record. One of :class:`FilterRecord`, :class:`InfoRecord`,
    :class:`FormatRecord`, :class:`ContigRecord`, :class:`StructuredRecord` or
    :class:`GenericRecord`."""

    key: str
    """Key of the header line, e.g. ``INFO`` for ``##INFO=<...>``."""


def _to_pairs(pairs) -> Tuple[Tuple[str, str], ...]:
    return tuple((str(k), str(v)) for k, v in pairs)


@define(frozen=True)
class _KeyValueRecord(HeaderRecord):
    key_value_pairs: Tuple[Tuple[str, str], ...] = field(converter=_to_pairs)
    """Attribute name/value pairs in the order they appear in the header."""

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        for k, v in self.key_value_pairs:
            if k == name:
                return v
        return default

    @property
    def id(self) -> Optional[str]:
        return self.get("ID")


@define(frozen=True)
class FilterRecord(_KeyValueRecord):
    """A ``FILTER`` header record."""


@define(frozen=True)
class InfoRecord(_KeyValueRecord):
    """An ``INFO`` header record."""


@define(frozen=True)
class FormatRecord(_KeyValueRecord):
    """A ``FORMAT`` header record."""


@define(frozen=True)
class ContigRecord(_KeyValueRecord):
    """A ``contig`` header record."""


@define(frozen=True)
class StructuredRecord(_KeyValueRecord):
    """Any other structured header record, e.g. ``ALT`` or ``SAMPLE``."""


@define(frozen=True)
class GenericRecord(HeaderRecord):
    """A generic, unstructured ``##key=value`` header record."""

    value: str


def decode_record(hrec: HRec) -> HeaderRecord:
    """Decode a stored record into its typed variant by category code.

    Raises
    ------
    UnsupportedCategoryError
        If the stored category code is not one of :class:`HeaderCategory`.
    """
    try:
        category = HeaderCategory(hrec.category)
    except ValueError:
        raise UnsupportedCategoryError(hrec.category) from None

    pairs = zip(hrec.keys, hrec.values)
    if category is HeaderCategory.FILTER:
        return FilterRecord(hrec.key, pairs)
    elif category is HeaderCategory.INFO:
        return InfoRecord(hrec.key, pairs)
    elif category is HeaderCategory.FORMAT:
        return FormatRecord(hrec.key, pairs)
    elif category is HeaderCategory.CONTIG:
        return ContigRecord(hrec.key, pairs)
    elif category is HeaderCategory.STRUCTURED:
        return StructuredRecord(hrec.key, pairs)
    elif category is HeaderCategory.GENERIC:
        if hrec.value is None:
            raise UnsupportedCategoryError(hrec.category)
        return GenericRecord(hrec.key, hrec.value)
    else:
        assert_never(category)
