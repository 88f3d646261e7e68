import importlib.metadata

from ._header import SAMPLE_REMOVED, Header
from ._header._dict import HeaderDict
from ._header._errors import (
    DuplicateSampleNameError,
    HeaderError,
    HeaderParseError,
    TagTypeError,
    UndefinedTagError,
    UnexpectedTagTypeError,
    UnknownIdError,
    UnknownNameError,
    UnknownSampleError,
    UnknownSequenceError,
    UnsupportedCategoryError,
)
from ._header._records import (
    ContigRecord,
    FilterRecord,
    FormatRecord,
    GenericRecord,
    HeaderRecord,
    InfoRecord,
    StructuredRecord,
    parse_header_line,
)
from ._tabix import QueryState, TabixReader, overlap
from ._tabix._errors import (
    FetchError,
    InvalidIndexError,
    InvalidPathError,
    InvalidRecordError,
    NoIterError,
    NoMoreRecordError,
    ReadError,
    SequenceLookupError,
    TabixReaderError,
    TruncatedError,
)
from ._tabix._index import ContainerFormat, IndexConfig, Preset
from ._types import HeaderCategory, Id, Namespace, TagLength, TagType

__version__ = importlib.metadata.version("vcftbx")

__all__ = [
    "Header",
    "HeaderDict",
    "SAMPLE_REMOVED",
    "HeaderRecord",
    "FilterRecord",
    "InfoRecord",
    "FormatRecord",
    "ContigRecord",
    "StructuredRecord",
    "GenericRecord",
    "parse_header_line",
    "Id",
    "Namespace",
    "HeaderCategory",
    "TagType",
    "TagLength",
    "TabixReader",
    "QueryState",
    "IndexConfig",
    "Preset",
    "ContainerFormat",
    "overlap",
    "HeaderError",
    "UnknownNameError",
    "UnknownSequenceError",
    "UnknownIdError",
    "UnknownSampleError",
    "TagTypeError",
    "UndefinedTagError",
    "UnexpectedTagTypeError",
    "DuplicateSampleNameError",
    "HeaderParseError",
    "UnsupportedCategoryError",
    "TabixReaderError",
    "InvalidIndexError",
    "InvalidPathError",
    "SequenceLookupError",
    "FetchError",
    "ReadError",
    "NoIterError",
    "TruncatedError",
    "InvalidRecordError",
    "NoMoreRecordError",
]
