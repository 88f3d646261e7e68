import pytest
from pytest_cases import parametrize_with_cases
from vcftbx import IndexConfig, InvalidRecordError, Preset, TruncatedError, overlap
from vcftbx._tabix._index import ZERO_BASED, QueryCursor


def make_config(fmt: int, end_col: int = 0) -> IndexConfig:
    return IndexConfig.from_conf([fmt, 1, 2, end_col, ord("#"), 0, 0], b"chr1\0chr2\0")


def test_from_conf():
    config = make_config(Preset.GENERIC | ZERO_BASED, 3)
    assert config.preset is Preset.GENERIC
    assert config.zero_based
    assert config.names == ("chr1", "chr2")
    assert config.meta_char == "#"
    assert config.tid("chr2") == 1
    assert config.tid("chr3") == -1


def test_from_conf_no_names():
    config = IndexConfig.from_conf([Preset.VCF, 1, 2, 0, ord("#"), 0, 0], b"")
    assert config.names == ()


def span_bed():
    return make_config(Preset.GENERIC | ZERO_BASED, 3), "chr1\t990\t1000", (0, 990, 1000)


def span_one_based_generic():
    return make_config(Preset.GENERIC, 3), "chr2\t991\t1000", (1, 990, 1000)


def span_generic_no_end():
    return make_config(Preset.GENERIC), "chr1\t10", (0, 9, 10)


def span_unknown_sequence():
    return make_config(Preset.GENERIC), "chrZ\t10", (-1, 9, 10)


def span_vcf_ref():
    return make_config(Preset.VCF), "chr1\t200\t.\tACGT\tA", (0, 199, 203)


def span_vcf_info_end():
    line = "chr1\t300\t.\tN\t<DEL>\t50\tPASS\tSVTYPE=DEL;END=400"
    return make_config(Preset.VCF), line, (0, 299, 400)


def span_vcf_info_end_before_begin():
    line = "chr1\t300\t.\tNA\t<DEL>\t50\tPASS\tEND=100"
    return make_config(Preset.VCF), line, (0, 299, 301)


def span_vcf_info_end_invalid():
    line = "chr1\t300\t.\tN\t<DEL>\t50\tPASS\tEND=abc"
    return make_config(Preset.VCF), line, (0, 299, 300)


def span_sam_cigar():
    line = "read1\t0\tchr1\t100\t60\t5M2I3D4N1S\t*\t0\t0\tACGT\tIIII"
    config = IndexConfig.from_conf([Preset.SAM, 3, 4, 0, ord("@"), 0, 0], b"chr1\0")
    return config, line, (0, 99, 111)


def span_sam_unmapped():
    line = "read1\t4\tchr1\t100\t0\t*\t*\t0\t0\tACGT\tIIII"
    config = IndexConfig.from_conf([Preset.SAM, 3, 4, 0, ord("@"), 0, 0], b"chr1\0")
    return config, line, (0, 99, 100)


@parametrize_with_cases("config, line, desired", cases=".", prefix="span_")
def test_span(config: IndexConfig, line: str, desired):
    assert config.span(line) == desired


def truncated_missing_begin():
    return make_config(Preset.GENERIC), "chr1"


def truncated_non_integer_begin():
    return make_config(Preset.GENERIC), "chr1\tabc\t10"


def truncated_missing_end():
    return make_config(Preset.GENERIC | ZERO_BASED, 3), "chr1\t10"


def truncated_non_integer_end():
    return make_config(Preset.GENERIC | ZERO_BASED, 3), "chr1\t10\tx"


@parametrize_with_cases("config, line", cases=".", prefix="truncated_")
def test_span_truncated(config: IndexConfig, line: str):
    with pytest.raises(TruncatedError):
        config.span(line)


def _failing_lines(err: Exception):
    yield "chr1\t1\t2"
    raise err


def test_cursor_io_error():
    cursor = QueryCursor(_failing_lines(OSError("truncated file")), make_config(0, 3))
    assert next(cursor).text == "chr1\t1\t2"
    with pytest.raises(TruncatedError):
        next(cursor)


def test_cursor_htslib_error():
    err = ValueError("iteration failed (error code -2)")
    cursor = QueryCursor(_failing_lines(err), make_config(0, 3))
    next(cursor)
    with pytest.raises(TruncatedError):
        next(cursor)


def test_cursor_decode_error():
    err = UnicodeDecodeError("ascii", b"\xff", 0, 1, "ordinal not in range(128)")
    cursor = QueryCursor(_failing_lines(err), make_config(0, 3))
    line = next(cursor)
    assert (line.tid, line.begin, line.end) == (0, 0, 2)
    with pytest.raises(InvalidRecordError):
        next(cursor)


def test_cursor_exhausts():
    cursor = QueryCursor(["chr2\t5\t6"], make_config(ZERO_BASED, 3))
    assert [(r.tid, r.begin, r.end) for r in cursor] == [(1, 5, 6)]
    with pytest.raises(StopIteration):
        next(cursor)


def overlap_inside():
    return (0, 10, 20, 0, 12, 15), True


def overlap_partial():
    return (0, 10, 20, 0, 19, 30), True


def overlap_adjacent():
    return (0, 10, 20, 0, 20, 30), False


def overlap_other_sequence():
    return (0, 10, 20, 1, 10, 20), False


def overlap_touching_before():
    return (0, 10, 20, 0, 5, 10), False


@parametrize_with_cases("args, desired", cases=".", prefix="overlap_")
def test_overlap(args, desired: bool):
    assert overlap(*args) is desired
