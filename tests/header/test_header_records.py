import pytest
from pytest_cases import parametrize_with_cases
from vcftbx import (
    GenericRecord,
    HeaderCategory,
    HeaderParseError,
    StructuredRecord,
    TagLength,
    TagType,
    UnsupportedCategoryError,
    parse_header_line,
)
from vcftbx._header._records import HRec, decode_record, tag_def


def test_quoted_values():
    hrec = parse_header_line(
        r'##INFO=<ID=CSQ,Number=.,Type=String,Description="a, b \"c\" <d>">'
    )
    assert hrec.category == HeaderCategory.INFO
    assert hrec.keys == ["ID", "Number", "Type", "Description"]
    assert hrec.values == ["CSQ", ".", "String", 'a, b "c" <d>']
    assert hrec.to_line() == (
        r'##INFO=<ID=CSQ,Number=.,Type=String,Description="a, b \"c\" <d>">'
    )


def test_other_structured():
    hrec = parse_header_line('##ALT=<ID=DEL,Description="Deletion">')
    assert hrec.category == HeaderCategory.STRUCTURED
    record = decode_record(hrec)
    assert isinstance(record, StructuredRecord)
    assert record.key == "ALT"
    assert record.id == "DEL"
    assert record.get("Description") == "Deletion"
    assert record.get("Missing", "x") == "x"


def test_structured_without_id():
    hrec = parse_header_line("##META=<Type=String,Number=.>")
    assert hrec.category == HeaderCategory.STRUCTURED
    assert hrec.id is None


def test_generic():
    hrec = parse_header_line("##reference=file:///ref.fa\n")
    assert hrec.category == HeaderCategory.GENERIC
    assert decode_record(hrec) == GenericRecord("reference", "file:///ref.fa")
    assert hrec.to_line() == "##reference=file:///ref.fa"


def number_fixed():
    return "2", TagLength.FIXED, 2


def number_variable():
    return ".", TagLength.VARIABLE, 0


def number_alt_alleles():
    return "A", TagLength.ALT_ALLELES, 0


def number_genotypes():
    return "G", TagLength.GENOTYPES, 0


def number_alleles():
    return "R", TagLength.ALLELES, 0


@parametrize_with_cases("number, length, n", cases=".", prefix="number_")
def test_tag_number(number: str, length: TagLength, n: int):
    hrec = parse_header_line(f"##FORMAT=<ID=X,Number={number},Type=Float>")
    tag = tag_def(hrec)
    assert TagLength.decode(tag.length_code) is length
    assert TagType.decode(tag.type_code) is TagType.FLOAT
    assert tag.number == n


def test_character_is_string():
    tag = tag_def(parse_header_line("##INFO=<ID=C,Number=1,Type=Character>"))
    assert tag.type_code == TagType.STRING


def test_filter_is_flag():
    tag = tag_def(parse_header_line('##FILTER=<ID=PASS,Description="All filters">'))
    assert (tag.type_code, tag.length_code, tag.number) == (
        TagType.FLAG,
        TagLength.FIXED,
        0,
    )


def test_negative_number():
    with pytest.raises(HeaderParseError):
        parse_header_line("##INFO=<ID=X,Number=-1,Type=Integer>")


def test_trailing_text_after_quote():
    with pytest.raises(HeaderParseError):
        parse_header_line('##ALT=<ID=DEL,Description="Deletion"x>')


def test_decode_unknown_category():
    with pytest.raises(UnsupportedCategoryError) as err:
        decode_record(HRec(7, "X", keys=["ID"], values=["x"]))
    assert err.value.code == 7
