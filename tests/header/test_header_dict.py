import pytest
from pytest_cases import parametrize_with_cases
from vcftbx import (
    HeaderCategory,
    HeaderDict,
    Namespace,
    TagLength,
    TagType,
    UndefinedTagError,
    UnexpectedTagTypeError,
    UnknownNameError,
)
from vcftbx._header._dict import TagDef


def filled_dict():
    d = HeaderDict()
    d.define_contig("chr1", 248956422)
    d.define_contig("chr2")
    d.define_tag(HeaderCategory.FILTER, "q10", TagDef(TagType.FLAG, TagLength.FIXED))
    d.define_tag(HeaderCategory.INFO, "DP", TagDef(TagType.INTEGER, TagLength.FIXED, 1))
    d.define_tag(
        HeaderCategory.FORMAT, "AD", TagDef(TagType.INTEGER, TagLength.ALLELES)
    )
    d.push_sample("NA00001")
    d.push_sample("NA00002")
    return d


def names_contig():
    return Namespace.CONTIG, ["chr1", "chr2"]


def names_tag():
    return Namespace.TAG, ["q10", "DP", "AD"]


def names_sample():
    return Namespace.SAMPLE, ["NA00001", "NA00002"]


@parametrize_with_cases("namespace, names", cases=".", prefix="names_")
def test_round_trip(namespace, names):
    d = filled_dict()
    assert d.names(namespace) == names
    assert d.count(namespace) == len(names)
    for name in names:
        assert d.id_to_name(namespace, d.name_to_id(namespace, name)) == name


def test_ids_are_dense_per_namespace():
    d = filled_dict()
    assert d.name_to_id(Namespace.CONTIG, "chr2") == 1
    assert d.name_to_id(Namespace.TAG, "q10") == 0
    assert d.name_to_id(Namespace.TAG, "AD") == 2
    assert d.name_to_id(Namespace.SAMPLE, "NA00002") == 1


@parametrize_with_cases("namespace, names", cases=".", prefix="names_")
def test_unknown_name(namespace, names):
    d = filled_dict()
    with pytest.raises(UnknownNameError) as err:
        d.name_to_id(namespace, "missing")
    assert err.value.name == "missing"
    assert err.value.namespace is namespace


def test_namespaces_are_disjoint():
    d = filled_dict()
    with pytest.raises(UnknownNameError):
        d.name_to_id(Namespace.TAG, "chr1")
    with pytest.raises(UnknownNameError):
        d.name_to_id(Namespace.CONTIG, "DP")


def test_tag_type():
    d = filled_dict()
    assert d.tag_type(HeaderCategory.INFO, "DP") == (TagType.INTEGER, TagLength.FIXED)
    assert d.tag_number(HeaderCategory.INFO, "DP") == 1
    assert d.tag_type(HeaderCategory.FORMAT, "AD") == (
        TagType.INTEGER,
        TagLength.ALLELES,
    )


def test_tag_type_wrong_category():
    d = filled_dict()
    with pytest.raises(UndefinedTagError):
        d.tag_type(HeaderCategory.FORMAT, "DP")
    with pytest.raises(ValueError):
        d.tag_type(HeaderCategory.FILTER, "q10")


def undefined_never_added():
    return "XX"


def undefined_contig_name():
    return "chr1"


def undefined_sample_name():
    return "NA00001"


@parametrize_with_cases("tag", cases=".", prefix="undefined_")
def test_tag_type_undefined(tag):
    d = filled_dict()
    for category in (HeaderCategory.INFO, HeaderCategory.FORMAT):
        with pytest.raises(UndefinedTagError) as err:
            d.tag_type(category, tag)
        assert err.value.name == tag


def test_tag_type_unexpected_codes():
    d = filled_dict()
    tag_id = d.name_to_id(Namespace.TAG, "DP")
    d._tag_defs[tag_id][HeaderCategory.INFO].type_code = 9
    with pytest.raises(UnexpectedTagTypeError):
        d.tag_type(HeaderCategory.INFO, "DP")

    d._tag_defs[tag_id][HeaderCategory.INFO].type_code = TagType.INTEGER
    d._tag_defs[tag_id][HeaderCategory.INFO].length_code = 15
    with pytest.raises(UnexpectedTagTypeError):
        d.tag_type(HeaderCategory.INFO, "DP")


def test_ids_are_stable_after_removal():
    d = filled_dict()
    dp = d.name_to_id(Namespace.TAG, "DP")
    assert d.undefine_tag(HeaderCategory.INFO, "DP")
    assert not d.undefine_tag(HeaderCategory.INFO, "DP")

    with pytest.raises(UnknownNameError):
        d.name_to_id(Namespace.TAG, "DP")
    assert d.id_to_name(Namespace.TAG, dp) == "DP"
    assert d.name_to_id(Namespace.TAG, "AD") == 2

    new_id, added = d.define_tag(
        HeaderCategory.INFO, "DP", TagDef(TagType.FLOAT, TagLength.VARIABLE)
    )
    assert added
    assert new_id == dp
    assert d.tag_type(HeaderCategory.INFO, "DP") == (TagType.FLOAT, TagLength.VARIABLE)


def test_shared_tag_namespace():
    d = filled_dict()
    d.define_tag(HeaderCategory.INFO, "q10", TagDef(TagType.FLAG, TagLength.FIXED))
    q10 = d.name_to_id(Namespace.TAG, "q10")
    d.undefine_tag(HeaderCategory.FILTER, "q10")
    assert d.name_to_id(Namespace.TAG, "q10") == q10
    assert d.has_tag(HeaderCategory.INFO, "q10")
    assert not d.has_tag(HeaderCategory.FILTER, "q10")


def test_contigs():
    d = filled_dict()
    assert d.contig_length("chr1") == 248956422
    assert d.contig_length("chr2") is None
    _, added = d.define_contig("chr1", 1)
    assert not added
    assert d.contig_length("chr1") == 248956422

    assert d.undefine_contig("chr1")
    assert d.names(Namespace.CONTIG) == ["chr2"]
    assert d.name_to_id(Namespace.CONTIG, "chr2") == 1


def test_duplicate_samples_resolve_to_first():
    d = filled_dict()
    d.push_sample("NA00001")
    assert d.count(Namespace.SAMPLE) == 3
    assert d.name_to_id(Namespace.SAMPLE, "NA00001") == 0
    assert d.sample_ids("NA00001") == [0, 2]


def test_copy_is_independent():
    d = filled_dict()
    other = d.copy()
    other.push_sample("NA00003")
    other.undefine_contig("chr1")
    assert d.names(Namespace.SAMPLE) == ["NA00001", "NA00002"]
    assert d.names(Namespace.CONTIG) == ["chr1", "chr2"]

    no_samples = d.copy(samples=False)
    assert no_samples.count(Namespace.SAMPLE) == 0
    assert no_samples.names(Namespace.TAG) == ["q10", "DP", "AD"]
