import logging

import numpy
import pytest

from alignstore.core.alignment import (
    Alignment,
    SupportsAligned,
    SupportsSequence,
    make_aligned,
)
from alignstore.core.annotation import Strand, SubAnnotation
from alignstore.core.errors import (
    AlignmentError,
    ConstructionError,
    ShapeError,
    UnsupportedCapability,
)
from alignstore.core.moltype import DNA, PROTEIN
from alignstore.core.quality import DEFAULT_QPHRED, QLETTER_DTYPE, QLetter
from alignstore.core.sequence import QSeq, Seq

EXAMPLE_ROWS = [
    "ACGCTGACTTGGTGCACGT",
    "ACGGTGACCTGGCGCGCAT",
    "ACGATGACGTGGCGCTCAT",
]


def row_strs(aln):
    return [str(aln.row(i)) for i in range(aln.rows)]


@pytest.fixture
def example_qseq():
    return QSeq(
        "example DNA",
        [("a", 40), ("c", 39), ("g", 40), ("C", 38), ("t", 35), ("g", 20)],
        DNA,
    )


def test_construct(example_aln):
    assert example_aln.rows == 3
    assert len(example_aln) == 19
    assert example_aln.names == ("seq 1", "seq 2", "seq 3")
    assert row_strs(example_aln) == EXAMPLE_ROWS
    assert (example_aln.start, example_aln.end) == (0, 19)
    assert example_aln.strand is Strand.FORWARD


def test_construct_offset(example_columns):
    aln = Alignment("x", [], example_columns, "dna", offset=7)
    assert (aln.start, aln.end) == (7, 26)


def test_construct_synthesizes_names():
    aln = Alignment("aln", [], ["AC", "GT"], "dna")
    assert aln.names == ("aln:0", "aln:1")


def test_construct_empty():
    aln = Alignment("empty", [], [], "dna")
    assert aln.rows == 0
    assert len(aln) == 0
    assert aln.sub_annotations == ()


def test_construct_empty_columns_with_rows():
    aln = Alignment("x", ["a", "b"], numpy.empty((0, 2), dtype=numpy.uint8), "dna")
    assert (aln.rows, len(aln)) == (2, 0)
    aln.append_each(["AC", "G"])
    assert row_strs(aln) == ["AC", "G-"]


@pytest.mark.parametrize(
    "names,columns",
    (
        (["a", "b"], ["AAA", "CCC"]),
        (["a", "b"], []),
        (["a", "b", "c"], ["AAA", "CC"]),
        ([], ["AAA", "CC"]),
    ),
)
def test_construct_mismatch(names, columns):
    with pytest.raises(ConstructionError):
        Alignment("bad", names, columns, "dna")


def test_construction_error_hierarchy():
    with pytest.raises(ValueError):
        Alignment("bad", ["a"], ["AA"], "dna")
    with pytest.raises(AlignmentError):
        Alignment("bad", ["a"], ["AA"], "dna")


def test_construct_copies_input():
    data = numpy.array([[65, 67], [71, 84]], dtype=numpy.uint8)
    aln = Alignment("x", ["a", "b"], data, "dna")
    data[0, 0] = 84
    assert row_strs(aln) == ["AG", "CT"]


def test_protocols(example_aln):
    assert isinstance(example_aln, SupportsAligned)
    seq = Seq("s", "ACG", DNA)
    assert isinstance(seq, SupportsSequence)
    assert not isinstance(seq, SupportsAligned)
    assert isinstance(example_aln.row(0), SupportsSequence)


def test_row_out_of_range(example_aln):
    for index in (-1, 3):
        with pytest.raises(IndexError):
            example_aln.row(index)


def test_column(example_aln):
    got = example_aln.column(3)
    assert DNA.decode(got) == "CGA"
    # a copy
    got[:] = ord("T")
    assert DNA.decode(example_aln.column(3)) == "CGA"
    with pytest.raises(IndexError):
        example_aln.column(19)


def test_column_ql(example_aln):
    got = example_aln.column_ql(8)
    assert got.dtype == QLETTER_DTYPE
    assert DNA.decode(got["l"]) == "TCG"
    assert (got["q"] == DEFAULT_QPHRED).all()


def test_append_columns(small_aln):
    small_aln.append_columns("ACG", ["T", "T", "T"])
    assert len(small_aln) == 6
    assert row_strs(small_aln) == ["ACGTAT", "ACCTCT", "AGGTGT"]


def test_append_columns_invalid_unchanged(small_aln):
    with pytest.raises(ShapeError):
        small_aln.append_columns("ACG", "AC")
    assert len(small_aln) == 4
    assert row_strs(small_aln) == ["ACGT", "ACCT", "AGGT"]


def test_append_each(small_aln):
    small_aln.append_each(["A", "ACG", ""])
    assert len(small_aln) == 7
    assert row_strs(small_aln) == ["ACGTA--", "ACCTACG", "AGGT---"]


def test_append_each_wrong_rows(small_aln):
    with pytest.raises(ShapeError):
        small_aln.append_each(["A", "C"])


def test_add_sequences(small_aln):
    small_aln.add(
        Seq("inside", "GG", DNA, offset=1),
        Seq("overhang", "TTTTTT", DNA, offset=-1),
    )
    assert small_aln.rows == 5
    assert len(small_aln) == 4
    assert small_aln.names[3:] == ("inside", "overhang")
    assert row_strs(small_aln)[3:] == ["-GG-", "TTTT"]


def test_add_alignment(small_aln):
    other = make_aligned({"x": "AC", "y": "GT"}, offset=2)
    small_aln.add(other)
    assert small_aln.names[3:] == ("x", "y")
    assert row_strs(small_aln)[3:] == ["--AC", "--GT"]


def test_add_row_view(small_aln):
    other = make_aligned({"z": "TTTT"})
    small_aln.add(other.row(0))
    assert row_strs(small_aln)[3] == "TTTT"
    # annotations are not shared
    small_aln.row(3).set_offset(2)
    assert other.row(0).start == 0


def test_add_invalid_unchanged(small_aln):
    with pytest.raises(TypeError):
        small_aln.add(Seq("good", "AAAA", DNA), "not a sequence")
    assert small_aln.rows == 3


def test_add_qseq(example_aln, example_qseq):
    example_aln.add(example_qseq)
    assert example_aln.rows == 4
    assert example_aln.names[3] == "example DNA"
    assert str(example_aln.row(3)) == "acgCtg-------------"


def test_rc(example_aln, example_qseq):
    example_aln.add(example_qseq)
    example_aln.rc()
    assert row_strs(example_aln) == [
        "ACGTGCACCAAGTCAGCGT",
        "ATGCGCGCCAGGTCACCGT",
        "ATGAGCGCCACGTCATCGT",
        "-------------caGcgt",
    ]
    assert example_aln.strand is Strand.REVERSE
    # row strands are untouched
    assert example_aln.row(0).strand is Strand.FORWARD


def test_rc_protein_unchanged():
    aln = make_aligned(["ACDE", "KLMN"], moltype=PROTEIN)
    with pytest.raises(UnsupportedCapability):
        aln.rc()
    assert row_strs(aln) == ["ACDE", "KLMN"]


def test_reverse(small_aln):
    small_aln.reverse()
    assert row_strs(small_aln) == ["TGCA", "TCCA", "TGGA"]
    assert small_aln.strand is Strand.NONE


def test_consensus(example_aln):
    got = example_aln.consensus()
    assert isinstance(got, QSeq)
    assert got.name == "Consensus:example alignment"
    assert str(got) == "ACGNTGACNTGGCGCNCAT"
    assert str(example_aln) == "ACGNTGACNTGGCGCNCAT"
    assert got.at(3) == QLetter("N", 0)
    assert got.at(0).q == 254


def test_consensus_offset(example_columns):
    aln = Alignment("x", [], example_columns, "dna", offset=10)
    got = aln.consensus()
    assert got.start == 10
    assert got.at(10).letter == "A"


def test_copy_independent(example_aln):
    n = example_aln.copy()
    n.row(2).set(3, QLetter("t"))
    assert str(n.row(2)) == "ACGtTGACGTGGCGCTCAT"
    assert str(example_aln.row(2)) == EXAMPLE_ROWS[2]
    n.row(0).set_offset(5)
    assert example_aln.row(0).start == 0
    assert n.get_slice() is not example_aln.get_slice()


def test_get_slice_shares_storage(example_aln):
    data = example_aln.get_slice()
    assert data.shape == (19, 3)
    assert data is example_aln.get_slice()


def test_set_slice(example_aln):
    data = example_aln.get_slice()[::2].copy()
    example_aln.set_slice(data)
    assert len(example_aln) == 10
    assert str(example_aln.row(0)) == EXAMPLE_ROWS[0][::2]


@pytest.mark.parametrize(
    "data,error",
    (
        (numpy.zeros((4, 2), dtype=numpy.uint8), ShapeError),
        (numpy.zeros((4, 3), dtype=numpy.int64), UnsupportedCapability),
        (numpy.zeros(4, dtype=numpy.uint8), UnsupportedCapability),
        ([[65, 65, 65]], UnsupportedCapability),
    ),
)
def test_set_slice_invalid(example_aln, data, error):
    with pytest.raises(error):
        example_aln.set_slice(data)
    assert len(example_aln) == 19


def test_sub_annotations_alias_rows(small_aln):
    small_aln.sub_annotations[1].offset = 3
    assert small_aln.row(1).start == 3
    copied = small_aln.copy_annotations()
    copied[1].offset = 0
    assert small_aln.row(1).start == 3


def test_make_aligned():
    aln = make_aligned(["ACG", "ATG"], name="demo")
    assert aln.names == ("demo:0", "demo:1")
    assert aln.moltype is DNA
    with pytest.raises(ConstructionError):
        make_aligned({"a": "ACG", "b": "AT"})


def test_repr(small_aln):
    assert repr(small_aln) == "Alignment(name='small', rows=3, len=4, moltype='dna')"


def test_logging(small_aln, caplog):
    caplog.set_level(logging.DEBUG, logger="alignstore")
    small_aln.append_columns("AAA")
    small_aln.add(Seq("s", "A", DNA))
    assert "appended 1 columns" in caplog.text
    assert "added 1 rows" in caplog.text


class _AlignedBlock:
    """a minimal aligned input with independently set rows and annotations"""

    def __init__(self, columns, names, rows):
        self._columns = [DNA.encode(c) for c in columns]
        self._names = names
        self.rows = rows
        self.start = 0
        self.end = len(columns)

    def column(self, pos, fill=False):
        return self._columns[pos].copy()

    def column_ql(self, pos, fill=False):
        result = numpy.empty(len(self._columns[pos]), dtype=QLETTER_DTYPE)
        result["l"] = self._columns[pos]
        result["q"] = DEFAULT_QPHRED
        return result

    def copy_annotations(self):
        return [SubAnnotation(name=n) for n in self._names]


@pytest.mark.parametrize(
    "block",
    (
        # fewer annotations than rows
        _AlignedBlock(["AC", "GT"], ["x"], 2),
        # a column wider than rows
        _AlignedBlock(["AC", "GTA"], ["x", "y"], 2),
    ),
)
def test_add_aligned_shape_mismatch(small_aln, block):
    assert isinstance(block, SupportsAligned)
    with pytest.raises(ShapeError):
        small_aln.add(block)
    assert small_aln.rows == 3


def test_add_all_or_nothing(small_aln):
    good = make_aligned({"x": "AAAA"})
    bad = _AlignedBlock(["AC", "GTA"], ["y", "z"], 2)
    with pytest.raises(ShapeError):
        small_aln.add(Seq("s", "CCCC", DNA), good, bad)
    assert small_aln.rows == 3
    assert small_aln.names == ("a", "b", "c")
    assert row_strs(small_aln) == ["ACGT", "ACCT", "AGGT"]


def test_rc_twice_restores(example_aln):
    expect = example_aln.get_slice().copy()
    example_aln.rc()
    example_aln.rc()
    numpy.testing.assert_array_equal(example_aln.get_slice(), expect)
    assert example_aln.strand is Strand.FORWARD


def test_row_rc_twice_restores(example_aln):
    expect = example_aln.get_slice().copy()
    row = example_aln.row(1)
    row.rc()
    row.rc()
    numpy.testing.assert_array_equal(example_aln.get_slice(), expect)
    assert row.strand is Strand.FORWARD
