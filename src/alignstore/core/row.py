"""views of a single alignment row

A row view holds a reference to its alignment and a row index. It has no
storage of its own, all reads and writes go to the alignment's columns.
Positions are in the row's own coordinates, defined by the offset of the
row's annotation rather than the alignment offset.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NoReturn

import numpy

from alignstore.core.annotation import Strand, SubAnnotation, Topology
from alignstore.core.errors import UnsupportedOperation
from alignstore.core.quality import (
    DEFAULT_QPHRED,
    Encoding,
    QLetter,
    encode_qphred,
    ephred,
    prob_e,
)
from alignstore.core.sequence import QSeq, Seq

if TYPE_CHECKING:  # pragma: no cover
    from alignstore.core.alignment import Alignment, QAlignment, _AlignmentBase
    from alignstore.core.moltype import MolType


class _RowBase:
    __slots__ = ("_aln", "_row")

    def __init__(self, aln: _AlignmentBase, row: int) -> None:
        self._aln = aln
        self._row = row

    def __len__(self) -> int:
        return len(self._aln)

    def __str__(self) -> str:
        return str(self.copy())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(row={self._row}, name={self.name!r})"

    @property
    def alignment(self) -> _AlignmentBase:
        return self._aln

    @property
    def index(self) -> int:
        """index of the row in the alignment"""
        return self._row

    @property
    def _annotation(self) -> SubAnnotation:
        return self._aln.sub_annotations[self._row]

    @property
    def _cells(self) -> numpy.ndarray:
        # a view into the alignment storage
        return self._aln.get_slice()[:, self._row]

    @property
    def moltype(self) -> MolType:
        return self._aln.moltype

    @property
    def name(self) -> str:
        return self._annotation.name

    @property
    def description(self) -> str | None:
        return self._annotation.description

    @property
    def start(self) -> int:
        """start of the row in its own coordinates"""
        return self._annotation.offset

    @property
    def end(self) -> int:
        return self.start + len(self)

    def set_offset(self, offset: int) -> None:
        self._annotation.offset = offset

    @property
    def strand(self) -> Strand:
        return self._annotation.strand

    @strand.setter
    def strand(self, strand: Strand) -> None:
        self._annotation.strand = strand

    @property
    def topology(self) -> Topology:
        return self._annotation.topology

    @topology.setter
    def topology(self, topology: Topology) -> None:
        self._annotation.topology = topology

    def copy_annotation(self) -> SubAnnotation:
        return self._annotation.copy()

    def _index(self, pos: int) -> int:
        index = pos - self.start
        if not 0 <= index < len(self):
            msg = f"position {pos} outside row [{self.start}, {self.end})"
            raise IndexError(msg)
        return index

    def _seq_kwargs(self) -> dict[str, Any]:
        annot = self._annotation
        return {
            "offset": annot.offset,
            "strand": annot.strand,
            "topology": annot.topology,
            "description": annot.description,
        }

    def rc(self) -> None:
        """reverse complements this row in the alignment, other rows are
        unchanged"""
        table = self.moltype.get_complement_table()
        cells = self._cells
        cells[:] = self._aln._complemented(cells[::-1], table)
        self.strand = self.strand.flipped()

    def reverse(self) -> None:
        """reverses this row in the alignment, other rows are unchanged"""
        cells = self._cells
        cells[:] = cells[::-1].copy()
        self.strand = Strand.NONE

    def get_slice(self) -> NoReturn:
        msg = "alignment: cannot get row slice"
        raise UnsupportedOperation(msg)

    def set_slice(self, data: Any) -> NoReturn:
        msg = "alignment: cannot alter row slice"
        raise UnsupportedOperation(msg)


class Row(_RowBase):
    """a row of an Alignment

    Notes
    -----
    Letters are reported with the default quality. Use ``copy()`` to
    obtain a sequence that is detached from the alignment.
    """

    __slots__ = ()

    _aln: Alignment

    def at(self, pos: int) -> QLetter:
        """the letter at pos"""
        return QLetter(chr(self._cells[self._index(pos)]), DEFAULT_QPHRED)

    def set(self, pos: int, value: QLetter | str) -> None:
        """sets the letter at pos, any quality is discarded"""
        letter = value if isinstance(value, str) else value.letter
        self._cells[self._index(pos)] = ord(letter)

    def copy(self) -> Seq:
        return Seq(self.name, self._cells.copy(), self.moltype, **self._seq_kwargs())


class QRow(_RowBase):
    """a row of a QAlignment"""

    __slots__ = ()

    _aln: QAlignment

    def at(self, pos: int) -> QLetter:
        code, q = self._cells[self._index(pos)].item()
        return QLetter(chr(code), q)

    def set(self, pos: int, value: QLetter) -> None:
        self._cells[self._index(pos)] = (ord(value.letter), value.q)

    @property
    def encoding(self) -> Encoding:
        return self._aln.encoding

    @encoding.setter
    def encoding(self, encoding: Encoding) -> None:
        # the encoding is shared by all rows
        self._aln.encoding = encoding

    def set_e(self, pos: int, e: float) -> None:
        """sets the quality at pos from a probability of error"""
        self._cells["q"][self._index(pos)] = ephred(e)

    def e_at(self, pos: int) -> float:
        """probability of error at pos"""
        return prob_e(self.at(pos).q)

    def q_encode(self, pos: int) -> str:
        """the quality at pos as a character in the alignment encoding"""
        return encode_qphred(self.at(pos).q, self.encoding)

    def copy(self) -> QSeq:
        return QSeq(
            self.name,
            self._cells.copy(),
            self.moltype,
            encoding=self._aln.encoding,
            threshold=self._aln.threshold,
            qfilter=self._aln.qfilter,
            **self._seq_kwargs(),
        )
