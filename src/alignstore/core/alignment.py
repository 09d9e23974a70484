"""column oriented storage of aligned sequences

An alignment holds its letters as a 2D numpy array of shape
``(len(aln), aln.rows)``. Axis 0 is the alignment column, axis 1 the row.
``Alignment`` stores bare letter codes, ``QAlignment`` stores letters with
their Phred scores. Rows are exposed through views that read and write the
same array.
"""

from __future__ import annotations

import copy
import logging
import typing
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import numpy
import numpy.typing as npt
from typing_extensions import Self

from alignstore._config import get_quality_defaults
from alignstore.core.annotation import Strand, SubAnnotation, Topology
from alignstore.core.consensus import majority_consensus
from alignstore.core.errors import (
    ConstructionError,
    ShapeError,
    UnsupportedCapability,
)
from alignstore.core.moltype import MolType, get_moltype
from alignstore.core.quality import (
    DEFAULT_QPHRED,
    QLETTER_DTYPE,
    Encoding,
    QLetter,
    QualityFilter,
)
from alignstore.core.row import QRow, Row
from alignstore.core.sequence import QSeq, qletters_to_array

logger = logging.getLogger(__name__)

NumpyIntArrayType = npt.NDArray[numpy.integer]


@typing.runtime_checkable
class SupportsSequence(typing.Protocol):  # pragma: no cover
    """a single row sequence that can be merged into an alignment"""

    @property
    def start(self) -> int: ...

    @property
    def end(self) -> int: ...

    def at(self, pos: int) -> QLetter: ...

    def copy_annotation(self) -> SubAnnotation: ...


@typing.runtime_checkable
class SupportsAligned(typing.Protocol):  # pragma: no cover
    """multiple rows that contribute whole columns to an alignment"""

    @property
    def start(self) -> int: ...

    @property
    def end(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def column(self, pos: int, fill: bool = False) -> NumpyIntArrayType: ...

    def column_ql(self, pos: int, fill: bool = False) -> numpy.ndarray: ...

    def copy_annotations(self) -> list[SubAnnotation]: ...


ConsensusFunc = Callable[[SupportsAligned, MolType, int, bool], QLetter]


def _letter_code(value: str | int | QLetter | tuple[str, int]) -> int:
    if isinstance(value, (int, numpy.integer)):
        return int(value)
    if isinstance(value, str):
        return ord(value)
    return ord(value[0])


class _AlignmentBase:
    """shared logic of the plain and quality alignments

    Subclasses define the cell dtype and how external letters become cells.
    """

    _dtype: numpy.dtype
    _row_class: type[Row] | type[QRow]

    def __init__(
        self,
        name: str,
        row_names: Sequence[str] | None,
        columns: Sequence[Any] | numpy.ndarray,
        moltype: MolType | str,
        consensus: ConsensusFunc | None = None,
        *,
        offset: int = 0,
        strand: Strand = Strand.FORWARD,
        topology: Topology = Topology.LINEAR,
    ) -> None:
        """
        Parameters
        ----------
        name
            identifier of the alignment
        row_names
            identifier of each row. If empty, names of the form
            ``<name>:<row index>`` are generated.
        columns
            the columns of the alignment, each holding one letter per row.
            A 2D array is interpreted as axis 0 columns, axis 1 rows. The
            data are copied.
        moltype
            the molecular type of the letters
        consensus
            function applied to each column by ``consensus()``, defaults
            to ``majority_consensus``
        offset
            start of the alignment in global coordinates
        """
        row_names = list(row_names or [])
        self.name = name
        self.moltype = get_moltype(moltype)
        self.offset = offset
        self.strand = strand
        self.topology = topology
        self.consensus_func = consensus or majority_consensus
        self._store = self._make_store(columns, len(row_names))

        num_rows = self._store.shape[1]
        if row_names:
            self._annotations = [SubAnnotation(name=n) for n in row_names]
        else:
            self._annotations = [
                SubAnnotation(name=f"{name}:{i}") for i in range(num_rows)
            ]

    def _make_store(
        self, columns: Sequence[Any] | numpy.ndarray, num_names: int
    ) -> numpy.ndarray:
        # iterating a 2D array yields its columns
        cols = [self._as_cells(c) for c in columns]
        if not cols:
            # a (0, n) array still defines n rows
            width = 0
            if isinstance(columns, numpy.ndarray) and columns.ndim == 2:
                width = columns.shape[1]
            if num_names and num_names != width:
                msg = (
                    "alignment: id/row count mismatch, "
                    f"{num_names} ids for {width} rows"
                )
                raise ConstructionError(msg)
            return numpy.empty((0, width), dtype=self._dtype)

        num_rows = len(cols[0])
        if num_names and num_names != num_rows:
            msg = (
                f"alignment: id/row count mismatch, {num_names} ids for {num_rows} rows"
            )
            raise ConstructionError(msg)

        for i, col in enumerate(cols):
            if len(col) != num_rows:
                msg = f"alignment: column {i} has {len(col)} rows, expected {num_rows}"
                raise ConstructionError(msg)

        return numpy.stack(cols)

    # cell handling, specialised by subclasses
    def _as_cells(self, values: Any) -> numpy.ndarray:
        raise NotImplementedError

    def _gap_cell(self) -> Any:
        raise NotImplementedError

    def _cell_from_qletter(self, qletter: QLetter) -> Any:
        raise NotImplementedError

    def _external_column(self, other: SupportsAligned, index: int) -> numpy.ndarray:
        raise NotImplementedError

    def _complemented(
        self, cells: numpy.ndarray, table: NumpyIntArrayType
    ) -> numpy.ndarray:
        raise NotImplementedError

    def __len__(self) -> int:
        return self._store.shape[0]

    def __str__(self) -> str:
        return str(self.consensus())

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, rows={self.rows}, "
            f"len={len(self)}, moltype={self.moltype.name!r})"
        )

    @property
    def rows(self) -> int:
        """number of rows in the alignment"""
        return self._store.shape[1]

    @property
    def start(self) -> int:
        """start of the alignment in global coordinates"""
        return self.offset

    @property
    def end(self) -> int:
        """end of the alignment in global coordinates"""
        return self.offset + len(self)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self._annotations)

    @property
    def sub_annotations(self) -> tuple[SubAnnotation, ...]:
        """the annotation of each row, mutating these alters the rows"""
        return tuple(self._annotations)

    def copy_annotations(self) -> list[SubAnnotation]:
        """independent copies of the row annotations"""
        return [a.copy() for a in self._annotations]

    def copy(self) -> Self:
        """returns a deep copy, no data are shared with self"""
        new = copy.copy(self)
        new._store = self._store.copy()
        new._annotations = self.copy_annotations()
        return new

    def get_slice(self) -> numpy.ndarray:
        """the underlying storage array

        Notes
        -----
        This is not a copy. It is provided for editors that reshape the
        alignment's columns and return them via ``set_slice()``.
        """
        return self._store

    def set_slice(self, data: numpy.ndarray) -> None:
        """replaces the underlying storage array

        Parameters
        ----------
        data
            2D array of the same dtype as ``get_slice()`` with one
            column per row of the alignment
        """
        if not isinstance(data, numpy.ndarray) or data.ndim != 2:
            msg = f"expected a 2D numpy array, not {type(data).__name__}"
            raise UnsupportedCapability(msg)
        if data.dtype != self._dtype:
            msg = f"expected dtype {self._dtype}, not {data.dtype}"
            raise UnsupportedCapability(msg)
        if self._annotations and data.shape[1] != len(self._annotations):
            msg = (
                f"data has {data.shape[1]} rows, "
                f"alignment has {len(self._annotations)}"
            )
            raise ShapeError(msg)
        self._store = data

    def row(self, index: int) -> Row | QRow:
        """returns a view of row index

        Notes
        -----
        The view reads and writes this alignment's storage. Use the
        view's ``copy()`` method for an independent sequence.
        """
        if not 0 <= index < self.rows:
            msg = f"row {index} out of range for alignment with {self.rows} rows"
            raise IndexError(msg)
        return self._row_class(self, index)

    def _check_pos(self, pos: int) -> None:
        if not 0 <= pos < len(self):
            msg = f"column {pos} out of range for alignment of length {len(self)}"
            raise IndexError(msg)

    def append_columns(self, *columns: Any) -> None:
        """appends columns, each must hold one letter per row

        Raises
        ------
        ShapeError
            if any column length differs from ``rows``, in which case the
            alignment is unchanged
        """
        cells = [self._as_cells(c) for c in columns]
        for i, col in enumerate(cells):
            if len(col) != self.rows:
                msg = (
                    f"alignment: column {i} does not match rows: "
                    f"{len(col)} != {self.rows}"
                )
                raise ShapeError(msg)

        if not cells:
            return

        block = numpy.empty((len(cells), self.rows), dtype=self._dtype)
        for i, col in enumerate(cells):
            block[i] = col
        self._store = numpy.concatenate((self._store, block))
        logger.debug("appended %d columns to %r", len(cells), self.name)

    def append_each(self, row_seqs: Sequence[Any]) -> None:
        """appends letters to each row, shorter rows are padded with gaps

        Parameters
        ----------
        row_seqs
            one series of letters per row
        """
        if len(row_seqs) != self.rows:
            msg = (
                "alignment: number of sequences does not match rows: "
                f"{len(row_seqs)} != {self.rows}"
            )
            raise ShapeError(msg)

        cells = [self._as_cells(s) for s in row_seqs]
        num_new = max((len(c) for c in cells), default=0)
        block = numpy.full((num_new, self.rows), self._gap_cell(), dtype=self._dtype)
        for i, row_cells in enumerate(cells):
            block[: len(row_cells), i] = row_cells

        self._store = numpy.concatenate((self._store, block))
        logger.debug("appended %d gap padded columns to %r", num_new, self.name)

    def _aligned_block(
        self, other: SupportsAligned
    ) -> tuple[numpy.ndarray, list[SubAnnotation]]:
        num_rows = other.rows
        annotations = other.copy_annotations()
        if len(annotations) != num_rows:
            msg = f"{len(annotations)} row annotations for {num_rows} rows"
            raise ShapeError(msg)

        block = numpy.full((len(self), num_rows), self._gap_cell(), dtype=self._dtype)
        for index in range(len(self)):
            pos = self.start + index
            if not other.start <= pos < other.end:
                continue
            col = self._external_column(other, pos - other.start)
            if len(col) != num_rows:
                msg = f"column at {pos} has {len(col)} rows, expected {num_rows}"
                raise ShapeError(msg)
            block[index] = col
        return block, annotations

    def _seq_block(
        self, seq: SupportsSequence
    ) -> tuple[numpy.ndarray, list[SubAnnotation]]:
        block = numpy.full((len(self), 1), self._gap_cell(), dtype=self._dtype)
        for index in range(len(self)):
            pos = self.start + index
            if seq.start <= pos < seq.end:
                block[index, 0] = self._cell_from_qletter(seq.at(pos))
        return block, [seq.copy_annotation()]

    def add(self, *seqs: SupportsAligned | SupportsSequence) -> None:
        """adds sequences as new rows over the current columns

        Parameters
        ----------
        seqs
            alignments or single sequences. Positions are in global
            coordinates, parts of a sequence outside ``[start, end)`` are
            dropped and columns it does not cover are filled with gaps.

        Notes
        -----
        The alignment length is unchanged. All inputs are checked before
        the alignment is modified.
        """
        blocks = []
        annotations = []
        for seq in seqs:
            if isinstance(seq, SupportsAligned):
                block, annots = self._aligned_block(seq)
            elif isinstance(seq, SupportsSequence):
                block, annots = self._seq_block(seq)
            else:
                msg = f"cannot add {type(seq).__name__} to an alignment"
                raise TypeError(msg)
            blocks.append(block)
            annotations.extend(annots)

        if not blocks:
            return

        self._store = numpy.concatenate([self._store, *blocks], axis=1)
        self._annotations.extend(annotations)
        logger.debug("added %d rows to %r", len(annotations), self.name)

    def rc(self) -> None:
        """reverse complements the alignment in place

        Notes
        -----
        The strand of each row is unchanged.

        Raises
        ------
        UnsupportedCapability
            if the moltype cannot be complemented
        """
        table = self.moltype.get_complement_table()
        self._store[:] = self._complemented(self._store[::-1], table)
        self.strand = self.strand.flipped()

    def reverse(self) -> None:
        """reverses the order of columns in place without complementing"""
        self._store[:] = self._store[::-1].copy()
        self.strand = Strand.NONE

    def column(self, pos: int, fill: bool = False) -> NumpyIntArrayType:
        raise NotImplementedError

    def column_ql(self, pos: int, fill: bool = False) -> numpy.ndarray:
        raise NotImplementedError

    def _consensus_kwargs(self) -> dict[str, Any]:
        return {}

    def consensus(self) -> QSeq:
        """applies the consensus function to every column"""
        qletters = [
            self.consensus_func(self, self.moltype, i, False) for i in range(len(self))
        ]
        return QSeq(
            f"Consensus:{self.name}",
            qletters,
            self.moltype,
            offset=self.offset,
            strand=self.strand,
            topology=self.topology,
            **self._consensus_kwargs(),
        )


class Alignment(_AlignmentBase):
    """an alignment of letters without quality scores

    Examples
    --------
    >>> aln = Alignment("demo", ["a", "b"], ["AA", "CT", "GG"], "dna")
    >>> aln.rows, len(aln)
    (2, 3)
    >>> str(aln.row(1))
    'ATG'
    """

    _dtype = numpy.dtype(numpy.uint8)
    _row_class = Row

    def _as_cells(self, values: Any) -> NumpyIntArrayType:
        if isinstance(values, numpy.ndarray):
            if values.dtype == QLETTER_DTYPE:
                return values["l"].copy()
            return values.astype(numpy.uint8)
        if isinstance(values, (str, bytes, bytearray)):
            return self.moltype.encode(values)
        return numpy.array([_letter_code(v) for v in values], dtype=numpy.uint8)

    def _gap_cell(self) -> int:
        return self.moltype.gap_code

    def _cell_from_qletter(self, qletter: QLetter) -> int:
        return ord(qletter.letter)

    def _external_column(self, other: SupportsAligned, index: int) -> NumpyIntArrayType:
        return numpy.asarray(other.column(index, True), dtype=numpy.uint8)

    def _complemented(
        self, cells: numpy.ndarray, table: NumpyIntArrayType
    ) -> numpy.ndarray:
        return table[cells]

    def column(self, pos: int, fill: bool = False) -> NumpyIntArrayType:
        """the letter codes at column index pos

        Notes
        -----
        fill is accepted for compatibility with sparse alignments, all
        rows of this alignment cover every column.
        """
        self._check_pos(pos)
        return self._store[pos].copy()

    def column_ql(self, pos: int, fill: bool = False) -> numpy.ndarray:
        """the letters at column index pos with the default quality"""
        self._check_pos(pos)
        result = numpy.empty(self.rows, dtype=QLETTER_DTYPE)
        result["l"] = self._store[pos]
        result["q"] = DEFAULT_QPHRED
        return result


class QAlignment(_AlignmentBase):
    """an alignment of letters with Phred quality scores

    Notes
    -----
    ``column()`` reports letters with a quality below ``threshold`` via
    ``qfilter``. ``column_ql()`` returns the stored letters and scores.
    """

    _dtype = QLETTER_DTYPE
    _row_class = QRow

    def __init__(
        self,
        name: str,
        row_names: Sequence[str] | None,
        columns: Sequence[Any] | numpy.ndarray,
        moltype: MolType | str,
        consensus: ConsensusFunc | None = None,
        *,
        encoding: Encoding | None = None,
        threshold: int | None = None,
        qfilter: QualityFilter | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, row_names, columns, moltype, consensus, **kwargs)
        defaults = get_quality_defaults()
        self.encoding = defaults.encoding if encoding is None else encoding
        self.threshold = defaults.threshold if threshold is None else threshold
        self.qfilter = defaults.qfilter if qfilter is None else qfilter

    def _as_cells(self, values: Any) -> numpy.ndarray:
        if isinstance(values, (str, bytes)):
            msg = "columns of a QAlignment require (letter, quality) pairs"
            raise TypeError(msg)
        return qletters_to_array(values)

    def _gap_cell(self) -> numpy.ndarray:
        return numpy.array((self.moltype.gap_code, 0), dtype=QLETTER_DTYPE)

    def _cell_from_qletter(self, qletter: QLetter) -> tuple[int, int]:
        return (ord(qletter.letter), qletter.q)

    def _external_column(self, other: SupportsAligned, index: int) -> numpy.ndarray:
        return qletters_to_array(other.column_ql(index, True))

    def _complemented(
        self, cells: numpy.ndarray, table: NumpyIntArrayType
    ) -> numpy.ndarray:
        result = cells.copy()
        result["l"] = table[result["l"]]
        return result

    def column(self, pos: int, fill: bool = False) -> NumpyIntArrayType:
        """the letter codes at column index pos, filtered by quality"""
        self._check_pos(pos)
        cells = self._store[pos]
        letters = cells["l"].copy()
        for i in numpy.flatnonzero(cells["q"] < self.threshold):
            qletter = QLetter(chr(cells["l"][i]), int(cells["q"][i]))
            letters[i] = ord(self.qfilter(self.moltype, self.threshold, qletter))
        return letters

    def column_ql(self, pos: int, fill: bool = False) -> numpy.ndarray:
        """the stored letters and qualities at column index pos"""
        self._check_pos(pos)
        return self._store[pos].copy()

    def _consensus_kwargs(self) -> dict[str, Any]:
        return {
            "encoding": self.encoding,
            "threshold": self.threshold,
            "qfilter": self.qfilter,
        }


def _rows_to_columns(
    rows: Sequence[numpy.ndarray], dtype: numpy.dtype
) -> numpy.ndarray:
    lengths = {len(r) for r in rows}
    if len(lengths) > 1:
        msg = f"rows must be the same length, not {sorted(lengths)}"
        raise ConstructionError(msg)
    if not rows:
        return numpy.empty((0, 0), dtype=dtype)
    return numpy.stack(rows, axis=1)


def make_aligned(
    data: Mapping[str, str] | Iterable[str],
    moltype: MolType | str = "dna",
    name: str = "alignment",
    **kwargs: Any,
) -> Alignment:
    """makes an Alignment from aligned rows

    Parameters
    ----------
    data
        {row name: letters, ...} or a series of letters. Rows must all be
        the same length.
    moltype
        the molecular type
    name
        identifier of the alignment
    kwargs
        passed to the Alignment constructor

    Examples
    --------
    >>> aln = make_aligned({"s1": "ACG", "s2": "ATG"})
    >>> aln.names
    ('s1', 's2')
    """
    moltype = get_moltype(moltype)
    if isinstance(data, Mapping):
        row_names = list(data)
        rows = [moltype.encode(s) for s in data.values()]
    else:
        row_names = []
        rows = [moltype.encode(s) for s in data]
    columns = _rows_to_columns(rows, Alignment._dtype)
    return Alignment(name, row_names, columns, moltype, **kwargs)


def make_qaligned(
    data: Mapping[str, tuple[str, Iterable[int]]],
    moltype: MolType | str = "dna",
    name: str = "alignment",
    **kwargs: Any,
) -> QAlignment:
    """makes a QAlignment from aligned rows

    Parameters
    ----------
    data
        {row name: (letters, qualities), ...}. Rows must all be the
        same length.
    moltype
        the molecular type
    name
        identifier of the alignment
    kwargs
        passed to the QAlignment constructor
    """
    moltype = get_moltype(moltype)
    rows = []
    for row_name, (letters, quals) in data.items():
        quals = list(quals)
        if len(letters) != len(quals):
            msg = f"{row_name!r} has {len(letters)} letters and {len(quals)} qualities"
            raise ConstructionError(msg)
        rows.append(qletters_to_array(zip(letters, quals)))
    columns = _rows_to_columns(rows, QAlignment._dtype)
    return QAlignment(name, list(data), columns, moltype, **kwargs)
