"""single row sequences

These are the plain sequences that can be merged into an alignment, and the
type returned when a consensus or a detached copy of a row is requested.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import numpy
import numpy.typing as npt

from alignstore._config import get_quality_defaults
from alignstore.core.annotation import Strand, SubAnnotation, Topology
from alignstore.core.moltype import MolType
from alignstore.core.quality import (
    DEFAULT_QPHRED,
    QLETTER_DTYPE,
    Encoding,
    QLetter,
    QualityFilter,
    prob_e,
)

NumpyIntArrayType = npt.NDArray[numpy.integer]


def qletters_to_array(
    qletters: Iterable[QLetter | tuple[str, int]] | numpy.ndarray,
) -> numpy.ndarray:
    """converts (letter, quality) pairs into a QLETTER_DTYPE array"""
    if isinstance(qletters, numpy.ndarray):
        if qletters.dtype != QLETTER_DTYPE:
            msg = f"expected dtype {QLETTER_DTYPE}, not {qletters.dtype}"
            raise TypeError(msg)
        return qletters.copy()

    return numpy.array(
        [(ord(letter), q) for letter, q in qletters], dtype=QLETTER_DTYPE
    )


class _LinearSeq:
    __slots__ = (
        "_data",
        "description",
        "moltype",
        "name",
        "offset",
        "strand",
        "topology",
    )

    def __init__(
        self,
        name: str,
        data: numpy.ndarray,
        moltype: MolType,
        *,
        offset: int = 0,
        strand: Strand = Strand.FORWARD,
        topology: Topology = Topology.LINEAR,
        description: str | None = None,
    ) -> None:
        self.name = name
        self._data = data
        self.moltype = moltype
        self.offset = offset
        self.strand = strand
        self.topology = topology
        self.description = description

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        seq = str(self)
        if len(seq) > 10:
            seq = f"{seq[:10]}... {len(self)}"
        return f"{self.__class__.__name__}({self.name!r}, {seq!r})"

    @property
    def start(self) -> int:
        """start position in global coordinates"""
        return self.offset

    @property
    def end(self) -> int:
        """end position in global coordinates"""
        return self.offset + len(self)

    def _index(self, pos: int) -> int:
        index = pos - self.offset
        if not 0 <= index < len(self._data):
            msg = f"position {pos} outside [{self.start}, {self.end})"
            raise IndexError(msg)
        return index

    def _init_kwargs(self) -> dict[str, Any]:
        return {
            "offset": self.offset,
            "strand": self.strand,
            "topology": self.topology,
            "description": self.description,
        }

    def copy_annotation(self) -> SubAnnotation:
        """the metadata of this sequence as a row annotation"""
        return SubAnnotation(
            name=self.name,
            offset=self.offset,
            strand=self.strand,
            topology=self.topology,
            description=self.description,
        )


class Seq(_LinearSeq):
    """a sequence of letters without quality scores"""

    __slots__ = ()

    def __init__(
        self,
        name: str,
        letters: str | bytes | Iterable[str] | NumpyIntArrayType,
        moltype: MolType,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, moltype.encode(letters), moltype, **kwargs)

    def __str__(self) -> str:
        return self.moltype.decode(self._data)

    @property
    def letters(self) -> NumpyIntArrayType:
        """the ASCII codes of the letters"""
        return self._data

    def at(self, pos: int) -> QLetter:
        """the letter at global position pos with the default quality"""
        return QLetter(chr(self._data[self._index(pos)]), DEFAULT_QPHRED)

    def set(self, pos: int, value: QLetter | str) -> None:
        letter = value if isinstance(value, str) else value.letter
        self._data[self._index(pos)] = ord(letter)

    def copy(self) -> Seq:
        return self.__class__(
            self.name, self._data.copy(), self.moltype, **self._init_kwargs()
        )


class QSeq(_LinearSeq):
    """a sequence of letters with Phred quality scores

    Notes
    -----
    The string form reports letters with a quality below threshold
    via the qfilter function.
    """

    __slots__ = ("encoding", "qfilter", "threshold")

    def __init__(
        self,
        name: str,
        qletters: Iterable[QLetter | tuple[str, int]] | numpy.ndarray,
        moltype: MolType,
        *,
        encoding: Encoding | None = None,
        threshold: int | None = None,
        qfilter: QualityFilter | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, qletters_to_array(qletters), moltype, **kwargs)
        defaults = get_quality_defaults()
        self.encoding = defaults.encoding if encoding is None else encoding
        self.threshold = defaults.threshold if threshold is None else threshold
        self.qfilter = defaults.qfilter if qfilter is None else qfilter

    @classmethod
    def from_letters(
        cls,
        name: str,
        letters: str,
        qualities: Iterable[int],
        moltype: MolType,
        **kwargs: Any,
    ) -> QSeq:
        """construct from a string of letters and a matching series of qualities"""
        qualities = list(qualities)
        if len(letters) != len(qualities):
            msg = f"{len(letters)=} != {len(qualities)=}"
            raise ValueError(msg)
        return cls(name, list(zip(letters, qualities)), moltype, **kwargs)

    def __str__(self) -> str:
        letters = []
        for code, q in self._data.tolist():
            ql = QLetter(chr(code), q)
            if q < self.threshold:
                letters.append(self.qfilter(self.moltype, self.threshold, ql))
            else:
                letters.append(ql.letter)
        return "".join(letters)

    @property
    def letters(self) -> NumpyIntArrayType:
        """the ASCII codes of the letters"""
        return self._data["l"]

    @property
    def qualities(self) -> NumpyIntArrayType:
        """the Phred scores"""
        return self._data["q"]

    def at(self, pos: int) -> QLetter:
        code, q = self._data[self._index(pos)].item()
        return QLetter(chr(code), q)

    def set(self, pos: int, value: QLetter) -> None:
        self._data[self._index(pos)] = (ord(value.letter), value.q)

    def e_at(self, pos: int) -> float:
        """probability of a sequencing error at pos"""
        return prob_e(self.at(pos).q)

    def copy(self) -> QSeq:
        return self.__class__(
            self.name,
            self._data.copy(),
            self.moltype,
            encoding=self.encoding,
            threshold=self.threshold,
            qfilter=self.qfilter,
            **self._init_kwargs(),
        )
