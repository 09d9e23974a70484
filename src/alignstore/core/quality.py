"""Phred quality scores, their text encodings and low quality filters"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable
from typing import TYPE_CHECKING, NamedTuple

import numpy

if TYPE_CHECKING:  # pragma: no cover
    from alignstore.core.moltype import MolType

MAX_QPHRED = 254

# quality assigned to letters that carry no score of their own
DEFAULT_QPHRED = 40

QLETTER_DTYPE = numpy.dtype([("l", numpy.uint8), ("q", numpy.uint8)])


class QLetter(NamedTuple):
    """a letter and its Phred quality"""

    letter: str
    q: int = 0


class Encoding(enum.Enum):
    """text encodings of quality scores as (offset, min score, max score)"""

    SANGER = (33, 0, 93)
    SOLEXA = (64, -5, 62)
    ILLUMINA_1_3 = (64, 0, 62)
    ILLUMINA_1_5 = (64, 2, 62)
    ILLUMINA_1_8 = (33, 0, 41)

    @property
    def offset(self) -> int:
        return self.value[0]

    @property
    def min_score(self) -> int:
        return self.value[1]

    @property
    def max_score(self) -> int:
        return self.value[2]


def ephred(p: float) -> int:
    """converts a probability of error into a Phred score

    Examples
    --------
    >>> ephred(0.001)
    30
    >>> ephred(0.0)
    254
    """
    if p <= 0:
        return MAX_QPHRED
    q = round(-10 * math.log10(p))
    return max(0, min(q, MAX_QPHRED))


def prob_e(q: int) -> float:
    """the probability of error for Phred score q"""
    return 10 ** (-q / 10)


def _phred_to_solexa(q: int) -> int:
    if q <= 0:
        return Encoding.SOLEXA.min_score
    return round(10 * math.log10(10 ** (q / 10) - 1))


def _solexa_to_phred(qs: int) -> int:
    return round(10 * math.log10(10 ** (qs / 10) + 1))


def encode_qphred(q: int, encoding: Encoding = Encoding.SANGER) -> str:
    """returns the character representing Phred score q under encoding

    Notes
    -----
    Scores outside the range representable by the encoding are clamped.

    Examples
    --------
    >>> encode_qphred(40)
    'I'
    >>> encode_qphred(40, Encoding.ILLUMINA_1_3)
    'h'
    """
    if encoding is Encoding.SOLEXA:
        q = _phred_to_solexa(q)
    q = max(encoding.min_score, min(q, encoding.max_score))
    return chr(q + encoding.offset)


def decode_qphred(char: str, encoding: Encoding = Encoding.SANGER) -> int:
    """returns the Phred score represented by char under encoding

    Notes
    -----
    Characters outside the range of the encoding are clamped.

    Examples
    --------
    >>> decode_qphred("I")
    40
    >>> decode_qphred("!", Encoding.ILLUMINA_1_3)
    0
    """
    score = ord(char) - encoding.offset
    score = max(encoding.min_score, min(score, encoding.max_score))
    if encoding is Encoding.SOLEXA:
        return _solexa_to_phred(score)
    return score


QualityFilter = Callable[["MolType", int, QLetter], str]


def ambig_filter(moltype: MolType, threshold: int, qletter: QLetter) -> str:
    """low quality letters become the moltype ambiguity character, gaps
    are unchanged"""
    if qletter.q < threshold and qletter.letter != moltype.gap:
        return moltype.ambiguous
    return qletter.letter


def case_filter(moltype: MolType, threshold: int, qletter: QLetter) -> str:
    """low quality letters are lower cased"""
    if qletter.q < threshold:
        return qletter.letter.lower()
    return qletter.letter


def no_filter(moltype: MolType, threshold: int, qletter: QLetter) -> str:
    return qletter.letter
