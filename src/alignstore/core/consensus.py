"""per column consensus functions

A consensus function has the signature ``(aln, moltype, pos, fill)`` and
returns the ``QLetter`` summarising column ``pos`` of ``aln``. Alignments
hold one and apply it to every column in ``consensus()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy

from alignstore.core.quality import QLetter, ephred

if TYPE_CHECKING:  # pragma: no cover
    from alignstore.core.alignment import SupportsAligned
    from alignstore.core.moltype import MolType


def majority_consensus(
    aln: SupportsAligned,
    moltype: MolType,
    pos: int,
    fill: bool = False,
) -> QLetter:
    """the most frequent monomer in a column

    Parameters
    ----------
    aln
        the alignment
    moltype
        defines the valid letters, case is ignored
    pos
        column index
    fill
        passed to ``aln.column()``

    Returns
    -------
    The most frequent monomer with Phred quality reflecting the fraction
    of rows that disagree with it. If two or more monomers share the
    highest count, the moltype ambiguity character with quality 0. If the
    column has no valid letters, the gap character with quality 0.
    """
    column = aln.column(pos, fill)
    indices = moltype.to_indices(column)
    valid = indices[indices >= 0]
    if not len(valid):
        return QLetter(moltype.gap, 0)

    counts = numpy.bincount(valid, minlength=len(moltype))
    best = int(counts.argmax())
    num = int(counts[best])
    if (counts == num).sum() > 1:
        return QLetter(moltype.ambiguous, 0)

    return QLetter(moltype.monomers[best], ephred(1 - num / len(column)))
