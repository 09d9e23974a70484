"""per-row metadata for alignments"""

from __future__ import annotations

import dataclasses
import enum


class Strand(enum.IntEnum):
    """orientation of a sequence or an alignment row"""

    REVERSE = -1
    NONE = 0
    FORWARD = 1

    def flipped(self) -> Strand:
        """the opposite orientation, NONE is its own opposite"""
        return Strand(-self.value)


class Topology(enum.Enum):
    LINEAR = "linear"
    CIRCULAR = "circular"


@dataclasses.dataclass
class SubAnnotation:
    """identity and coordinates of a single row of an alignment

    Notes
    -----
    offset places the row's first column in the row's own coordinate frame,
    which is independent of the offset of the owning alignment.
    """

    name: str
    offset: int = 0
    strand: Strand = Strand.FORWARD
    topology: Topology = Topology.LINEAR
    description: str | None = None

    def copy(self) -> SubAnnotation:
        return dataclasses.replace(self)
