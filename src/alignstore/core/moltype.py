import dataclasses
import warnings
from collections.abc import Iterable
from string import ascii_letters

import numpy
import numpy.typing as npt

from alignstore.core.errors import UnsupportedCapability

NumpyIntArrayType = npt.NDArray[numpy.integer]

IUPAC_gap = "-"

IUPAC_DNA_chars = "T", "C", "A", "G"
IUPAC_DNA_ambiguities_complements = {
    "A": "T",
    "C": "G",
    "G": "C",
    "T": "A",
    "-": "-",
    "M": "K",
    "K": "M",
    "N": "N",
    "R": "Y",
    "Y": "R",
    "W": "W",
    "S": "S",
    "X": "X",  # not technically an IUPAC ambiguity, but used by repeatmasker
    "V": "B",
    "B": "V",
    "H": "D",
    "D": "H",
    "?": "?",
}

# note change in standard order from DNA
IUPAC_RNA_chars = "U", "C", "A", "G"
IUPAC_RNA_ambiguities_complements = {
    "A": "U",
    "C": "G",
    "G": "C",
    "U": "A",
    "-": "-",
    "M": "K",
    "K": "M",
    "N": "N",
    "R": "Y",
    "Y": "R",
    "W": "W",
    "S": "S",
    "X": "X",
    "V": "B",
    "B": "V",
    "H": "D",
    "D": "H",
    "?": "?",
}

IUPAC_PROTEIN_chars = "ACDEFGHIKLMNPQRSTUVWY"


class MolTypeError(TypeError): ...


def _ascii_codes(chars: str) -> list[int]:
    try:
        return list(chars.encode("ascii"))
    except UnicodeEncodeError as err:
        msg = f"{chars!r} contains non-ASCII characters"
        raise MolTypeError(msg) from err


@dataclasses.dataclass
class MolType:
    """MolType defines the letters an alignment holds and the operations on
    them that depend on the kind of molecule.

    Notes
    -----
    Letters are handled as their ASCII codes. Lower case letters are
    treated as the same monomer as their upper case form.
    Create a moltype using the ``get_moltype()`` function.
    """

    name: str
    monomers: str
    gap: str = IUPAC_gap
    ambiguous: str = "?"
    complements: dataclasses.InitVar[dict[str, str] | None] = None

    _monomer_index: NumpyIntArrayType = dataclasses.field(init=False, repr=False)
    _complement_table: NumpyIntArrayType | None = dataclasses.field(
        init=False, default=None, repr=False
    )

    def __post_init__(self, complements: dict[str, str] | None) -> None:
        if len(self.gap) != 1 or len(self.ambiguous) != 1:
            msg = (
                f"gap {self.gap!r} and ambiguous {self.ambiguous!r} "
                "must be single characters"
            )
            raise MolTypeError(msg)

        index = numpy.full(256, -1, dtype=numpy.int16)
        for i, code in enumerate(_ascii_codes(self.monomers)):
            index[code] = i
            index[ord(chr(code).lower())] = i
        self._monomer_index = index

        if complements:
            # any character not in the complement set is its own complement
            table = numpy.arange(256, dtype=numpy.uint8)
            for src, dest in complements.items():
                table[ord(src)] = ord(dest)
                table[ord(src.lower())] = ord(dest.lower())
            self._complement_table = table

    def __repr__(self) -> str:
        name = self.__class__.__name__
        return f"{name}({self.name!r}, {tuple(self.monomers)})"

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return id(self) == id(other)

    def __len__(self) -> int:
        return len(self.monomers)

    @property
    def gap_code(self) -> int:
        return ord(self.gap)

    @property
    def ambiguous_code(self) -> int:
        return ord(self.ambiguous)

    @property
    def complement_table(self) -> NumpyIntArrayType | None:
        """256 element lookup mapping a letter code to its complement code,
        None if the moltype cannot be complemented"""
        return self._complement_table

    @property
    def is_nucleic(self) -> bool:
        """is a nucleic acid moltype

        Notes
        -----
        only nucleic moltypes can be reverse complemented
        """
        return self._complement_table is not None

    def get_complement_table(self) -> NumpyIntArrayType:
        """returns the complement lookup, raising if the moltype has none"""
        if self._complement_table is None:
            msg = f"{self.name!r} cannot complement"
            raise UnsupportedCapability(msg)
        return self._complement_table

    def encode(
        self, seq: str | bytes | Iterable[str] | NumpyIntArrayType
    ) -> NumpyIntArrayType:
        """converts letters into a numpy.uint8 array of ASCII codes"""
        if isinstance(seq, numpy.ndarray):
            return seq.astype(numpy.uint8)

        if isinstance(seq, str):
            seq = seq.encode("ascii")
        elif not isinstance(seq, (bytes, bytearray)):
            seq = "".join(seq).encode("ascii")

        return numpy.frombuffer(seq, dtype=numpy.uint8).copy()

    def decode(self, codes: NumpyIntArrayType | Iterable[int]) -> str:
        """converts ASCII codes into a string"""
        return bytes(numpy.asarray(codes, dtype=numpy.uint8)).decode("ascii")

    def index_of(self, code: int) -> int:
        """index of the monomer with ASCII code, -1 if not a monomer"""
        return int(self._monomer_index[code])

    def to_indices(self, codes: NumpyIntArrayType) -> NumpyIntArrayType:
        """monomer indices for an array of ASCII codes, -1 for non-monomers"""
        return self._monomer_index[numpy.asarray(codes, dtype=numpy.uint8)]

    def is_valid(self, code: int) -> bool:
        """whether the code is a canonical monomer (case insensitive)"""
        return self.index_of(code) >= 0

    def complement(self, seq: str) -> str:
        """the complement of seq, case is preserved"""
        table = self.get_complement_table()
        return self.decode(table[self.encode(seq)])

    def rc(self, seq: str) -> str:
        """reverse complement of a sequence"""
        return self.complement(seq)[::-1]


ASCII = MolType(
    # A default type for text when we don't want to prematurely assume
    # DNA or Protein.
    name="text",
    monomers=ascii_letters,
)

DNA = MolType(
    name="dna",
    monomers="".join(IUPAC_DNA_chars),
    ambiguous="N",
    complements=IUPAC_DNA_ambiguities_complements,
)

RNA = MolType(
    name="rna",
    monomers="".join(IUPAC_RNA_chars),
    ambiguous="N",
    complements=IUPAC_RNA_ambiguities_complements,
)

PROTEIN = MolType(
    name="protein",
    monomers=IUPAC_PROTEIN_chars,
    ambiguous="X",
)


def _make_moltype_dict() -> dict[str, MolType]:
    """make a dictionary of local name space molecular types"""
    env = globals()
    moltypes: dict[str, MolType] = {}
    for obj in env.values():
        if not isinstance(obj, MolType):
            continue
        moltypes[obj.name] = obj

    return moltypes


def get_moltype(name: str | MolType | None) -> MolType:
    """returns the moltype with the matching name attribute"""
    if name is None:
        msg = "no moltype specified, defaulting to ASCII"
        warnings.warn(msg, UserWarning, stacklevel=3)
        return ASCII

    if isinstance(name, MolType):
        return name

    if name.lower() not in _moltypes:
        msg = f"unknown moltype {name!r}"
        raise ValueError(msg)

    return _moltypes[name.lower()]


def available_moltypes() -> tuple[str, ...]:
    """names of the available moltypes"""
    return tuple(sorted(_moltypes))


# build this at end of file
_moltypes = _make_moltype_dict()
