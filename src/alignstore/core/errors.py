"""exceptions raised by the alignment containers and their row views"""


class AlignmentError(Exception): ...


class ConstructionError(ValueError, AlignmentError):
    """number of row names disagrees with the rows of the supplied columns"""


class ShapeError(ValueError, AlignmentError):
    """a supplied column or block of rows disagrees with the alignment rows"""


class UnsupportedOperation(TypeError, AlignmentError):
    """operation is not defined for the object, e.g. storage access on a row view"""


class UnsupportedCapability(TypeError, AlignmentError):
    """a collaborator lacks a required capability, e.g. a complement table"""
