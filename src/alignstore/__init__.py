"""Column oriented storage of multiple sequence alignments, with and
without per letter quality scores, and row views into that storage."""

import logging
import typing
from importlib import import_module

from alignstore._version import __version__

if typing.TYPE_CHECKING:  # pragma: no cover
    from alignstore.core.alignment import Alignment, QAlignment

__license__ = "BSD-3"

logging.getLogger(__name__).addHandler(logging.NullHandler())


def __getattr__(name: str) -> typing.Any:  # noqa: ANN401
    if (attr := globals().get(name)) is not None:
        return attr

    if name not in _import_mapping:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    module_name = _import_mapping[name]
    module = import_module(f".{module_name}", package=__name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


_import_mapping = {
    "Alignment": "core.alignment",
    "QAlignment": "core.alignment",
    "make_aligned": "core.alignment",
    "make_qaligned": "core.alignment",
    "Seq": "core.sequence",
    "QSeq": "core.sequence",
    "majority_consensus": "core.consensus",
    "DNA": "core.moltype",
    "RNA": "core.moltype",
    "PROTEIN": "core.moltype",
    "ASCII": "core.moltype",
    "get_moltype": "core.moltype",
    "available_moltypes": "core.moltype",
    "Encoding": "core.quality",
    "QLetter": "core.quality",
    "Strand": "core.annotation",
    "Topology": "core.annotation",
    "set_quality_defaults": "_config",
}

__all__ = ["__version__", *_import_mapping]
