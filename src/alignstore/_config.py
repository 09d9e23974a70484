import dataclasses

from alignstore.core.quality import (
    Encoding,
    QualityFilter,
    ambig_filter,
)

_DEFAULT_THRESHOLD = 2


@dataclasses.dataclass
class QualityDefaults:
    """defaults applied to quality aware objects when none are specified"""

    threshold: int = _DEFAULT_THRESHOLD
    qfilter: QualityFilter = ambig_filter
    encoding: Encoding = Encoding.SANGER


_QUALITY_DEFAULT = QualityDefaults()


def get_quality_defaults() -> QualityDefaults:
    return _QUALITY_DEFAULT


def set_quality_defaults(
    *,
    threshold: int | None = None,
    qfilter: QualityFilter | None = None,
    encoding: Encoding | None = None,
    reset: bool = False,
) -> None:
    """set default values for the quality threshold, filter and encoding

    Parameters
    ----------
    threshold
        letters with a quality below this are passed through the filter
    qfilter
        function of (moltype, threshold, qletter) returning the letter
        reported for a low quality letter
    encoding
        quality encoding scheme
    reset
        resets defaults to the builtin values

    Notes
    -----
    Only affects objects created after the call.
    """
    if reset:
        _QUALITY_DEFAULT.threshold = _DEFAULT_THRESHOLD
        _QUALITY_DEFAULT.qfilter = ambig_filter
        _QUALITY_DEFAULT.encoding = Encoding.SANGER
        return

    if threshold is not None:
        if threshold < 0:
            msg = f"threshold must be >= 0, not {threshold}"
            raise ValueError(msg)
        _QUALITY_DEFAULT.threshold = threshold

    if qfilter is not None:
        _QUALITY_DEFAULT.qfilter = qfilter

    if encoding is not None:
        _QUALITY_DEFAULT.encoding = encoding
