__all__ = [
    "alignment",
    "annotation",
    "consensus",
    "errors",
    "moltype",
    "quality",
    "row",
    "sequence",
]
