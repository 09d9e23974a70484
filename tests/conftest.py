import pytest

from alignstore._config import set_quality_defaults
from alignstore.core.alignment import Alignment, make_aligned


@pytest.fixture(autouse=True)
def _reset_quality_defaults():
    yield
    set_quality_defaults(reset=True)


@pytest.fixture
def example_columns() -> list[str]:
    # 3 rows by 19 columns
    return [
        "AAA",
        "CCC",
        "GGG",
        "CGA",
        "TTT",
        "GGG",
        "AAA",
        "CCC",
        "TCG",
        "TTT",
        "GGG",
        "GGG",
        "TCC",
        "GGG",
        "CCC",
        "AGT",
        "CCC",
        "GAA",
        "TTT",
    ]


@pytest.fixture
def example_aln(example_columns) -> Alignment:
    return Alignment(
        "example alignment",
        ["seq 1", "seq 2", "seq 3"],
        example_columns,
        "dna",
    )


@pytest.fixture
def small_aln() -> Alignment:
    return make_aligned({"a": "ACGT", "b": "ACCT", "c": "AGGT"}, name="small")
