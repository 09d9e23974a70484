import pathlib
import sys

from setuptools import find_packages, setup


__license__ = "BSD-3"
__version__ = "2026.10.16a1"
__status__ = "Development"

# Check Python version, no point installing if unsupported version inplace
min_version = (3, 10)
if sys.version_info < min_version:
    py_version = ".".join(str(n) for n in sys.version_info)
    msg = (
        f"Python-{'.'.join(map(str, min_version))} or greater is required, "
        f"Python-{py_version} used."
    )
    raise RuntimeError(msg)


short_description = "Column oriented multiple sequence alignments with quality scores"

readme_path = pathlib.Path(__file__).parent / "README.md"

long_description = readme_path.read_text()


PACKAGE_DIR = "src"

setup(
    name="alignstore",
    version=__version__,
    description=short_description,
    long_description=long_description,
    long_description_content_type="text/markdown",
    platforms=["any"],
    license=__license__,
    keywords=[
        "biology",
        "genomics",
        "alignment",
        "bioinformatics",
        "sequencing",
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: BSD License",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": PACKAGE_DIR},
    install_requires=[
        "numpy",
        "typing_extensions",
    ],
    extras_require={
        "test": [
            "nox",
            "pytest",
            "pytest-cov",
        ],
        "dev": [
            "nox",
            "numpydoc",
            "pytest",
            "pytest-cov",
            "ruff",
        ],
    },
)
