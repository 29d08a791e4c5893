import ast
import os
import sys

from setuptools import setup

if sys.version_info < (3, 9):
    import textwrap

    error = """
    ====================================================================
    `wkgeom` requires Python 3.9 or newer.
    ====================================================================
    """
    print(textwrap.dedent(error))
    exit(1)


def get_version():
    with open(os.path.join("wkgeom", "_version.py")) as f:
        for line in f:
            if line.startswith("__version__"):
                return ast.literal_eval(line.split("=", 1)[1].strip())
    raise RuntimeError("Unable to find __version__ in wkgeom/_version.py")


setup(
    name="wkgeom",
    version=get_version(),
    description="WKB and WKT geometry decoding and encoding, built on msgspec",
    license="BSD",
    packages=["wkgeom"],
    package_data={"wkgeom": ["py.typed"]},
    python_requires=">=3.9",
    install_requires=["msgspec>=0.18"],
    extras_require={"test": ["pytest"]},
)
