"""Package version.

A source checkout reads ``[project].version`` from the pyproject.toml beside
the package; an installed wheel has no such file and reports its distribution
metadata instead.
"""

import tomllib
from importlib import metadata
from pathlib import Path
from typing import Optional

DISTRIBUTION = "discipline-tracker"
PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def read_pyproject_version(path: Path = PYPROJECT) -> Optional[str]:
    if not path.is_file():
        return None
    with open(path, "rb") as f:
        return tomllib.load(f).get("project", {}).get("version")


def get_version() -> str:
    return read_pyproject_version(PYPROJECT) or metadata.version(DISTRIBUTION)


__version__: str = get_version()
