import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import cast

from typing_extensions import NotRequired, ReadOnly, Required, TypedDict

DISTRIBUTION_NAME = "pytoolkit-optional"
PYPROJECT_PATH = Path(__file__).parent.parent / "pyproject.toml"


class ProjectInfo(TypedDict):
    """[project]セクションのうち参照する項目の型定義"""

    name: ReadOnly[Required[str]]
    version: ReadOnly[NotRequired[str]]
    description: ReadOnly[NotRequired[str]]
    requires_python: ReadOnly[NotRequired[str]]
    dependencies: ReadOnly[NotRequired[list[str]]]
    optional_dependencies: ReadOnly[NotRequired[dict[str, list[str]]]]


class PyProjectToml(TypedDict, total=False):
    """pyproject.tomlの型定義

    https://peps.python.org/pep-0621/
    """

    project: ReadOnly[Required[ProjectInfo]]


def get_package_metadata(path: Path = PYPROJECT_PATH) -> PyProjectToml:
    """Return the package metadata of a source checkout."""
    with path.open("rb") as f:
        return cast(PyProjectToml, tomllib.load(f))


def get_version(path: Path = PYPROJECT_PATH) -> str:
    """Return the installed version, or the checkout's version when not installed."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return get_package_metadata(path)["project"].get("version", "unknown")
