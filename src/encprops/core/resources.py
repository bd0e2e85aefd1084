"""Resource abstraction: packaged resources and plain filesystem files.

A :class:`PackageResource` plays the role the classpath plays on the JVM: it
locates a file shipped inside an importable package, so the base property
files travel with the deployed artifact.  A :class:`FileSystemResource`
points anywhere on disk and is used for operator overrides.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from importlib import resources
from pathlib import Path

from encprops.core.properties import parse_properties


class Resource(ABC):
    """A readable text resource."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable location, used in logs and error messages."""

    @abstractmethod
    def exists(self) -> bool:
        """Return ``True`` if the resource can be found."""

    @abstractmethod
    def read_text(self, encoding: str = "utf-8") -> str:
        """Return the full content.

        Raises:
            FileNotFoundError: If the resource does not exist.
            OSError: If it exists but cannot be read.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.description})"


class PackageResource(Resource):
    """A file inside an importable package, e.g. ``myapp.resources``."""

    def __init__(self, package: str, filename: str) -> None:
        self._package = package
        self._filename = filename.lstrip("/")

    @property
    def description(self) -> str:
        return f"package resource [{self._package}/{self._filename}]"

    def _traversable(self):
        try:
            return resources.files(self._package).joinpath(self._filename)
        except ImportError as exc:
            raise FileNotFoundError(f"Resource package not importable: {self._package}") from exc
        except TypeError as exc:
            raise FileNotFoundError(f"Resource location is not a package: {self._package}") from exc

    def exists(self) -> bool:
        try:
            return self._traversable().is_file()
        except FileNotFoundError:
            return False

    def read_text(self, encoding: str = "utf-8") -> str:
        target = self._traversable()
        if not target.is_file():
            raise FileNotFoundError(f"{self.description} does not exist")
        return target.read_text(encoding=encoding)


class FileSystemResource(Resource):
    """A plain file on disk."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def description(self) -> str:
        return f"file [{self._path}]"

    def exists(self) -> bool:
        return self._path.is_file()

    def read_text(self, encoding: str = "utf-8") -> str:
        return self._path.read_text(encoding=encoding)


def load_properties(resource: Resource, encoding: str = "utf-8") -> dict[str, str]:
    """Read and parse a ``.properties`` resource.

    Raises:
        OSError: If the resource is missing or unreadable.
        ValueError: If the content is not valid properties text or cannot be
            decoded with *encoding*.
    """
    return parse_properties(resource.read_text(encoding))
