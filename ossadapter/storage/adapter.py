"""Abstract filesystem adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import IO, Any, Dict, List, Mapping, Optional

from ossadapter.core.result import Result

FILE = "file"
DIR = "dir"


@dataclass(frozen=True)
class FileMetadata:
    type: str
    path: str
    mimetype: Optional[str] = None
    size: Optional[int] = None
    timestamp: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "path": self.path}
        for name in ("mimetype", "size", "timestamp"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload


@dataclass(frozen=True)
class FileContents:
    path: str
    contents: bytes


@dataclass(frozen=True)
class FileStream:
    path: str
    stream: IO[bytes]


class FilesystemAdapter(ABC):
    """Capability set a filesystem host expects from a storage driver.

    Path arguments are logical paths relative to the adapter root. Operations
    never raise for storage failures; they return a falsy ``Result`` whose
    ``error`` names the cause.
    """

    @abstractmethod
    def write(
        self, path: str, contents: bytes | str, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        """
        Write a new file.

        Args:
            path: Logical path (e.g., "reports/2024/summary.pdf")
            contents: File contents; text is stored UTF-8 encoded
            config: Per-call options ("mimetype", "size")

        Returns:
            Metadata of the written file
        """

    @abstractmethod
    def write_stream(
        self, path: str, stream: IO, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        """Write a new file from a readable stream."""

    @abstractmethod
    def update(
        self, path: str, contents: bytes | str, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        """Replace an existing file."""

    @abstractmethod
    def update_stream(
        self, path: str, stream: IO, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        """Replace an existing file from a readable stream."""

    @abstractmethod
    def rename(self, path: str, new_path: str) -> Result[bool]:
        """Move a file to ``new_path``."""

    @abstractmethod
    def copy(self, path: str, new_path: str) -> Result[bool]:
        """Copy a file to ``new_path``."""

    @abstractmethod
    def delete(self, path: str) -> Result[bool]:
        """Delete a file; succeeds only once the file is gone."""

    @abstractmethod
    def delete_dir(self, dirname: str) -> Result[bool]:
        """Delete a directory and everything below it."""

    @abstractmethod
    def create_dir(
        self, dirname: str, config: Optional[Mapping[str, Any]] = None
    ) -> Result[FileMetadata]:
        """Create a directory."""

    @abstractmethod
    def has(self, path: str) -> bool:
        """
        Check whether a file exists.

        Returns:
            True if the file exists, False if it is absent or the check failed
        """

    @abstractmethod
    def read(self, path: str) -> Result[FileContents]:
        """Read a whole file into memory."""

    @abstractmethod
    def read_stream(self, path: str) -> Result[FileStream]:
        """Open a file as a readable stream."""

    @abstractmethod
    def list_contents(self, directory: str = "", recursive: bool = False) -> Result[List[FileMetadata]]:
        """
        List the contents of a directory.

        Args:
            directory: Logical directory path ("" for the root)
            recursive: Descend into subdirectories

        Returns:
            Entries of type "file" and "dir"
        """

    @abstractmethod
    def get_metadata(self, path: str) -> Result[FileMetadata]:
        """Get all metadata of a file."""

    def get_size(self, path: str) -> Result[FileMetadata]:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> Result[FileMetadata]:
        return self.get_metadata(path)

    def get_timestamp(self, path: str) -> Result[FileMetadata]:
        return self.get_metadata(path)
