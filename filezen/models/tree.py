"""
Project/folder/file tree as reported by the server.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Self

PATH_SEPARATOR = "/"
_TRUE_FLAGS = frozenset({"1", "true", "on", "yes"})


def split_folder_path(path: str) -> tuple[str, str]:
    """
    Split a "Project/Folder" path on its first separator.

    A single segment names a folder with an empty project.

    Args:
        path: Folder path.

    Returns:
        Tuple of (project, folder).
    """
    project, sep, folder = path.partition(PATH_SEPARATOR)
    if not sep:
        return "", path
    return project, folder


def parse_flag(value: str | None) -> bool:
    """Interpret a server attribute flag ("1", "true", ...)."""
    return (value or "").strip().lower() in _TRUE_FLAGS


@dataclass(frozen=True, kw_only=True)
class FileNode:
    """
    A file stored in a folder.

    Attributes:
        key: Opaque handle used for download and delete.
        name: File name, unique within its folder.
        owner: Uploading user.
        size: Size in bytes as the decimal string sent by the server.
        timestamp: Server epoch seconds as a string.
        drm: Whether the file is DRM protected.
        previewable: Whether the server offers a PDF preview.
    """

    key: str
    name: str
    owner: str = ""
    size: str = "0"
    timestamp: str = ""
    drm: bool = False
    previewable: bool = False

    @property
    def size_bytes(self) -> int:
        """Size as an integer, 0 when the server value is not a number."""
        try:
            return int(self.size)
        except ValueError:
            return 0

    @property
    def modified_at(self) -> datetime | None:
        """Timestamp as an aware datetime, if the server sent one."""
        try:
            return datetime.fromtimestamp(int(self.timestamp), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None


@dataclass(frozen=True, kw_only=True)
class FolderNode:
    """
    A folder inside a project.

    An instance with an empty ``folder_id`` stands for "not found".
    """

    folder_id: str = ""
    name: str = ""
    access: str = ""
    limit: str = ""
    files: tuple[FileNode, ...] = ()

    @property
    def exists(self) -> bool:
        return self.folder_id != ""

    @property
    def writable(self) -> bool:
        return "write" in self.access

    def get_file(self, name: str) -> FileNode | None:
        """Get a file by exact name."""
        for file in self.files:
            if file.name == name:
                return file
        return None


@dataclass(frozen=True, kw_only=True)
class ProjectNode:
    """A project grouping folders."""

    name: str
    folders: tuple[FolderNode, ...] = ()


@dataclass(frozen=True, kw_only=True)
class DirectoryTree:
    """
    Snapshot of every project, folder and file visible to the session.

    Lookups compare names exactly (case-sensitive).
    """

    projects: tuple[ProjectNode, ...] = ()

    @classmethod
    def empty(cls) -> Self:
        return cls()

    def iter_folders(self, project: str, folder: str) -> Iterator[FolderNode]:
        """Yield every folder matching the project and folder names."""
        for p in self.projects:
            if p.name != project:
                continue
            for d in p.folders:
                if d.name == folder:
                    yield d

    def find_folder(self, path: str) -> FolderNode:
        """
        Find a folder by "Project/Folder" path.

        Returns:
            The folder, or an empty FolderNode when absent.
        """
        project, folder = split_folder_path(path)
        return next(self.iter_folders(project, folder), FolderNode())

    def find_file(self, project: str, folder: str, name: str) -> str:
        """
        Find a file's key.

        Returns:
            The file key, or "" when absent.
        """
        for d in self.iter_folders(project, folder):
            if (file := d.get_file(name)) is not None:
                return file.key
        return ""

    def can_upload(self, path: str, name: str) -> bool:
        """
        Check whether ``name`` may be uploaded into the folder at ``path``.

        A name collision in any matching folder wins over write access.
        """
        allowed = False
        project, folder = split_folder_path(path)
        for d in self.iter_folders(project, folder):
            if d.get_file(name) is not None:
                return False
            if d.writable:
                allowed = True
        return allowed

    def walk(self) -> Iterator[tuple[ProjectNode, FolderNode, FileNode]]:
        """Iterate over every file with its project and folder."""
        for p in self.projects:
            for d in p.folders:
                for f in d.files:
                    yield p, d, f

    def count_files(self) -> int:
        return sum(1 for _ in self.walk())

    def format_tree(self) -> str:
        """
        Format as a tree string.

        Returns:
            Multi-line string, one project/folder/file per line.
        """
        lines = []
        for p in self.projects:
            lines.append(f"[P] {p.name}")
            for d in p.folders:
                access = f" <{d.access}>" if d.access else ""
                lines.append(f"  [D] {d.name}{access}")
                for f in d.files:
                    lines.append(f"    [F] {f.name} ({f.size_bytes} B)")
        return "\n".join(lines)
