"""
Directory tree cache.

Holds the last tree snapshot received from the server and answers path,
file and upload-eligibility lookups without touching the network.
"""

import structlog

from filezen.models.tree import DirectoryTree, FolderNode

logger = structlog.get_logger(__name__)


class DirectoryTreeCache:
    """
    Last-fetched project/folder/file hierarchy.

    The snapshot is advisory: it goes stale after any upload or delete and
    must be refreshed through a reload before it is relied upon again. The
    server stays authoritative even for uploads this cache approved.
    """

    def __init__(self, tree: DirectoryTree | None = None) -> None:
        self._tree = tree or DirectoryTree.empty()
        self._stale = tree is None

    @property
    def tree(self) -> DirectoryTree:
        """The current snapshot."""
        return self._tree

    @property
    def is_stale(self) -> bool:
        """True until the first snapshot and after any mutating operation."""
        return self._stale

    def update(self, tree: DirectoryTree) -> None:
        """Replace the snapshot with a fresh one from the server."""
        self._tree = tree
        self._stale = False
        logger.debug(
            "Tree snapshot updated",
            projects=len(tree.projects),
            files=tree.count_files(),
        )

    def invalidate(self) -> None:
        """Mark the snapshot as out of date."""
        self._stale = True

    def clear(self) -> None:
        self._tree = DirectoryTree.empty()
        self._stale = True

    def find_folder(self, path: str) -> FolderNode:
        """
        Find a folder by "Project/Folder" path.

        Args:
            path: Folder path; a single segment means an empty project.

        Returns:
            The folder, or an empty FolderNode (``folder_id == ""``) if absent.
        """
        self._warn_if_stale("find_folder")
        return self._tree.find_folder(path)

    def find_file(self, project: str, folder: str, name: str) -> str:
        """
        Find the key of a file.

        Returns:
            The file key, or "" if absent.
        """
        self._warn_if_stale("find_file")
        return self._tree.find_file(project, folder, name)

    def can_upload(self, path: str, name: str) -> bool:
        """
        Check whether ``name`` may be uploaded to the folder at ``path``.

        False when a file of that exact name exists in a matching folder;
        otherwise true only if a matching folder grants write access.
        """
        self._warn_if_stale("can_upload")
        return self._tree.can_upload(path, name)

    def _warn_if_stale(self, lookup: str) -> None:
        if self._stale:
            logger.warning("Tree snapshot is stale, reload before relying on it", lookup=lookup)
