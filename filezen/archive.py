"""Zip archives of local directories, for services that only send single files."""

import shutil
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def make_zip(source: Path, directory: Path, name: str | None = None) -> Path:
    """
    Zip a directory, keeping the directory itself as the archive root.

    Args:
        source: Directory to archive.
        directory: Where to write the archive.
        name: Archive file name; defaults to ``<source name>.zip``.

    Returns:
        Path of the created archive.

    Raises:
        NotADirectoryError: If ``source`` is not a directory.
        OSError: If the archive cannot be written.
    """
    if not source.is_dir():
        msg = f"Not a directory: {source}"
        raise NotADirectoryError(msg)

    archive = directory / (name or f"{source.name}.zip")
    base = archive.with_suffix("") if archive.suffix == ".zip" else archive
    logger.debug("Creating zip archive", source=str(source), archive=str(archive))
    created = shutil.make_archive(
        str(base),
        "zip",
        root_dir=source.resolve().parent,
        base_dir=source.resolve().name,
    )
    created_path = Path(created)
    if created_path != archive:
        created_path.replace(archive)
    return archive
