"""
Folder synchronisation results.
"""

from dataclasses import dataclass, field


@dataclass(kw_only=True)
class SyncReport:
    """
    Names of the files handled by one sync run.

    Attributes:
        downloaded: Files saved into the local download directory.
        uploaded: Entries committed to the upload folder.
        failed: Entries whose transfer failed.
        skipped: Files already present locally or already on the server.
    """

    downloaded: list[str] = field(default_factory=list)
    uploaded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
