"""
Upload-related domain models.
"""

import math
import secrets
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Self

# Transfer tokens are decimal numbers below this bound.
_TRANSFER_TOKEN_BOUND = 999_999_999


class UploadState(StrEnum):
    """States of one upload call."""

    SELECTING = "selecting"
    SINGLE_SHOT = "single_shot"
    CHUNKING = "chunking"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


class UploadStrategy(StrEnum):
    SINGLE_SHOT = "single_shot"
    CHUNKED = "chunked"


def encode_notification(notify_to: str, notify_events: str) -> dict[str, str]:
    """
    Encode notification settings into upload form fields.

    Args:
        notify_to: Recipients; "ALL" notifies everyone, "" nobody,
            anything else the folder's designated recipients.
        notify_events: Any combination of "DOWNLOAD", "ALTER", "DELETE".

    Returns:
        The mail_send and notify_* fields.
    """
    if "ALL" in notify_to:
        mail_send = "1"
    elif notify_to == "":
        mail_send = "0"
    else:
        mail_send = "2"
    return {
        "mail_send": mail_send,
        "notify_download": "1" if "DOWNLOAD" in notify_events else "0",
        "notify_alter": "1" if "ALTER" in notify_events else "0",
        "notify_delete": "1" if "DELETE" in notify_events else "0",
    }


@dataclass(frozen=True, kw_only=True)
class TransferRequest:
    """
    One upload into a project folder.

    Attributes:
        local_path: File to upload.
        folder_id: Destination folder identifier.
        display_name: Name shown on the server; defaults to the file's name.
        comment: Free-text description stored with the file.
        notify_to: Notification recipients.
        notify_events: Notification events.
    """

    local_path: Path
    folder_id: str
    display_name: str = ""
    comment: str = ""
    notify_to: str = ""
    notify_events: str = ""

    @property
    def filename(self) -> str:
        return self.local_path.name

    @property
    def registered_name(self) -> str:
        return self.display_name or self.local_path.name

    def form_fields(self) -> dict[str, str]:
        """Metadata fields shared by single-shot uploads and chunk commits."""
        return {
            "ST_current_folder": self.folder_id,
            "reg_filename": self.registered_name,
            "description": self.comment,
            "key": "",
            **encode_notification(self.notify_to, self.notify_events),
            "new_alert": "1",
        }


@dataclass(frozen=True, kw_only=True)
class ChunkPlan:
    """
    Layout of a chunked upload.

    Attributes:
        transfer_token: Random identifier shared by every chunk and the commit.
        chunk_size: Maximum bytes per chunk.
        total_size: File size in bytes.
    """

    transfer_token: str
    chunk_size: int
    total_size: int

    @classmethod
    def create(cls, total_size: int, chunk_size: int) -> Self:
        return cls(
            transfer_token=str(secrets.randbelow(_TRANSFER_TOKEN_BOUND)),
            chunk_size=chunk_size,
            total_size=total_size,
        )

    @property
    def chunk_count(self) -> int:
        return math.ceil(self.total_size / self.chunk_size)

    def chunks(self) -> Iterator[tuple[int, int, int]]:
        """
        Iterate over the chunks in send order.

        Yields:
            Tuple of (index starting at 1, byte offset, byte length).
        """
        for i in range(self.chunk_count):
            offset = i * self.chunk_size
            yield i + 1, offset, min(self.chunk_size, self.total_size - offset)


@dataclass(frozen=True, kw_only=True)
class UploadResult:
    """Outcome of a committed upload."""

    state: UploadState
    strategy: UploadStrategy
    display_name: str
    size: int
    chunk_count: int = 1
    transfer_token: str | None = None
