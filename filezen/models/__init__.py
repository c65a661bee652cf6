"""
Domain models for FileZen.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from filezen.models.delivery import DeliveryRequest, Recipient, parse_delivery_conf
from filezen.models.envelope import SUCCESS_STATUS, Envelope
from filezen.models.session import SESSION_COOKIE, ServerInfo, SessionToken
from filezen.models.sync import SyncReport
from filezen.models.transfer import (
    ChunkPlan,
    TransferRequest,
    UploadResult,
    UploadState,
    UploadStrategy,
    encode_notification,
)
from filezen.models.tree import (
    DirectoryTree,
    FileNode,
    FolderNode,
    ProjectNode,
    split_folder_path,
)

__all__ = [
    # Session
    "SESSION_COOKIE",
    "SessionToken",
    "ServerInfo",
    # Envelope
    "SUCCESS_STATUS",
    "Envelope",
    # Tree
    "DirectoryTree",
    "ProjectNode",
    "FolderNode",
    "FileNode",
    "split_folder_path",
    # Transfer
    "TransferRequest",
    "ChunkPlan",
    "UploadState",
    "UploadStrategy",
    "UploadResult",
    "encode_notification",
    # Delivery
    "DeliveryRequest",
    "Recipient",
    "parse_delivery_conf",
    # Sync
    "SyncReport",
]
