"""
Business logic services for FileZen.
"""

from filezen.services.admin_service import AdminService
from filezen.services.delivery_service import DeliveryService
from filezen.services.session_service import SessionManager
from filezen.services.sync_service import SyncService
from filezen.services.transfer_service import TransferEngine, build_file_comment
from filezen.services.tree_service import DirectoryTreeCache

__all__ = [
    "AdminService",
    "DeliveryService",
    "DirectoryTreeCache",
    "SessionManager",
    "SyncService",
    "TransferEngine",
    "build_file_comment",
]
