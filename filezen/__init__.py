"""
FileZen Python Client.

An async Python client for the FileZen document-exchange appliance.

Example:
    ```python
    from filezen import FileZenClient, FileZenConfig

    async with FileZenClient(FileZenConfig(url="https://fz.example.com")) as client:
        await client.login("user", "password")

        # List projects, folders and files
        print(client.tree.format_tree())

        # Upload into a folder; large files are sent in chunks
        await client.upload("report.pdf", "Sales/Reports")

        # Download a file by folder path and name
        await client.download_file("Sales/Reports", "report.pdf", "copy.pdf")
    ```
"""

from filezen.client import FileZenClient
from filezen.config import ClientCertificate, FileZenConfig
from filezen.exceptions import (
    AuthenticationError,
    DeliveryError,
    EnvelopeError,
    FileNotFoundInFolderError,
    FileTooLargeError,
    FileZenError,
    FolderNotFoundError,
    InvalidModeError,
    PathError,
    ProtocolMismatchError,
    StateError,
    TransportError,
    UploadNotAllowedError,
)
from filezen.models.delivery import DeliveryRequest, Recipient
from filezen.models.sync import SyncReport
from filezen.models.tree import DirectoryTree, FileNode, FolderNode, ProjectNode

__version__ = "0.1.0"

__all__ = [
    # Main client
    "FileZenClient",
    "FileZenConfig",
    "ClientCertificate",
    # Models
    "DirectoryTree",
    "ProjectNode",
    "FolderNode",
    "FileNode",
    "DeliveryRequest",
    "Recipient",
    "SyncReport",
    # Exceptions
    "FileZenError",
    "TransportError",
    "EnvelopeError",
    "AuthenticationError",
    "StateError",
    "ProtocolMismatchError",
    "PathError",
    "FolderNotFoundError",
    "FileNotFoundInFolderError",
    "UploadNotAllowedError",
    "DeliveryError",
    "FileTooLargeError",
    "InvalidModeError",
]
