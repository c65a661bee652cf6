"""
Decoding of the XML status envelope.

Only endpoints answering with ``respmode=xml`` go through here; CSV and raw
file bodies are streamed elsewhere.
"""

from xml.etree import ElementTree as ET

from filezen.exceptions import EnvelopeError, ProtocolMismatchError
from filezen.models.envelope import Envelope
from filezen.models.tree import DirectoryTree, FileNode, FolderNode, ProjectNode, parse_flag

ROOT_TAG = "FileZen"


def parse_envelope(
    content: bytes, *, operation: str, status_code: int | None = None
) -> Envelope:
    """
    Parse an envelope body.

    Args:
        content: Raw response body.
        operation: Operation name used in error messages.
        status_code: HTTP status, reported when the body is not an envelope.

    Returns:
        The decoded envelope; its status may be a failure.

    Raises:
        ProtocolMismatchError: If the body is not a FileZen envelope.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        msg = f"{operation.capitalize()} failed: response is not an XML envelope"
        raise ProtocolMismatchError(msg, operation=operation, status_code=status_code) from e
    if root.tag != ROOT_TAG:
        msg = f"{operation.capitalize()} failed: unexpected envelope root <{root.tag}>"
        raise ProtocolMismatchError(msg, operation=operation, status_code=status_code)

    project_list = root.find("ProjectList")
    return Envelope(
        status=_text(root.find("Lastop/Res")) or "",
        tree=_parse_tree(project_list) if project_list is not None else None,
        valid_key=_text(root.find("ValidKey")),
        system_mail_addr=_text(root.find("SystemMailAddr")),
        user_mail_addr=_text(root.find("UserMailAddr")),
        version=_text(root.find("Version")),
    )


def check_envelope(envelope: Envelope, *, operation: str) -> Envelope:
    """
    Raise if the envelope reports a failure.

    Raises:
        EnvelopeError: If the status is not the success sentinel.
    """
    if envelope.ok:
        return envelope
    msg = f"{operation.capitalize()} failed: {envelope.status or 'empty status'}"
    raise EnvelopeError(msg, operation=operation, server_message=envelope.status)


def _text(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    return (element.text or "").strip()


def _parse_tree(project_list: ET.Element) -> DirectoryTree:
    return DirectoryTree(
        projects=tuple(
            ProjectNode(
                name=p.get("Name", ""),
                folders=tuple(_parse_folder(d) for d in p.findall("Folder")),
            )
            for p in project_list.findall("Project")
        )
    )


def _parse_folder(folder: ET.Element) -> FolderNode:
    return FolderNode(
        folder_id=folder.get("Id", ""),
        name=folder.get("Name", ""),
        access=folder.get("Access", ""),
        limit=folder.get("Limit", ""),
        files=tuple(
            FileNode(
                key=f.get("Key", ""),
                name=f.get("Name", ""),
                owner=f.get("Owner", ""),
                size=f.get("Size", "0"),
                timestamp=f.get("TimeStamp", ""),
                drm=parse_flag(f.get("DrmFlag")),
                previewable=parse_flag(f.get("PdfFlag")),
            )
            for f in folder.findall("File")
        ),
    )
