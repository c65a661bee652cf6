"""
Session-related domain models.
"""

from dataclasses import dataclass, replace
from typing import Self

SESSION_COOKIE = "SessionID"


@dataclass(frozen=True, slots=True)
class SessionToken:
    """
    Credentials echoed on every authenticated request.

    Attributes:
        session_id: Value of the SessionID cookie set at login.
        valid_key: Anti-forgery token; rotates with every envelope response.
    """

    session_id: str
    valid_key: str

    def rotate(self, valid_key: str | None) -> Self:
        """Return a token carrying ``valid_key``; unchanged if the response had none."""
        if valid_key is None:
            return self
        return replace(self, valid_key=valid_key)

    def cookie_header(self) -> str:
        return f"{SESSION_COOKIE}={self.session_id}"


@dataclass(frozen=True, kw_only=True)
class ServerInfo:
    """Server metadata reported alongside the tree."""

    system_mail_addr: str = ""
    user_mail_addr: str = ""
    version: str = ""
