"""
Status envelope returned by the FileZen CGI endpoints.
"""

from dataclasses import dataclass

from filezen.models.tree import DirectoryTree

SUCCESS_STATUS = "OK"


@dataclass(frozen=True, kw_only=True)
class Envelope:
    """
    Decoded XML envelope.

    Attributes:
        status: Value of Lastop/Res; "OK" on success, the error message otherwise.
        tree: Tree snapshot, when the response carried a ProjectList.
        valid_key: Rotated anti-forgery token, when present.
        system_mail_addr: Server's system mail address.
        user_mail_addr: Logged-in user's mail address.
        version: Server protocol version.
    """

    status: str
    tree: DirectoryTree | None = None
    valid_key: str | None = None
    system_mail_addr: str | None = None
    user_mail_addr: str | None = None
    version: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS_STATUS
