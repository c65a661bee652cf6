"""
Secondary delivery (one-off, expiring, recipient-addressed file sends).
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Self

from filezen.exceptions import DeliveryError

DATE_FORMAT = "%Y/%m/%d"
_NAMED_ADDR_RE = re.compile(r"\s*([^<]+)\s*<\s*([^ >@]+@[^ >@]+)\s*>")
_BARE_ADDR_RE = re.compile(r"([^ @]+@[^ @]+)")


@dataclass(frozen=True, kw_only=True)
class Recipient:
    """A delivery recipient."""

    name: str
    email: str

    @classmethod
    def parse(cls, value: str) -> Self | None:
        """
        Parse "Name <user@host>" or a bare address.

        Returns:
            The recipient, or None if no address is found.
        """
        if (m := _NAMED_ADDR_RE.search(value)) is not None:
            return cls(name=m.group(1).strip(), email=m.group(2))
        if (m := _BARE_ADDR_RE.search(value)) is not None:
            return cls(name=m.group(1), email=m.group(1))
        return None


def parse_delivery_conf(text: str) -> dict[str, str]:
    """
    Parse a delivery description file.

    Each line is ``key:value``; keys are case-insensitive, ``mailto`` may
    repeat (values are joined with ","), and every line after ``comment:``
    belongs to the message body.

    Args:
        text: File contents.

    Returns:
        Mapping of lower-cased keys to values, always holding "comment".
    """
    options: dict[str, str] = {}
    comment_lines: list[str] = []
    in_comment = False
    for line in text.splitlines():
        if in_comment:
            comment_lines.append(line)
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.strip()
        if key == "comment":
            in_comment = True
            comment_lines.append(value)
        elif key == "mailto" and "mailto" in options:
            options["mailto"] += "," + value
        else:
            options[key] = value
    options["comment"] = "".join(f"{line}\n" for line in comment_lines)
    return options


@dataclass(frozen=True, kw_only=True)
class DeliveryRequest:
    """
    A secondary delivery.

    Attributes:
        sender: From address.
        recipients: At least one recipient.
        file: File (or directory, zipped before sending) to deliver.
        start: First day the delivery can be downloaded.
        days: Number of days the delivery stays available.
        download_limit: Maximum number of downloads.
        subject: Mail subject.
        comment: Mail body.
        password: Optional download password.
        notify_download: Notify the sender on each download.
    """

    sender: str
    recipients: tuple[Recipient, ...]
    file: Path
    start: date
    days: int
    download_limit: int
    subject: str = ""
    comment: str = ""
    password: str = ""
    notify_download: bool = False

    def __post_init__(self) -> None:
        if not self.sender:
            msg = "No sender"
            raise DeliveryError(msg)
        if not self.recipients:
            msg = "No recipients"
            raise DeliveryError(msg)

    @classmethod
    def from_options(cls, options: dict[str, str]) -> Self:
        """
        Build a request from parsed description-file options.

        Raises:
            DeliveryError: If a required option is missing or malformed.
        """
        recipients = tuple(
            r
            for r in (Recipient.parse(v) for v in options.get("mailto", "").split(","))
            if r is not None and r.name
        )
        file = options.get("file", "")
        if not file:
            msg = "No file"
            raise DeliveryError(msg)
        try:
            start = datetime.strptime(options.get("start", ""), DATE_FORMAT).date()
        except ValueError as e:
            msg = "Invalid start date"
            raise DeliveryError(msg) from e
        try:
            days = int(options.get("days", ""))
        except ValueError as e:
            msg = "Invalid days"
            raise DeliveryError(msg) from e
        try:
            download_limit = int(options.get("limit", ""))
        except ValueError as e:
            msg = "Invalid limit"
            raise DeliveryError(msg) from e
        return cls(
            sender=options.get("from", ""),
            recipients=recipients,
            file=Path(file),
            start=start,
            days=days,
            download_limit=download_limit,
            subject=options.get("subject", ""),
            comment=options.get("comment", ""),
            password=options.get("password", ""),
            notify_download=options.get("notify", "false") == "true",
        )

    @classmethod
    def from_conf(cls, path: Path) -> Self:
        """Load a request from a description file."""
        return cls.from_options(parse_delivery_conf(path.read_text(encoding="utf-8")))

    def form_fields(self) -> dict[str, str]:
        """Form fields except the file part and session fields."""
        fields = {
            "subject": self.subject,
            "comment": self.comment,
            "exp_term_start_year": str(self.start.year),
            "exp_term_start_month": str(self.start.month),
            "exp_term_start_day": str(self.start.day),
            "exp_term_start_hour": "00",
            "exp_term_start_minute": "00",
            "exp_term_type": "by_dur",
            "exp_term_duration": str(self.days),
            "download_times": str(self.download_limit),
            "recipients-max-id": str(len(self.recipients)),
        }
        for i, recipient in enumerate(self.recipients, start=1):
            fields[f"recipient-name-{i}"] = recipient.name
            fields[f"recipient-email-{i}"] = recipient.email
        fields.update(
            {
                "from_addr": "user",
                "from_addr_val": self.sender,
                "lang": "ambi",
                "password": self.password,
                "password_retype": self.password,
                "file2": "",
                "file3": "",
                "file4": "",
                "file5": "",
                "key": "",
                "notify_download": "1" if self.notify_download else "0",
                "new_alert": "1",
            }
        )
        return fields
