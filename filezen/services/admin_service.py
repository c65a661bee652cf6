"""
Administrative CSV service for FileZen.

Exports and imports user, project, folder and delivery settings, and
exports the access logs, as CSV files.
"""

import calendar
from collections.abc import Mapping
from datetime import date
from pathlib import Path

import structlog

from filezen.api.endpoints import admin
from filezen.api.http_client import AsyncHttpClient
from filezen.config import FileZenConfig
from filezen.exceptions import InvalidModeError
from filezen.services.session_service import SessionManager
from filezen.services.transfer_service import save_response

logger = structlog.get_logger(__name__)

DEFAULT_FILE_FIELD = "filename"
DEFAULT_DELIVERY_FILE_FIELD = "file"
ADDRBOOK_FILE_FIELD = "addrbook_file"

# Exports without a date range: mode -> form fields.
_EXPORT_FIELDS: dict[str, dict[str, str]] = {
    "fzuser": {"action": "User_export", "sub_action": "do_export", "passwd_mode": "enc"},
    "fzuser_check": {
        "action": "User_export",
        "sub_action": "do_export_uid",
        "uid_export_mode": "check",
    },
    "fzuser_perm": {"action": "User_perm_export", "sub_action": "do_export"},
    "fzprj": {"action": "Project_export", "sub_action": "do_export"},
    "fzfolder": {"action": "Group_export", "sub_action": "do_export"},
}
LOG_EXPORT_MODES = ("fzlog", "mblog")
EXPORT_MODES = (*LOG_EXPORT_MODES, *_EXPORT_FIELDS)

# mode -> (form fields, file field)
_IMPORT_MODES: dict[str, tuple[dict[str, str], str]] = {
    "fzuser": (
        {"action": "User_import", "sub_action": "do_upload", "passwd_mode": "enc"},
        DEFAULT_FILE_FIELD,
    ),
    "fzuser_perm": (
        {"action": "User_perm_import", "sub_action": "do_upload"},
        "filename_user_perm",
    ),
    "fzprj": ({"action": "Project_import", "sub_action": "do_upload"}, DEFAULT_FILE_FIELD),
    "fzfolder": ({"action": "Group_import", "sub_action": "do_upload"}, DEFAULT_FILE_FIELD),
}
IMPORT_MODES = tuple(_IMPORT_MODES)

# mode -> page path; "{uid}" is filled in by the caller.
_DELIVERY_EXPORT_PATHS = {
    "authority": "/admin/approve/export/authority",
    "global": "/admin/approve/export/global/",
    "addrbook": "/job/addrbook/?action=export",
    "admin_addrbook": "/admin/addrbook/?action=export&uid={uid}",
}
DELIVERY_EXPORT_MODES = tuple(_DELIVERY_EXPORT_PATHS)

# mode -> (page path, file field, replace)
_DELIVERY_IMPORT_MODES: dict[str, tuple[str, str, bool]] = {
    "authority": ("/admin/approve/import/authority", DEFAULT_DELIVERY_FILE_FIELD, False),
    "global": ("/admin/approve/import/global/", DEFAULT_DELIVERY_FILE_FIELD, False),
    "addrbook": ("/job/addrbook/?action=import", ADDRBOOK_FILE_FIELD, False),
    "admin_addrbook": ("/admin/addrbook/?action=import", ADDRBOOK_FILE_FIELD, False),
    "admin_addrbook_replace": ("/admin/addrbook/?action=import", ADDRBOOK_FILE_FIELD, True),
}
DELIVERY_IMPORT_MODES = tuple(_DELIVERY_IMPORT_MODES)


def one_month_before(day: date) -> date:
    """Same day of the previous month, clamped to that month's length."""
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def resolve_date_range(start: date | None, end: date | None) -> tuple[date, date]:
    """Default a missing end to today and a missing start to one month ago."""
    today = date.today()
    return (start or one_month_before(today), end or today)


def access_log_fields(start: date, end: date) -> dict[str, str]:
    """Form fields of the project access log export."""
    return {
        "action": "History",
        "sub_action": "do_export",
        "start_year_selected": f"{start:%Y}",
        "start_month_selected": f"{start:%m}",
        "start_day_selected": f"{start:%d}",
        "end_year_selected": f"{end:%Y}",
        "end_month_selected": f"{end:%m}",
        "end_day_selected": f"{end:%d}",
        "folder_selected": "",
        "search_text": "",
    }


def delivery_log_fields(start: date, end: date) -> dict[str, str]:
    """Form fields of the delivery history export; covers whole days."""
    fields = {
        "tm_type": "mtime",
        "tm_s_y": f"{start:%Y}",
        "tm_s_c": f"{start:%m}",
        "tm_s_d": f"{start:%d}",
        "tm_s_h": "00",
        "tm_s_m": "00",
        "tm_e_y": f"{end:%Y}",
        "tm_e_c": f"{end:%m}",
        "tm_e_d": f"{end:%d}",
        "tm_e_h": "23",
        "tm_e_m": "59",
        "subj": "",
        "ps": "",
    }
    for event in ("new", "accepted", "declined", "canceled", "download", "upload", "delete"):
        fields[f"ac_{event}"] = "1"
    fields.update({"limit": "20000", "csv": "csv", "deleted_user": "0"})
    return fields


class AdminService:
    """
    Service for administrator CSV exports and imports.

    Exports are streamed to ``<destination>.part`` and renamed once
    complete. Named modes map to the form fields or page paths the server
    expects; unknown modes raise InvalidModeError before any request.
    """

    def __init__(
        self, http: AsyncHttpClient, session: SessionManager, config: FileZenConfig
    ) -> None:
        self._http = http
        self._session = session
        self._config = config

    async def export_csv(self, fields: Mapping[str, str], destination: Path) -> Path:
        """Export a CSV from the main CGI endpoint to ``destination``."""
        async with self._session.exclusive() as token:
            async with admin.export_csv(self._http, token, fields) as response:
                self._http.raise_for_status(response, operation="export csv")
                await save_response(response, destination)
        logger.info("CSV exported", action=fields.get("action"), destination=str(destination))
        return destination

    async def import_csv(
        self, fields: Mapping[str, str], source: Path, file_field: str = DEFAULT_FILE_FIELD
    ) -> None:
        """
        Import a CSV file through the main CGI endpoint.

        Raises:
            EnvelopeError: If the server rejects the import.
        """
        async with self._session.exclusive() as token:
            with source.open("rb") as content:
                envelope = await admin.import_csv(
                    self._http, token, fields, file_field, source.name, content
                )
            self._session.apply(envelope)
        logger.info("CSV imported", action=fields.get("action"), source=source.name)

    async def export_delivery_log(self, fields: Mapping[str, str], destination: Path) -> Path:
        """Export the delivery history to ``destination``."""
        async with self._session.exclusive() as token:
            async with admin.export_delivery_log(self._http, token, fields) as response:
                self._http.raise_for_status(response, operation="export delivery log")
                await save_response(response, destination)
        logger.info("Delivery log exported", destination=str(destination))
        return destination

    async def export_delivery_csv(self, path: str, destination: Path) -> Path:
        """Export the CSV served by a delivery admin page to ``destination``."""
        async with self._session.exclusive() as token:
            async with admin.export_delivery_csv(
                self._http, token, path, accept_language=self._config.accept_language
            ) as response:
                self._http.raise_for_status(response, operation="export delivery csv")
                await save_response(response, destination)
        logger.info("Delivery CSV exported", path=path, destination=str(destination))
        return destination

    async def import_delivery_csv(
        self,
        path: str,
        source: Path,
        file_field: str = DEFAULT_DELIVERY_FILE_FIELD,
        *,
        uid: str = "",
        replace: bool = False,
    ) -> None:
        """
        Import a CSV file through a delivery admin page.

        Raises:
            ProtocolMismatchError: If the page reports the import as rejected.
        """
        async with self._session.exclusive() as token:
            with source.open("rb") as content:
                await admin.import_delivery_csv(
                    self._http,
                    token,
                    path,
                    file_field,
                    source.name,
                    content,
                    uid=uid,
                    replace=replace,
                    accept_language=self._config.accept_language,
                )
        logger.info("Delivery CSV imported", path=path, source=source.name)

    async def admin_export(
        self,
        mode: str,
        destination: Path,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> Path:
        """
        Export settings or logs by mode name.

        Args:
            mode: One of EXPORT_MODES.
            destination: Local CSV path.
            start: First day of a log export; defaults to one month ago.
            end: Last day of a log export; defaults to today.

        Raises:
            InvalidModeError: If ``mode`` is unknown.
        """
        if mode in LOG_EXPORT_MODES:
            start, end = resolve_date_range(start, end)
            if mode == "fzlog":
                return await self.export_csv(access_log_fields(start, end), destination)
            return await self.export_delivery_log(delivery_log_fields(start, end), destination)
        if (fields := _EXPORT_FIELDS.get(mode)) is None:
            msg = f"Invalid admin export mode: {mode}"
            raise InvalidModeError(msg, mode=mode)
        return await self.export_csv(fields, destination)

    async def admin_import(self, mode: str, source: Path) -> None:
        """
        Import settings by mode name.

        Raises:
            InvalidModeError: If ``mode`` is not one of IMPORT_MODES.
        """
        if (entry := _IMPORT_MODES.get(mode)) is None:
            msg = f"Invalid admin import mode: {mode}"
            raise InvalidModeError(msg, mode=mode)
        fields, file_field = entry
        await self.import_csv(fields, source, file_field)

    async def mb_admin_export(self, mode: str, destination: Path, *, uid: str = "") -> Path:
        """
        Export delivery settings by mode name.

        Args:
            mode: One of DELIVERY_EXPORT_MODES.
            destination: Local CSV path.
            uid: User whose address book is exported (``admin_addrbook``).

        Raises:
            InvalidModeError: If ``mode`` is unknown.
        """
        if (path := _DELIVERY_EXPORT_PATHS.get(mode)) is None:
            msg = f"Invalid delivery export mode: {mode}"
            raise InvalidModeError(msg, mode=mode)
        return await self.export_delivery_csv(path.format(uid=uid), destination)

    async def mb_admin_import(self, mode: str, source: Path, *, uid: str = "") -> None:
        """
        Import delivery settings by mode name.

        Raises:
            InvalidModeError: If ``mode`` is not one of DELIVERY_IMPORT_MODES.
        """
        if (entry := _DELIVERY_IMPORT_MODES.get(mode)) is None:
            msg = f"Invalid delivery import mode: {mode}"
            raise InvalidModeError(msg, mode=mode)
        path, file_field, replace = entry
        await self.import_delivery_csv(path, source, file_field, uid=uid, replace=replace)
