"""
FileZen API client layer.

Provides async HTTP communication with the FileZen CGI endpoints.
"""

from filezen.api.envelope import check_envelope, parse_envelope
from filezen.api.http_client import AsyncHttpClient, sanitize_for_log

__all__ = ["AsyncHttpClient", "check_envelope", "parse_envelope", "sanitize_for_log"]
