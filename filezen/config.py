"""
FileZen client configuration.
"""

from dataclasses import dataclass
from pathlib import Path

MIB = 1024 * 1024


@dataclass(frozen=True, kw_only=True)
class ClientCertificate:
    """
    Client certificate for mutual TLS.

    The key must already be in PEM form; converting PKCS#12 bundles is left
    to the caller.

    Attributes:
        cert_file: PEM certificate (may also hold the key).
        key_file: PEM private key, if separate from the certificate.
        password: Password of an encrypted private key.
    """

    cert_file: Path
    key_file: Path | None = None
    password: str | None = None


@dataclass(frozen=True, kw_only=True)
class FileZenConfig:
    """
    Attributes:
        url: Base URL of the FileZen server (e.g. "https://filezen.example").
        timeout: Request timeout in seconds, applied to every HTTP call.
        user_agent: User-Agent header value; the server filters on it.
        chunk_size: Uploads larger than this are split into chunks of this size.
        delivery_max_size: Largest file accepted for a secondary delivery.
        accept_language: Accept-Language sent to the delivery admin pages.
        verify_tls: Whether to verify the server certificate.
        ca_cert: Optional CA bundle used instead of the system store.
        client_cert: Optional client certificate for mutual TLS.
    """

    url: str = ""
    timeout: float = 120.0
    user_agent: str = "FileZenRA"
    chunk_size: int = 50 * MIB
    delivery_max_size: int = 200 * MIB
    accept_language: str = "ja,en"
    verify_tls: bool = True
    ca_cert: Path | None = None
    client_cert: ClientCertificate | None = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if self.chunk_size <= 0:
            msg = "chunk_size must be positive"
            raise ValueError(msg)
        if self.delivery_max_size <= 0:
            msg = "delivery_max_size must be positive"
            raise ValueError(msg)
        if not self.user_agent:
            msg = "user_agent must not be empty"
            raise ValueError(msg)
