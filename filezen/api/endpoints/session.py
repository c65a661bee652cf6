"""Session-related API endpoints (login, logout, reload)."""

from filezen.api.envelope import check_envelope
from filezen.api.http_client import CGI_PATH, AsyncHttpClient
from filezen.exceptions import AuthenticationError, EnvelopeError
from filezen.models.envelope import Envelope
from filezen.models.session import SESSION_COOKIE, SessionToken


async def login(
    http: AsyncHttpClient, user_id: str, password: str
) -> tuple[SessionToken, Envelope]:
    """
    Authenticate and open a session.

    Args:
        http: Configured async HTTP client.
        user_id: FileZen user ID.
        password: Account password.

    Returns:
        The new session token and the login envelope (with the tree snapshot).

    Raises:
        AuthenticationError: If the server rejects the credentials.
        TransportError: If the request fails.
    """
    response = await http.request(
        "POST",
        CGI_PATH,
        operation="login",
        data={
            "respmode": "xml",
            "action": "Login",
            "sub_action": "auth",
            "user_id": user_id,
            "password": password,
        },
    )
    envelope = http.parse_body(response, operation="login")
    try:
        check_envelope(envelope, operation="login")
    except EnvelopeError as e:
        raise AuthenticationError(e.message, server_message=e.server_message) from e

    token = SessionToken(
        session_id=response.cookies.get(SESSION_COOKIE) or "",
        valid_key=envelope.valid_key or "",
    )
    return token, envelope


async def logout(http: AsyncHttpClient, token: SessionToken) -> None:
    """Logout; the response is not inspected."""
    await http.request(
        "POST",
        CGI_PATH,
        operation="logout",
        data={"respmode": "xml", "action": "Logout", "sub_action": "show"},
        token=token,
    )


async def reload(http: AsyncHttpClient, token: SessionToken) -> Envelope:
    """
    Re-fetch the tree snapshot.

    Returns:
        Envelope with the tree and a rotated valid key.
    """
    return await http.request_envelope(
        CGI_PATH,
        operation="reload",
        data={
            "respmode": "xml",
            "action": "Mainmenu_file",
            "sub_action": "show",
            "valid_key": token.valid_key,
        },
        token=token,
    )
