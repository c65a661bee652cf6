"""Secondary delivery endpoint."""

from typing import BinaryIO

from filezen.api.endpoints.files import OCTET_STREAM
from filezen.api.http_client import DELIVERY_CGI_PATH, AsyncHttpClient
from filezen.models.delivery import DeliveryRequest
from filezen.models.envelope import Envelope
from filezen.models.session import SessionToken

SEND_PATH = f"{DELIVERY_CGI_PATH}/job/api_send/"


async def send_delivery(
    http: AsyncHttpClient,
    token: SessionToken,
    request: DeliveryRequest,
    filename: str,
    content: BinaryIO,
) -> Envelope:
    """
    Send a file to external recipients.

    Args:
        http: Configured async HTTP client.
        token: Current session token.
        request: Delivery description.
        filename: Name of the attached file.
        content: Open binary file.

    Returns:
        Envelope of the accepted delivery.
    """
    return await http.request_envelope(
        SEND_PATH,
        operation="send delivery",
        data={
            **request.form_fields(),
            "respmode": "xml",
            "valid_key": token.valid_key,
        },
        files={"file1": (filename, content, OCTET_STREAM)},
        token=token,
    )
