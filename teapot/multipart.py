"""Multipart form-data bodies for binary uploads.

Wrap the result in a ``Payload`` and send it together with the header
from ``multipart_content_type`` using the same boundary.

Example:
    Uploading a file::

        boundary = "teapot-boundary"
        body = Payload(multipart_data(png_bytes, boundary, "avatar.png", "image/png"))
        client.post(
            "/avatar",
            on_result,
            body=body,
            headers={"Content-Type": multipart_content_type(boundary)},
        )
"""

import httpx

# httpx needs a URL to build a request; only the encoded body is used.
_ENCODING_URL = "http://multipart.invalid/"


def multipart_content_type(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def multipart_data(
    data: bytes,
    boundary: str,
    filename: str,
    content_type: str = "application/octet-stream",
    field_name: str = "image",
) -> bytes:
    """Encode one file as a multipart/form-data body.

    Encoding is done by httpx, which escapes quotes and line breaks in
    the field name and file name.

    Args:
        data: The file contents.
        boundary: Part separator. Must match the Content-Type header.
        filename: File name reported to the server.
        content_type: MIME type of the file.
        field_name: Form field the file is attached to.

    Returns:
        The encoded body.
    """
    request = httpx.Request(
        "POST",
        _ENCODING_URL,
        files={field_name: (filename, data, content_type)},
        headers={"Content-Type": multipart_content_type(boundary)},
    )
    return request.read()
