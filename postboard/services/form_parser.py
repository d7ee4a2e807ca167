"""Multipart form decoding for blog submissions."""

import logging
from collections.abc import Iterable

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import Request

from postboard.models.post import SubmittedForm

logger = logging.getLogger(__name__)

MULTIPART_FORM_DATA = b"multipart/form-data"


class MalformedFormError(Exception):
    """The request body is not a well-formed multipart/form-data body."""


class _PartCollector:
    """python-multipart callbacks that keep every part as ``(name, raw bytes)``.

    Part payloads are never decoded here, whatever their headers say.
    """

    def __init__(self) -> None:
        self.parts: list[tuple[str, bytes]] = []
        self.finished = False
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._name = ""
        self._data = bytearray()

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._data = bytearray()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if disposition is None:
            raise MalformedFormError("Part is missing a Content-Disposition header")
        _, options = parse_options_header(disposition)
        if b"name" not in options:
            raise MalformedFormError("Part has no field name")
        self._name = options[b"name"].decode("utf-8")

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._data += data[start:end]

    def on_part_end(self) -> None:
        self.parts.append((self._name, bytes(self._data)))

    def on_end(self) -> None:
        self.finished = True


def parse_form(fields: Iterable[tuple[str, bytes]]) -> SubmittedForm | None:
    """Build a SubmittedForm from ``(name, raw bytes)`` pairs in arrival order.

    Recognised names are ``body``, ``image``, ``user_name`` and ``avatar``;
    anything else is logged and skipped.  Text fields are decoded as UTF-8;
    ``image`` keeps its bytes as sent.  A repeated name overwrites the
    earlier value.  Returns None when any of ``body``, ``user_name`` or
    ``avatar`` never arrived.  An empty image part counts as no image.
    """
    body: str | None = None
    image: bytes | None = None
    user_name: str | None = None
    avatar_url: str | None = None

    for name, value in fields:
        if name == "body":
            body = value.decode("utf-8")
        elif name == "image":
            image = value or None
        elif name == "user_name":
            user_name = value.decode("utf-8")
        elif name == "avatar":
            avatar_url = value.decode("utf-8")
        else:
            logger.info("Unknown field: '%s', skipping...", name)

    if body is None or user_name is None or avatar_url is None:
        return None

    return SubmittedForm(
        body=body, image=image, user_name=user_name, avatar_url=avatar_url
    )


async def read_parts(request: Request) -> list[tuple[str, bytes]]:
    """Stream the request body through python-multipart, returning raw parts.

    Raises MalformedFormError unless the request is multipart/form-data with
    a boundary and a body that runs to the closing boundary.
    """
    content_type, params = parse_options_header(request.headers.get("content-type", ""))
    content_type = content_type.strip().lower()
    if content_type != MULTIPART_FORM_DATA:
        raise MalformedFormError(
            f"Expected multipart/form-data, got {content_type.decode('latin-1') or 'no content type'}"
        )
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedFormError("Missing boundary in multipart content type")

    collector = _PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        async for chunk in request.stream():
            parser.write(chunk)
        parser.finalize()
    except MultipartParseError as e:
        raise MalformedFormError(f"Invalid multipart body: {e}") from e
    except UnicodeDecodeError as e:
        raise MalformedFormError(f"Field name is not valid UTF-8: {e}") from e

    if not collector.finished:
        raise MalformedFormError("Multipart body ended before the closing boundary")
    return collector.parts


async def read_submission(request: Request) -> SubmittedForm | None:
    """Consume the request body and decode it into a SubmittedForm.

    Raises MalformedFormError for a non-multipart request, broken framing,
    or a text field that is not valid UTF-8.
    """
    parts = await read_parts(request)
    try:
        return parse_form(parts)
    except UnicodeDecodeError as e:
        raise MalformedFormError(f"Text field is not valid UTF-8: {e}") from e
