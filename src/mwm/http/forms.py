"""Form body parsing: URL-encoded and multipart.

URL-encoded bodies go through ``urllib.parse``; multipart bodies are fed
to ``python-multipart``'s streaming parser. Either way the result is a
read-only ``FormData`` that the validation layer binds to schemas.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part from a multipart submission, held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FormData(Mapping[str, str]):
    """Parsed form fields plus uploaded files.

    ``form["name"]`` is the first value; ``get_list`` returns every value
    (checkbox groups such as a role's ``permissions``).
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        self._data = data or {}
        self._files = files or {}

    @property
    def files(self) -> Mapping[str, UploadFile]:
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FormData({self._data!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, ()))

    def replace(self, **values: str) -> "FormData":
        """A copy with *values* replacing (or adding) single-valued fields."""
        data = dict(self._data)
        for key, value in values.items():
            data[key] = [value]
        return FormData(data, dict(self._files))


async def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a request body into ``FormData``.

    Raises:
        ValueError: The content type is not a form encoding, or a
            multipart body has no boundary.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/x-www-form-urlencoded":
        return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))
    if media_type == "multipart/form-data":
        return _parse_multipart(body, content_type)
    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}
    part: dict[str, Any] = {}
    header_field = bytearray()
    header_value = bytearray()

    def on_part_begin() -> None:
        part.clear()
        part["headers"] = {}
        part["body"] = bytearray()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        part["headers"][header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        part["body"].extend(chunk[start:end])

    def on_part_end() -> None:
        disposition = part["headers"].get("content-disposition", "")
        _, params = parse_options_header(disposition.encode("latin-1"))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is not None:
            files[field_name] = UploadFile(
                filename=filename.decode("utf-8"),
                content_type=part["headers"].get("content-type", "application/octet-stream"),
                content=bytes(part["body"]),
            )
        else:
            data.setdefault(field_name, []).append(
                part["body"].decode("utf-8", errors="replace")
            )

    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": on_part_begin,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_header_end": on_header_end,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
        },
    )
    parser.write(body)
    parser.finalize()
    return FormData(data, files)
