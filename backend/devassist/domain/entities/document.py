"""Domain entities for project documents and the attachments derived from them."""

import re
from dataclasses import dataclass

_DATA_URI_PATTERN = re.compile(r"^data:([^;]+);base64,(.*)$", re.DOTALL)


@dataclass(frozen=True)
class ProjectDocument:
    """A document attached to a project.

    ``content`` is either plain text or a ``data:<mime>;base64,<payload>`` URI.
    ``extracted_text`` is filled in by upload-time text extraction, if any.
    """

    id: str
    title: str
    content: str
    mime_type: str = "text/plain"
    extracted_text: str | None = None

    @property
    def is_data_uri(self) -> bool:
        return self.content.startswith("data:")


@dataclass(frozen=True)
class Attachment:
    """A binary document forwarded to the provider as an inline part."""

    document_id: str
    mime_type: str
    data: str  # base64 payload, without the data-URI prefix

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def parse_data_uri(content: str) -> tuple[str, str] | None:
    """Split a base64 data URI into ``(mime_type, payload)``.

    Returns None when the content is not a well-formed base64 data URI.
    """
    match = _DATA_URI_PATTERN.match(content)
    if match is None:
        return None
    return match.group(1), match.group(2)
