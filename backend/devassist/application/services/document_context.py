"""Document context assembly — RAG-lite injection of project documents.

Turns a project's documents into two things: a text block appended to the
system instruction, and the inline attachments a given provider accepts.
Output depends only on the input, so assembling twice yields identical
results.
"""

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from devassist.application.services.prompts import (
    ATTACHED_FILE_NOTE,
    CITATION_INSTRUCTION,
    DOCUMENT_BLOCK_TEMPLATE,
    DOCUMENT_CONTEXT_HEADER,
    UNREADABLE_BINARY_NOTE,
)
from devassist.domain.entities import Attachment, ProjectDocument, parse_data_uri

logger = logging.getLogger(__name__)

EXTRACTED_TEXT_LIMIT = 5000
PLAIN_TEXT_LIMIT = 2000

# Binary types any supported model can read inline. Provider adapters keep
# their own, narrower or wider, attachment whitelists.
INLINE_MIME_TYPES = frozenset({
    "image/png", "image/jpeg", "image/webp",
    "audio/wav", "audio/mp3", "audio/aiff", "audio/aac", "audio/ogg", "audio/flac",
    "video/mp4", "video/mpeg", "video/mov", "video/avi", "video/x-flv",
    "video/mpg", "video/webm", "video/wmv", "video/3gpp",
    "application/pdf",
})


@dataclass
class DocumentContext:
    """Result of assembling documents for one provider."""

    prompt_suffix: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    skipped_attachments: int = 0


class DocumentContextAssembler:
    """Builds the document part of a chat request."""

    def assemble(
        self,
        documents: Sequence[ProjectDocument],
        supported_mimes: Collection[str],
    ) -> DocumentContext:
        """Build the prompt suffix and the provider's attachment list."""
        if not documents:
            return DocumentContext()

        attachments, skipped = self.collect_attachments(documents, supported_mimes)
        return DocumentContext(
            prompt_suffix=self.build_prompt_suffix(documents),
            attachments=attachments,
            skipped_attachments=skipped,
        )

    @staticmethod
    def build_prompt_suffix(documents: Sequence[ProjectDocument]) -> str:
        """Render one labeled block per document, in input order."""
        if not documents:
            return ""

        parts = [DOCUMENT_CONTEXT_HEADER]
        for doc in documents:
            parts.append(
                DOCUMENT_BLOCK_TEMPLATE.format(
                    title=doc.title, id=doc.id, body=_document_body(doc)
                )
            )
        parts.append(CITATION_INSTRUCTION)
        return "".join(parts)

    @staticmethod
    def collect_attachments(
        documents: Sequence[ProjectDocument],
        supported_mimes: Collection[str],
    ) -> tuple[list[Attachment], int]:
        """Extract inline attachments for a provider.

        Binary documents whose MIME type the provider does not accept are
        skipped, not rejected. Returns the attachments and the skip count.
        """
        attachments: list[Attachment] = []
        skipped = 0

        for doc in documents:
            if not doc.is_data_uri:
                continue

            parsed = parse_data_uri(doc.content)
            if parsed is None or parsed[0] not in supported_mimes:
                skipped += 1
                logger.info(
                    "Skipping attachment for document %s (mime=%s): not supported by provider",
                    doc.id,
                    parsed[0] if parsed else doc.mime_type,
                )
                continue

            mime_type, payload = parsed
            attachments.append(
                Attachment(document_id=doc.id, mime_type=mime_type, data=payload)
            )

        return attachments, skipped


def _document_body(doc: ProjectDocument) -> str:
    if doc.extracted_text:
        return doc.extracted_text[:EXTRACTED_TEXT_LIMIT]
    if not doc.is_data_uri:
        return doc.content[:PLAIN_TEXT_LIMIT]

    parsed = parse_data_uri(doc.content)
    if parsed is not None and parsed[0] in INLINE_MIME_TYPES:
        return ATTACHED_FILE_NOTE
    return UNREADABLE_BINARY_NOTE.format(mime_type=doc.mime_type)
