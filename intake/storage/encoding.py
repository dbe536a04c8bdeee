"""
Transport encoding for attachment payloads.
Imports carry attachments as base64 text; everything is decoded and
size-checked here, before any transaction is opened.
"""

import base64
import binascii
import re
from typing import Iterable, Optional

from intake.config import settings
from intake.exceptions import AttachmentTooLargeError, ImportPayloadError
from intake.schemas.submissions import (
    AttachmentUpload,
    EncodedAttachment,
    SubmissionCreate,
    SubmissionFields,
)

# "data:application/pdf;base64," prefix as produced by browser FileReader
_DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def decode_base64(text: str) -> bytes:
    """Decode base64 text, tolerating a data-URL prefix and line breaks."""
    cleaned = _WHITESPACE.sub("", _DATA_URL_PREFIX.sub("", text))
    return base64.b64decode(cleaned, validate=True)


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def check_size(attachments: Iterable[AttachmentUpload], max_bytes: Optional[int] = None) -> None:
    """Raise AttachmentTooLargeError for the first payload over the limit."""
    limit = settings.max_attachment_bytes if max_bytes is None else max_bytes
    for att in attachments:
        if len(att.data) > limit:
            raise AttachmentTooLargeError(att.filename, len(att.data), limit)


def decode_attachments(
    attachments: Iterable[EncodedAttachment],
    index: int = 0,
    max_bytes: Optional[int] = None,
) -> list[AttachmentUpload]:
    decoded = []
    for att in attachments:
        try:
            data = decode_base64(att.data)
        except (binascii.Error, ValueError) as e:
            raise ImportPayloadError(index, att.filename, f"invalid base64 ({e})") from e
        decoded.append(AttachmentUpload(filename=att.filename, mime_type=att.mime_type, data=data))
    check_size(decoded, max_bytes)
    return decoded


def to_create_payload(
    item: SubmissionFields,
    attachments: Iterable[EncodedAttachment],
    index: int = 0,
    max_bytes: Optional[int] = None,
) -> SubmissionCreate:
    """Turn a transport-encoded submission into a store create payload."""
    fields = item.model_dump(exclude={"attachments"})
    return SubmissionCreate(
        **fields,
        attachments=decode_attachments(attachments, index=index, max_bytes=max_bytes),
    )
