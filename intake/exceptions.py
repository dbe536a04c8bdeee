"""
Error types raised by the intake engine.
Storage errors from SQLAlchemy are not wrapped; they propagate as-is.
"""

from typing import Optional


class IntakeError(Exception):
    """Base error for rejected intake payloads."""

    def __init__(self, message: str, error_code: str = "ERR_INTAKE"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ImportPayloadError(IntakeError):
    """An attachment in an import batch could not be decoded."""

    def __init__(self, index: int, filename: Optional[str], message: str):
        self.index = index
        self.filename = filename
        super().__init__(
            f"Submission #{index} attachment {filename!r}: {message}",
            error_code="ERR_IMPORT_PAYLOAD",
        )


class AttachmentTooLargeError(IntakeError):
    """A decoded attachment exceeds MAX_ATTACHMENT_SIZE_MB."""

    def __init__(self, filename: str, size_bytes: int, max_bytes: int):
        self.filename = filename
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f"Attachment {filename!r} is {size_bytes} bytes. Max: {max_bytes} bytes",
            error_code="ERR_ATTACHMENT_TOO_LARGE",
        )


class InboxFileError(IntakeError):
    """An inbox file is not a readable submission document."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}", error_code="ERR_INBOX_FILE")
