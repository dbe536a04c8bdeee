"""
Parser for submission files dropped into the inbox by the web submission form.

Two document shapes are accepted:
  batch   {"submissions": [ {...}, ... ]}
  single  {"date": ..., "grossAmount": ..., ...}

Items use the form's camelCase keys and are normalised into
SubmissionImportItem instances.
"""

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from intake.exceptions import InboxFileError
from intake.models.enums import SubmissionType
from intake.schemas.submissions import SubmissionImportItem

logger = structlog.get_logger(__name__)


def _normalise_attachments(raw: dict, source: str, index: int) -> list[dict]:
    # The form writes a single "attachment"; older exports use a list
    single = raw.get("attachment")
    if single:
        if not isinstance(single, dict):
            raise InboxFileError(source, f"submission #{index}: attachment is not an object")
        return [{
            "filename": single.get("name") or single.get("filename"),
            "mime_type": single.get("mimeType"),
            "data": single.get("dataBase64") or single.get("data"),
        }]

    attachments = raw.get("attachments") or []
    if not isinstance(attachments, list):
        raise InboxFileError(source, f"submission #{index}: attachments is not a list")
    normalised = []
    for att in attachments:
        if not isinstance(att, dict):
            raise InboxFileError(source, f"submission #{index}: attachment entry is not an object")
        normalised.append({
            "filename": att.get("filename") or att.get("name"),
            "mime_type": att.get("mimeType"),
            "data": att.get("data") or att.get("dataBase64"),
        })
    return normalised


def _normalise_item(raw: dict, source: str, index: int) -> dict:
    if not isinstance(raw, dict):
        raise InboxFileError(source, f"submission #{index} is not an object")
    external_id = raw.get("externalId") or raw.get("id")
    return {
        "external_id": str(external_id) if external_id is not None else None,
        "date": raw.get("date"),
        "type": raw.get("type") or SubmissionType.OUT.value,
        "sphere": raw.get("sphere") or None,
        "payment_method": raw.get("paymentMethod") or None,
        "description": raw.get("description"),
        "gross_amount": raw.get("grossAmount"),
        "category_hint": raw.get("categoryHint"),
        "counterparty": raw.get("counterparty"),
        "submitted_by": raw.get("submittedBy"),
        "attachments": _normalise_attachments(raw, source, index),
    }


def parse_submission_document(data: Any, source: str = "<memory>") -> list[SubmissionImportItem]:
    """Normalise an already-loaded submission document into import items."""
    if isinstance(data, dict) and isinstance(data.get("submissions"), list):
        raw_items = data["submissions"]
    elif isinstance(data, dict) and data.get("date") and "grossAmount" in data:
        raw_items = [data]
    else:
        raise InboxFileError(source, "not a submission document")

    items = []
    for index, raw in enumerate(raw_items):
        fields = _normalise_item(raw, source, index)
        try:
            items.append(SubmissionImportItem.model_validate(fields))
        except ValidationError as e:
            raise InboxFileError(source, f"submission #{index}: {e.error_count()} invalid field(s)") from e

    logger.debug("inbox_document_parsed", source=source, submissions=len(items))
    return items


def parse_submission_file(path: Path) -> list[SubmissionImportItem]:
    """Read and normalise one inbox file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InboxFileError(str(path), f"unreadable JSON ({e})") from e
    return parse_submission_document(data, source=str(path))
