"""
Tests for the inbox file parser.
"""

import json
from decimal import Decimal

import pytest

from intake.exceptions import InboxFileError
from intake.inbox.parser import parse_submission_document, parse_submission_file


class TestBatchDocument:

    def test_batch_shape(self):
        items = parse_submission_document({
            "submissions": [
                {"date": "2024-03-01", "grossAmount": 12.5, "submittedBy": "carol", "type": "IN"},
                {"date": "2024-03-02", "grossAmount": 8, "submittedBy": "dave"},
            ]
        })
        assert len(items) == 2
        assert items[0].type == "IN"
        assert items[0].gross_amount == Decimal("12.5")
        assert items[1].type == "OUT"
        assert items[1].submitted_by == "dave"

    def test_camel_case_fields_are_mapped(self):
        (item,) = parse_submission_document({
            "submissions": [{
                "externalId": "form-9",
                "date": "2024-03-01",
                "grossAmount": "19.99",
                "submittedBy": "carol",
                "sphere": "ZWECK",
                "paymentMethod": "BAR",
                "categoryHint": "travel",
                "counterparty": "Rail Co",
                "description": "Train ticket",
            }]
        })
        assert item.external_id == "form-9"
        assert item.sphere == "ZWECK"
        assert item.payment_method == "BAR"
        assert item.category_hint == "travel"
        assert item.counterparty == "Rail Co"
        assert item.description == "Train ticket"

    def test_external_id_falls_back_to_id(self):
        (item,) = parse_submission_document({
            "submissions": [{"id": 17, "date": "2024-03-01", "grossAmount": 1, "submittedBy": "x"}]
        })
        assert item.external_id == "17"

    def test_attachment_list_variants(self):
        (item,) = parse_submission_document({
            "submissions": [{
                "date": "2024-03-01",
                "grossAmount": 1,
                "submittedBy": "x",
                "attachments": [
                    {"filename": "a.pdf", "mimeType": "application/pdf", "data": "YQ=="},
                    {"name": "b.png", "dataBase64": "Yg=="},
                ],
            }]
        })
        assert [(a.filename, a.data) for a in item.attachments] == [("a.pdf", "YQ=="), ("b.png", "Yg==")]
        assert item.attachments[0].mime_type == "application/pdf"
        assert item.attachments[1].mime_type is None

    def test_empty_optional_enums_become_none(self):
        (item,) = parse_submission_document({
            "submissions": [{
                "date": "2024-03-01", "grossAmount": 1, "submittedBy": "x",
                "sphere": "", "paymentMethod": "",
            }]
        })
        assert item.sphere is None
        assert item.payment_method is None


class TestSingleDocument:

    def test_single_shape_with_form_attachment(self):
        (item,) = parse_submission_document({
            "id": "abc",
            "date": "2024-04-05",
            "grossAmount": 30,
            "submittedBy": "erin",
            "attachment": {"name": "bill.jpg", "mimeType": "image/jpeg", "dataBase64": "aGk="},
        })
        assert item.external_id == "abc"
        assert item.type == "OUT"
        assert len(item.attachments) == 1
        assert item.attachments[0].filename == "bill.jpg"
        assert item.attachments[0].data == "aGk="


class TestInvalidDocuments:

    @pytest.mark.parametrize("data", [
        [],
        {"foo": "bar"},
        {"date": "2024-01-01"},
        {"submissions": "nope"},
    ])
    def test_unrecognised_shape(self, data):
        with pytest.raises(InboxFileError):
            parse_submission_document(data)

    def test_invalid_item_reports_index(self):
        with pytest.raises(InboxFileError, match="#1"):
            parse_submission_document({
                "submissions": [
                    {"date": "2024-03-01", "grossAmount": 1, "submittedBy": "x"},
                    {"date": "not a date", "grossAmount": 1, "submittedBy": "x"},
                ]
            })

    def test_missing_submitter(self):
        with pytest.raises(InboxFileError):
            parse_submission_document({"submissions": [{"date": "2024-03-01", "grossAmount": 1}]})

    def test_non_object_item(self):
        with pytest.raises(InboxFileError):
            parse_submission_document({"submissions": ["x"]})

    @pytest.mark.parametrize("extra", [
        {"attachment": "oops"},
        {"attachment": 7},
        {"attachment": ["a.pdf"]},
        {"attachments": "a.pdf"},
        {"attachments": {"filename": "a.pdf", "data": "YQ=="}},
        {"attachments": ["a.pdf", 3]},
    ])
    def test_malformed_attachments(self, extra):
        doc = {"date": "2024-03-01", "grossAmount": 1, "submittedBy": "x", **extra}
        with pytest.raises(InboxFileError) as exc_info:
            parse_submission_document(doc, source="inbox/form.json")
        assert exc_info.value.path == "inbox/form.json"
        assert "#0" in exc_info.value.message


class TestParseFile:

    def test_reads_json_file(self, tmp_path):
        path = tmp_path / "one.vereino-submission.json"
        path.write_text(json.dumps({"date": "2024-01-10", "grossAmount": 42.5, "submittedBy": "alice"}))
        (item,) = parse_submission_file(path)
        assert item.gross_amount == Decimal("42.5")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(InboxFileError) as exc_info:
            parse_submission_file(path)
        assert exc_info.value.path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InboxFileError):
            parse_submission_file(tmp_path / "missing.json")
