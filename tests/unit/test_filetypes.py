"""
Tests for file family detection and spreadsheet signatures.
"""

import pytest

from extractors.filetypes import (
    FileFamily,
    detect_family,
    has_spreadsheet_signature,
    needs_signature_check,
    suffix_for,
)


class TestDetectFamily:

    @pytest.mark.parametrize("mime,family", [
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", FileFamily.DOCUMENT),
        ("application/vnd.ms-excel", FileFamily.SPREADSHEET),
        ("application/vnd.openxmlformats-officedocument.presentationml.presentation", FileFamily.PRESENTATION),
        ("application/pdf", FileFamily.PDF),
        ("image/heic", FileFamily.IMAGE),
        ("text/x-python", FileFamily.TEXT),
        ("text/csv; charset=utf-8", FileFamily.TEXT),
        ("application/zip", FileFamily.ARCHIVE),
    ])
    def test_by_mime(self, mime: str, family: FileFamily):
        assert detect_family(mime, "") is family

    def test_mime_wins_over_extension(self):
        assert detect_family("application/pdf", "misnamed.docx") is FileFamily.PDF

    @pytest.mark.parametrize("name,family", [
        ("Report.DOCX", FileFamily.DOCUMENT),
        ("budget.xlsx", FileFamily.SPREADSHEET),
        ("scan.pdf", FileFamily.PDF),
        ("notes.md", FileFamily.TEXT),
    ])
    def test_octet_stream_falls_back_to_extension(self, name: str, family: FileFamily):
        assert detect_family("application/octet-stream", name) is family

    def test_unknown(self):
        assert detect_family(None, "blob.bin") is FileFamily.OTHER
        assert detect_family(None, "") is FileFamily.OTHER


class TestSignatures:

    def test_suffix_prefers_file_name(self):
        assert suffix_for("application/vnd.ms-excel", "book.xlsx") == ".xlsx"

    def test_suffix_from_mime(self):
        assert suffix_for("application/pdf", "scan") == ".pdf"

    def test_only_binary_spreadsheets_checked(self):
        assert needs_signature_check(None, "book.xlsx") is True
        assert needs_signature_check("application/vnd.ms-excel", "book") is True
        assert needs_signature_check(None, "book.ods") is False
        assert needs_signature_check(None, "data.csv") is False

    def test_zip_and_ole2_headers(self):
        assert has_spreadsheet_signature(b"PK\x03\x04rest") is True
        assert has_spreadsheet_signature(b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1rest") is True
        assert has_spreadsheet_signature(b"<html>") is False
        assert has_spreadsheet_signature(b"") is False
