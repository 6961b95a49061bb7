"""
Tests for Word document conversion.
"""

import io

import pytest
from docx import Document

from adapters.documents import (
    ConversionFormat,
    clean_markdown,
    convert_document,
    docx_to_html,
    docx_to_markdown,
    docx_to_text,
    export_filename,
    markdown_to_docx,
)
from core.exceptions import ConversionError


def _docx_with_bold() -> bytes:
    doc = Document()
    paragraph = doc.add_paragraph("The ")
    paragraph.add_run("garden").bold = True
    paragraph.add_run(" grew.")
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


class TestDocxToMarkdown:
    def test_headings_paragraphs_and_lists(self, docx_bytes):
        result = docx_to_markdown(docx_bytes)

        assert result == "# Garden Report\n\nTomatoes and beans.\n\n- Water daily"

    def test_adjacent_list_items_stay_together(self, docx_factory):
        data = docx_factory(("List Bullet", "one"), ("List Bullet", "two"), ("Normal", "after"))

        assert docx_to_markdown(data) == "- one\n- two\n\nafter"

    def test_numbered_list(self, docx_factory):
        data = docx_factory(("List Number", "first"))
        assert docx_to_markdown(data) == "1. first"

    def test_bold_runs(self):
        assert docx_to_markdown(_docx_with_bold()) == "The **garden** grew."

    def test_table(self):
        doc = Document()
        table = doc.add_table(rows=2, cols=2)
        table.cell(0, 0).text = "Name"
        table.cell(0, 1).text = "Role"
        table.cell(1, 0).text = "Jane"
        table.cell(1, 1).text = "Writer"
        buffer = io.BytesIO()
        doc.save(buffer)

        result = docx_to_markdown(buffer.getvalue())

        assert result.splitlines() == ["| Name | Role |", "| --- | --- |", "| Jane | Writer |"]

    def test_invalid_bytes(self):
        with pytest.raises(ConversionError):
            docx_to_markdown(b"not a zip file")


class TestOtherFormats:
    def test_html(self, docx_bytes):
        html = docx_to_html(docx_bytes)

        assert "<h1>Garden Report</h1>" in html
        assert "<li>Water daily</li>" in html

    def test_raw_text(self, docx_bytes):
        assert docx_to_text(docx_bytes) == "Garden Report\nTomatoes and beans.\nWater daily"

    @pytest.mark.parametrize(
        "fmt,expected",
        [
            (ConversionFormat.MARKDOWN, "# Garden Report"),
            (ConversionFormat.HTML, "<h1>"),
            (ConversionFormat.RAW, "Garden Report\n"),
        ],
    )
    def test_convert_document(self, docx_bytes, fmt, expected):
        assert expected in convert_document(docx_bytes, fmt)


class TestMarkdownToDocx:
    def test_renders_title_byline_and_blocks(self):
        data = markdown_to_docx("## Section\n\n- **bold** item\n1. step\nPlain [link](http://x)", "My Title", "Jane Doe")

        doc = Document(io.BytesIO(data))
        texts = [(p.style.name, p.text) for p in doc.paragraphs if p.text]

        assert texts[0] == ("Title", "My Title")
        assert texts[1][1] == "By Jane Doe"
        assert ("Heading 2", "Section") in texts
        assert ("List Bullet", "bold item") in texts
        assert ("List Number", "step") in texts
        assert texts[-1][1] == "Plain link"

    def test_empty_content(self):
        doc = Document(io.BytesIO(markdown_to_docx(None, "T", "A")))
        assert doc.paragraphs[0].text == "T"


class TestHelpers:
    def test_clean_markdown(self):
        assert clean_markdown("**a** and __b__ and [c](d)") == "a and b and c"

    def test_export_filename(self):
        assert export_filename('What: "Now"?') == "What- -Now--"
        assert export_filename("") == "article"
        assert len(export_filename("x" * 300)) == 100
