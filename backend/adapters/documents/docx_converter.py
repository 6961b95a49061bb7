"""
Word document conversion.

Converts submitted .docx files to Markdown (stored as article content) or
HTML for preview, and renders article Markdown back into a .docx for
export, using python-docx in both directions.
"""

import io
import logging
import re
import zipfile
from enum import StrEnum

import markdown
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.shared import Pt
from docx.table import Table
from docx.text.paragraph import Paragraph

from core.exceptions import ConversionError

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ConversionFormat(StrEnum):
    """Output formats for document conversion."""

    MARKDOWN = "markdown"
    HTML = "html"
    RAW = "raw"


def _load(data: bytes):
    try:
        return Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning("Could not open Word document: %s", e)
        raise ConversionError("File is not a valid Word (.docx) document") from e


def _heading_level(style_name: str) -> int:
    if style_name == "Title":
        return 1
    match = re.match(r"Heading (\d)", style_name)
    return min(int(match.group(1)), 6) if match else 0


def _runs_to_markdown(paragraph: Paragraph) -> str:
    """Render runs with bold/italic markers, merging adjacent runs with equal formatting."""
    segments: list[tuple[bool, bool, str]] = []
    for run in paragraph.runs:
        if not run.text:
            continue
        fmt = (bool(run.bold), bool(run.italic))
        if segments and segments[-1][:2] == fmt:
            segments[-1] = (*fmt, segments[-1][2] + run.text)
        else:
            segments.append((*fmt, run.text))

    parts = []
    for bold, italic, text in segments:
        stripped = text.strip()
        if not stripped or not (bold or italic):
            parts.append(text)
            continue
        marker = "***" if bold and italic else "**" if bold else "*"
        lead = text[: len(text) - len(text.lstrip())]
        trail = text[len(text.rstrip()):]
        parts.append(f"{lead}{marker}{stripped}{marker}{trail}")
    return "".join(parts).strip()


def _is_list_paragraph(paragraph: Paragraph) -> bool:
    p_pr = paragraph._p.pPr
    return p_pr is not None and p_pr.numPr is not None


def _paragraph_to_markdown(paragraph: Paragraph) -> tuple[str, bool]:
    """Return (markdown, is_list_item)."""
    style_name = paragraph.style.name if paragraph.style is not None else ""
    text = _runs_to_markdown(paragraph)
    if not text:
        return "", False

    level = _heading_level(style_name)
    if level:
        # Headings carry their own weight; drop inline emphasis
        return f"{'#' * level} {paragraph.text.strip()}", False
    if style_name.startswith("List Number"):
        return f"1. {text}", True
    if style_name.startswith("List Bullet") or _is_list_paragraph(paragraph):
        return f"- {text}", True
    return text, False


def _table_to_markdown(table: Table) -> str:
    rows = [[cell.text.strip().replace("|", "\\|") for cell in row.cells] for row in table.rows]
    if not rows:
        return ""
    width = max(len(r) for r in rows)
    rows = [r + [""] * (width - len(r)) for r in rows]
    lines = ["| " + " | ".join(rows[0]) + " |", "|" + " --- |" * width]
    lines.extend("| " + " | ".join(r) + " |" for r in rows[1:])
    return "\n".join(lines)


def docx_to_markdown(data: bytes) -> str:
    """
    Convert a .docx file to Markdown.

    Args:
        data: Raw .docx bytes

    Returns:
        Markdown text

    Raises:
        ConversionError: If the document cannot be read
    """
    doc = _load(data)
    blocks: list[str] = []
    in_list = False

    for child in doc.element.body.iterchildren():
        tag = child.tag.rsplit("}", 1)[-1]
        if tag == "p":
            text, is_item = _paragraph_to_markdown(Paragraph(child, doc))
            if not text:
                continue
            if is_item and in_list:
                blocks[-1] = f"{blocks[-1]}\n{text}"
            else:
                blocks.append(text)
            in_list = is_item
        elif tag == "tbl":
            rendered = _table_to_markdown(Table(child, doc))
            if rendered:
                blocks.append(rendered)
            in_list = False

    return "\n\n".join(blocks)


def docx_to_html(data: bytes) -> str:
    """Convert a .docx file to HTML via its Markdown rendering."""
    return markdown.markdown(docx_to_markdown(data), extensions=["tables"])


def docx_to_text(data: bytes) -> str:
    """Plain paragraph text, one paragraph per line."""
    doc = _load(data)
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


def convert_document(data: bytes, fmt: ConversionFormat = ConversionFormat.MARKDOWN) -> str:
    if fmt == ConversionFormat.HTML:
        return docx_to_html(data)
    if fmt == ConversionFormat.MARKDOWN:
        return docx_to_markdown(data)
    if fmt == ConversionFormat.RAW:
        return docx_to_text(data)
    raise ConversionError(f"Unsupported conversion format: {fmt}")


def clean_markdown(text: str) -> str:
    """Strip bold, italic and link markup from a line of Markdown."""
    text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
    text = re.sub(r"__(.*?)__", r"\1", text)
    text = re.sub(r"(?<!\s)\*([^*]+)\*(?!\s)", r"\1", text)
    text = re.sub(r"(?<!\s)_([^_]+)_(?!\s)", r"\1", text)
    text = re.sub(r"\[(.*?)\]\(.*?\)", r"\1", text)
    return text


_NUMBERED = re.compile(r"^(\d+\.)\s(.*)$")


def markdown_to_docx(content: str, title: str, author_name: str) -> bytes:
    """
    Render article Markdown into a Word document.

    Args:
        content: Article body in Markdown
        title: Document title
        author_name: Display name for the byline

    Returns:
        .docx bytes
    """
    doc = Document()
    doc.add_heading(title, level=0)

    byline = doc.add_paragraph().add_run(f"By {author_name}")
    byline.italic = True
    byline.font.size = Pt(12)
    doc.add_paragraph("")

    for line in (content or "").split("\n"):
        stripped = line.strip()
        if not stripped:
            doc.add_paragraph("")
        elif stripped.startswith("### "):
            doc.add_heading(clean_markdown(stripped[4:]), level=3)
        elif stripped.startswith("## "):
            doc.add_heading(clean_markdown(stripped[3:]), level=2)
        elif stripped.startswith("# "):
            doc.add_heading(clean_markdown(stripped[2:]), level=1)
        elif stripped.startswith(("* ", "- ")):
            doc.add_paragraph(clean_markdown(stripped[2:]), style="List Bullet")
        elif _NUMBERED.match(stripped):
            doc.add_paragraph(clean_markdown(_NUMBERED.match(stripped).group(2)), style="List Number")
        else:
            doc.add_paragraph(clean_markdown(stripped))

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def export_filename(title: str) -> str:
    """Make a title safe for use as a download filename (max 100 chars)."""
    name = re.sub(r'[<>:"/\\|?*]', "-", title or "")
    name = re.sub(r"\s+", " ", name).strip()
    return name[:100] or "article"
