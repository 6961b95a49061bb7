"""Word document conversion adapters."""

from .docx_converter import (
    DOCX_MIME,
    ConversionFormat,
    clean_markdown,
    convert_document,
    docx_to_html,
    docx_to_markdown,
    docx_to_text,
    export_filename,
    markdown_to_docx,
)

__all__ = [
    "DOCX_MIME",
    "ConversionFormat",
    "clean_markdown",
    "convert_document",
    "docx_to_html",
    "docx_to_markdown",
    "docx_to_text",
    "export_filename",
    "markdown_to_docx",
]
