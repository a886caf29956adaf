"""PDF payload validation, text extraction and Markdown to PDF rendering."""

import base64
import binascii
import io
import re
import unicodedata

import structlog
from fpdf import FPDF
from fpdf.fonts import FontFace, TextStyle
from markdown_it import MarkdownIt
from pypdf import PdfReader

from aiprofessor.errors import (
    ConversionError,
    EmptyContentError,
    InvalidBase64Error,
    NotAPdfError,
    OversizedPayloadError,
    PdfProcessingError,
)

logger = structlog.get_logger(__name__)

PDF_MAGIC = b"%PDF-"
DATA_URL_PREFIX_RE = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)

UNICODE_FONT_FAMILY = "body"
CORE_FONT_FAMILY = "helvetica"

# Typographic characters LLMs like to emit, mapped to something the core fonts can draw
LATIN1_REPLACEMENTS = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u2013": "-",
        "\u2014": "-",
        "\u2022": "-",
        "\u2026": "...",
    }
)

# Unicode categories that no text font renders: pictographs/emoji, surrogates, private use, unassigned
UNRENDERABLE_CATEGORIES = {"So", "Cs", "Co", "Cn"}
UNRENDERABLE_CHARS = {"\u200d", "\ufe0e", "\ufe0f"}  # zero-width joiner, variation selectors


def _is_pictograph(ch: str) -> bool:
    # Latin-1 symbols such as the degree and copyright signs are kept
    return ord(ch) > 0xFF and unicodedata.category(ch) in UNRENDERABLE_CATEGORIES


def _style_sheet(font_family: str, mono_family: str) -> dict[str, FontFace]:
    """Fixed styles applied to every rendered document."""
    return {
        "h1": TextStyle(font_family=font_family, font_style="B", font_size_pt=22, color="#1a1a1a", t_margin=6, b_margin=4),
        "h2": TextStyle(font_family=font_family, font_style="B", font_size_pt=18, color="#1a1a1a", t_margin=5, b_margin=3),
        "h3": TextStyle(font_family=font_family, font_style="B", font_size_pt=15, color="#1a1a1a", t_margin=4, b_margin=2),
        "h4": TextStyle(font_family=font_family, font_style="B", font_size_pt=13, color="#24292e", t_margin=3, b_margin=2),
        "h5": TextStyle(font_family=font_family, font_style="B", font_size_pt=12, color="#24292e", t_margin=3, b_margin=1),
        "h6": TextStyle(font_family=font_family, font_style="B", font_size_pt=11, color="#6a737d", t_margin=3, b_margin=1),
        "code": FontFace(family=mono_family, color="#24292e"),
        "pre": TextStyle(font_family=mono_family, font_size_pt=10, color="#24292e"),
        "blockquote": TextStyle(font_family=font_family, color="#6a737d"),
    }


class ArtifactConverter:
    """Validates uploaded PDF payloads and renders Markdown results back to PDF."""

    def __init__(self, max_size_bytes: int, font_path: str | None = None) -> None:
        self.max_size_bytes = max_size_bytes
        self.font_path = font_path
        self._markdown = MarkdownIt("commonmark", {"html": False}).enable("table").disable("image")

    def decode_and_validate(self, payload: str) -> bytes:
        """Decode a base64 string or data URL into PDF bytes.

        The only structural check is the 5-byte %PDF- header; a damaged PDF with a
        valid header passes here and fails later during processing.

        Raises:
            EmptyContentError: payload is blank
            InvalidBase64Error: payload is not valid base64
            OversizedPayloadError: decoded size exceeds the configured ceiling
            NotAPdfError: decoded bytes do not start with the PDF header
        """
        if not payload or not payload.strip():
            raise EmptyContentError("PDF base64 payload is empty")

        cleaned = "".join(DATA_URL_PREFIX_RE.sub("", payload.strip()).split())
        if not cleaned:
            raise EmptyContentError("PDF base64 payload is empty")

        cleaned += "=" * (-len(cleaned) % 4)  # Unpadded input is accepted
        try:
            pdf_bytes = base64.b64decode(cleaned, validate=True)
        except binascii.Error as e:
            raise InvalidBase64Error from e

        if len(pdf_bytes) > self.max_size_bytes:
            raise OversizedPayloadError(self.max_size_bytes)

        if not pdf_bytes.startswith(PDF_MAGIC):
            raise NotAPdfError

        return pdf_bytes

    def extract_text(self, pdf_bytes: bytes) -> str:
        """Extract plain text from all pages of a PDF."""
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            page_count = len(reader.pages)
            text = "\n".join(page.extract_text() or "" for page in reader.pages)
        except Exception as e:
            raise PdfProcessingError from e

        if page_count == 0:
            raise PdfProcessingError("PDF contains no pages")

        if not text.strip():
            raise EmptyContentError("No text could be extracted from the PDF")
        return text

    def render_markdown_to_pdf(self, markdown: str) -> bytes:
        """Render Markdown to PDF bytes with the fixed style sheet. Pure, no I/O besides font loading."""
        if not markdown or not markdown.strip():
            raise EmptyContentError("Markdown content to convert is empty")

        try:
            html = self._markdown.render(self._sanitize(markdown))
            pdf_bytes = bytes(self._layout(html).output())
        except Exception as e:
            raise ConversionError from e

        if not pdf_bytes:
            raise ConversionError("PDF conversion produced no output")
        logger.debug("markdown_rendered", markdown_chars=len(markdown), pdf_bytes=len(pdf_bytes))
        return pdf_bytes

    def _layout(self, html: str) -> FPDF:
        pdf = FPDF(format="A4")
        pdf.set_margins(left=20, top=18, right=20)
        pdf.set_auto_page_break(auto=True, margin=18)

        if self.font_path:
            # One face backs every style; <strong> and <em> need B and I registered
            for style in ("", "B", "I", "BI"):
                pdf.add_font(UNICODE_FONT_FAMILY, style=style, fname=self.font_path)
            font_family = mono_family = UNICODE_FONT_FAMILY
        else:
            font_family, mono_family = CORE_FONT_FAMILY, "courier"

        pdf.add_page()
        pdf.set_font(font_family, size=11)
        pdf.set_text_color(36, 41, 46)
        pdf.write_html(html, font_family=font_family, tag_styles=_style_sheet(font_family, mono_family))
        return pdf

    def _sanitize(self, text: str) -> str:
        """Drop glyphs that PDF text fonts cannot draw; without a Unicode font, fold to Latin-1."""
        text = "".join(ch for ch in text if ch not in UNRENDERABLE_CHARS and not _is_pictograph(ch))
        if self.font_path:
            return text
        return text.translate(LATIN1_REPLACEMENTS).encode("latin-1", errors="replace").decode("latin-1")
