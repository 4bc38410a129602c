import io
from collections.abc import Callable

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docstruct.anchors.codec import AnchorCodec
from docstruct.anchors.registry import AnchorRegistry
from docstruct.extraction.models import ElementKind, TextElement
from docstruct.structure.patterns import PatternConfig, load_pattern_config

CONTRACT_TEXT = (
    "1. Предмет\n"
    "Текст первого раздела, который длиннее порога минимальной длины.\n"
    "2. Оплата\n"
    "Текст второго раздела, также достаточной длины."
)


def _make_elements(*lines: str) -> list[TextElement]:
    elements: list[TextElement] = []
    for position, line in enumerate(lines):
        if line.startswith("#"):
            level = len(line) - len(line.lstrip("#"))
            elements.append(
                TextElement(
                    kind=ElementKind.HEADER,
                    content=line.lstrip("#").strip(),
                    level=level,
                    position=position,
                )
            )
        else:
            elements.append(TextElement(kind=ElementKind.TEXT, content=line, position=position))
    return elements


@pytest.fixture()
def make_elements() -> Callable[..., list[TextElement]]:
    """Build TEXT elements, or HEADERs for lines starting with '#'."""
    return _make_elements


@pytest.fixture()
def codec() -> AnchorCodec:
    return AnchorCodec()


@pytest.fixture()
def registry() -> AnchorRegistry:
    return AnchorRegistry()


@pytest.fixture(scope="session")
def pattern_config() -> PatternConfig:
    return load_pattern_config()


@pytest.fixture()
def contract_text() -> str:
    return CONTRACT_TEXT


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a single-page PDF with a numbered heading and body text."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "1. Scope")
    c.drawString(72, 700, "This agreement covers the supply of goods between the parties.")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()
