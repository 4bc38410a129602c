import re

from docstruct.extraction.models import ElementKind, TextElement

_MARKDOWN_HEADER = re.compile(r"^(#{1,6})\s+(\S.*)$")
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+\))\s+\S")
_TABLE_ROW = re.compile(r"^\s*\|.*\|\s*$")
_PARAGRAPH_MIN_LENGTH = 50


def classify_line(line: str, *, position: int, page: int = 1) -> TextElement:
    """Build a TextElement for a single non-blank line of text."""
    stripped = line.strip()
    header = _MARKDOWN_HEADER.match(stripped)
    if header:
        return TextElement(
            kind=ElementKind.HEADER,
            content=header.group(2).strip(),
            level=len(header.group(1)),
            position=position,
            page=page,
        )
    if _TABLE_ROW.match(stripped):
        kind = ElementKind.TABLE
    elif _BULLET.match(stripped):
        kind = ElementKind.LIST
    elif len(stripped) > _PARAGRAPH_MIN_LENGTH:
        kind = ElementKind.PARAGRAPH
    else:
        kind = ElementKind.TEXT
    return TextElement(kind=kind, content=stripped, position=position, page=page)


def split_elements(pages: list[str]) -> list[TextElement]:
    """Split page texts into line elements, numbering positions document-wide."""
    elements: list[TextElement] = []
    for page_number, page_text in enumerate(pages, start=1):
        for line in page_text.splitlines():
            if not line.strip():
                continue
            elements.append(
                classify_line(line, position=len(elements), page=page_number)
            )
    return elements
