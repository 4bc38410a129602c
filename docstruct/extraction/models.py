from dataclasses import dataclass, field
from enum import Enum


class ElementKind(str, Enum):
    HEADER = "header"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    TEXT = "text"


@dataclass(frozen=True)
class TextElement:
    """One typed text fragment produced by an extractor."""

    kind: ElementKind
    content: str
    level: int | None = None
    position: int = 0
    page: int = 1
    metadata: dict[str, object] = field(default_factory=dict)

    def plain_text(self) -> str:
        return self.content.strip()


@dataclass(frozen=True)
class ExtractedDocument:
    """Ordered element list for one source document."""

    source_id: str
    mime_type: str
    elements: list[TextElement] = field(default_factory=list)
    total_pages: int = 1
    extraction_time: float = 0.0
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, object] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def plain_text(self) -> str:
        return "\n".join(element.plain_text() for element in self.elements)
