from __future__ import annotations

from dataclasses import dataclass, field, replace

from docstruct.anchors.codec import AnchorCodec
from docstruct.extraction.models import TextElement

MIN_LEVEL = 1
MAX_LEVEL = 10


@dataclass(frozen=True)
class DocumentSection:
    """A titled, confidence-scored span of document content."""

    id: str
    title: str
    content: str
    level: int
    start: int
    end: int
    anchor: str
    confidence: float
    source_elements: list[TextElement] = field(default_factory=list)
    subsections: list[DocumentSection] = field(default_factory=list)
    metadata: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Section id must not be empty")
        if not self.title.strip():
            raise ValueError("Section title must not be empty")
        if not MIN_LEVEL <= self.level <= MAX_LEVEL:
            raise ValueError(f"Section level must be between {MIN_LEVEL} and {MAX_LEVEL}")
        if self.start > self.end:
            raise ValueError("Section start must not exceed its end")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Section confidence must be between 0 and 1")
        if AnchorCodec.extract_id(self.anchor) != self.id:
            raise ValueError(f"Section anchor does not encode section id '{self.id}'")

    @property
    def content_length(self) -> int:
        return len(self.content)

    @property
    def detection_method(self) -> str | None:
        method = self.metadata.get("detection_method")
        return str(method) if method is not None else None

    def flatten(self) -> list[DocumentSection]:
        """Return this section followed by all nested subsections, depth first."""
        result = [self]
        for subsection in self.subsections:
            result.extend(subsection.flatten())
        return result

    def depth(self) -> int:
        if not self.subsections:
            return self.level
        return max(subsection.depth() for subsection in self.subsections)

    def merged_with(self, other: DocumentSection) -> DocumentSection:
        """Build a new section absorbing ``other`` into this one.

        The result keeps this section's id and anchor.
        """
        title = other.title if len(other.title) > len(self.title) else self.title
        metadata = dict(self.metadata)
        metadata["merged_with"] = other.id
        metadata["merge_reason"] = "short_section"
        return replace(
            self,
            title=title,
            content=f"{self.content}\n{other.content}",
            level=min(self.level, other.level),
            start=min(self.start, other.start),
            end=max(self.end, other.end),
            confidence=min(self.confidence, other.confidence),
            source_elements=[*self.source_elements, *other.source_elements],
            subsections=[*self.subsections, *other.subsections],
            metadata=metadata,
        )


@dataclass(frozen=True)
class StructureAnalysisResult:
    """Outcome of one analysis call; always populated, even on failure."""

    document_id: str
    sections: list[DocumentSection]
    analysis_time: float
    average_confidence: float
    statistics: dict[str, object] = field(default_factory=dict)
    metadata: dict[str, object] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def sections_count(self) -> int:
        return len(self.sections)

    @property
    def succeeded(self) -> bool:
        return "error" not in self.metadata

    def all_sections(self) -> list[DocumentSection]:
        return [flat for section in self.sections for flat in section.flatten()]

    def section_by_id(self, section_id: str) -> DocumentSection | None:
        for section in self.all_sections():
            if section.id == section_id:
                return section
        return None
