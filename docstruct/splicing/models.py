from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RiskKind(str, Enum):
    CONTRADICTION = "contradiction"
    RISK = "risk"
    WARNING = "warning"


@dataclass(frozen=True)
class Risk:
    kind: RiskKind
    text: str


@dataclass(frozen=True)
class SplicedSection:
    """One slice of an anchored document with its translated and risk blocks."""

    id: str
    title: str
    original_text: str
    translated_texts: list[str] = field(default_factory=list)
    risks: list[Risk] = field(default_factory=list)
    anchor: str | None = None

    @property
    def has_translations(self) -> bool:
        return bool(self.translated_texts)

    @property
    def has_risks(self) -> bool:
        return bool(self.risks)

    @property
    def main_translation(self) -> str | None:
        return self.translated_texts[0] if self.translated_texts else None


@dataclass(frozen=True)
class ParsedContent:
    original_text: str
    sections: list[SplicedSection] = field(default_factory=list)
    anchor_ids: list[str] = field(default_factory=list)

    @property
    def sections_count(self) -> int:
        return len(self.sections)

    def section_by_id(self, section_id: str) -> SplicedSection | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None
