"""Three-tier section detection.

Tiers run in order and each only when the previous one found nothing:

1. Header-based: every Header element opens a section (high confidence).
2. Pattern-based: configured numbered, subsection and named heading
   patterns (medium confidence).
3. Heuristic: short capitalised lines, lines ending with a colon and
   keyword-dense lines (low confidence).

Candidates then go through ``post_process``, which drops short sections and
merges undersized neighbours into their predecessor.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from docstruct.anchors.codec import AnchorCodec
from docstruct.anchors.registry import AnchorRegistry
from docstruct.extraction.models import ElementKind, TextElement
from docstruct.logging.logger import Log
from docstruct.structure.cache import MatchCache
from docstruct.structure.models import MAX_LEVEL, MIN_LEVEL, DocumentSection
from docstruct.structure.patterns import PatternConfig, PatternMatch

UNTITLED_SECTION = "Untitled Section"
DEFAULT_SECTION_TITLE = "Основное содержание"
_MIN_TITLE_LENGTH = 3
_SHORT_LINE_LENGTH = 100
_MIN_KEYWORD_HITS = 2


class DetectionMethod(str, Enum):
    HEADER_BASED = "header_based"
    PATTERN_BASED = "pattern_based"
    HEURISTIC = "heuristic"


@dataclass(slots=True)
class DetectionContext:
    """Mutable state owned by exactly one analysis run."""

    registry: AnchorRegistry = field(default_factory=AnchorRegistry)
    cache: MatchCache = field(default_factory=MatchCache)

    def reset(self) -> None:
        self.registry.reset()
        self.cache.clear()


@dataclass
class _Candidate:
    start: int
    title: str
    level: int
    elements: list[TextElement] = field(default_factory=list)
    metadata: dict[str, object] = field(default_factory=dict)

    @property
    def end(self) -> int:
        return self.start + len(self.elements) - 1


class SectionBuilder:
    """Turns element runs into DocumentSections with ids and anchors."""

    def __init__(self, codec: AnchorCodec, max_title_length: int) -> None:
        self._codec = codec
        self._max_title_length = max_title_length

    def build(
        self,
        candidate: _Candidate,
        *,
        confidence: float,
        method: DetectionMethod,
        context: DetectionContext,
    ) -> DocumentSection:
        section_id = f"section_{uuid.uuid4().hex[:12]}"
        title = self.clip_title(candidate.title)
        kinds = list(dict.fromkeys(element.kind.value for element in candidate.elements))
        metadata: dict[str, object] = {
            "detection_method": method.value,
            "element_kinds": kinds,
            **candidate.metadata,
        }
        return DocumentSection(
            id=section_id,
            title=title,
            content="\n".join(element.plain_text() for element in candidate.elements),
            level=max(MIN_LEVEL, min(candidate.level, MAX_LEVEL)),
            start=candidate.start,
            end=candidate.end,
            anchor=self._codec.generate(section_id, title, context.registry),
            confidence=confidence,
            source_elements=list(candidate.elements),
            metadata=metadata,
        )

    def clip_title(self, title: str) -> str:
        title = " ".join(title.split())
        if len(title) > self._max_title_length:
            title = title[: max(self._max_title_length - 3, 1)].rstrip() + "..."
        if len(title) < _MIN_TITLE_LENGTH:
            return UNTITLED_SECTION
        return title

    @staticmethod
    def title_from_element(element: TextElement) -> str:
        for line in element.plain_text().splitlines():
            if line.strip():
                return line.strip()
        return ""


class DetectionStrategy(ABC):
    """One detection tier: elements in, candidate sections out."""

    method: ClassVar[DetectionMethod]

    def __init__(self, builder: SectionBuilder, confidence: float) -> None:
        self._builder = builder
        self.confidence = confidence

    @abstractmethod
    def detect(
        self,
        elements: Sequence[TextElement],
        context: DetectionContext,
    ) -> list[DocumentSection]:
        raise NotImplementedError

    def _materialize(
        self,
        candidates: list[_Candidate],
        context: DetectionContext,
    ) -> list[DocumentSection]:
        return [
            self._builder.build(
                candidate,
                confidence=self.confidence,
                method=self.method,
                context=context,
            )
            for candidate in candidates
            if candidate.elements
        ]

    def _preamble(self, elements: list[TextElement]) -> _Candidate:
        return _Candidate(
            start=0,
            title=SectionBuilder.title_from_element(elements[0]) if elements else "",
            level=1,
            elements=elements,
            metadata={"preamble": True},
        )


class HeaderStrategy(DetectionStrategy):
    method = DetectionMethod.HEADER_BASED

    def detect(
        self,
        elements: Sequence[TextElement],
        context: DetectionContext,
    ) -> list[DocumentSection]:
        candidates: list[_Candidate] = []
        preamble: list[TextElement] = []
        current: _Candidate | None = None
        for index, element in enumerate(elements):
            if element.kind is ElementKind.HEADER:
                current = _Candidate(
                    start=index,
                    title=element.plain_text(),
                    level=element.level or 1,
                    elements=[element],
                )
                candidates.append(current)
            elif current is None:
                preamble.append(element)
            else:
                current.elements.append(element)
        if not candidates:
            return []
        if preamble:
            candidates.insert(0, self._preamble(preamble))
        return self._materialize(candidates, context)


class PatternStrategy(DetectionStrategy):
    method = DetectionMethod.PATTERN_BASED

    def __init__(
        self,
        builder: SectionBuilder,
        confidence: float,
        patterns: PatternConfig,
        regex_timeout: float,
    ) -> None:
        super().__init__(builder, confidence)
        self._patterns = patterns
        self._regex_timeout = regex_timeout

    def detect(
        self,
        elements: Sequence[TextElement],
        context: DetectionContext,
    ) -> list[DocumentSection]:
        candidates: list[_Candidate] = []
        preamble: list[TextElement] = []
        current: _Candidate | None = None
        for index, element in enumerate(elements):
            match = self.match(element.plain_text(), context)
            if match is not None:
                current = _Candidate(
                    start=index,
                    title=match.title or match.prefix.rstrip(" .:"),
                    level=match.level,
                    elements=[element],
                    metadata={"pattern_group": match.group.value},
                )
                candidates.append(current)
            elif current is None:
                preamble.append(element)
            else:
                current.elements.append(element)
        if not candidates:
            return []
        if preamble:
            candidates.insert(0, self._preamble(preamble))
        return self._materialize(candidates, context)

    def match(self, text: str, context: DetectionContext) -> PatternMatch | None:
        stripped = text.strip()
        if not stripped:
            return None
        key = MatchCache.key("pattern", stripped)
        found, cached = context.cache.lookup(key)
        if found:
            return cached
        result = self._patterns.match(stripped, timeout=self._regex_timeout)
        context.cache.store(key, result)
        return result


class HeuristicStrategy(DetectionStrategy):
    method = DetectionMethod.HEURISTIC

    def __init__(
        self,
        builder: SectionBuilder,
        confidence: float,
        patterns: PatternConfig,
        max_title_length: int,
    ) -> None:
        super().__init__(builder, confidence)
        self._patterns = patterns
        self._max_title_length = max_title_length

    def detect(
        self,
        elements: Sequence[TextElement],
        context: DetectionContext,
    ) -> list[DocumentSection]:
        candidates: list[_Candidate] = []
        current: _Candidate | None = None
        for index, element in enumerate(elements):
            if current is None or self.is_likely_start(element.plain_text(), context):
                current = _Candidate(
                    start=index,
                    title=SectionBuilder.title_from_element(element),
                    level=1,
                    elements=[element],
                )
                candidates.append(current)
            else:
                current.elements.append(element)
        if len(candidates) == 1 and not self.is_likely_start(
            elements[0].plain_text(), context
        ):
            candidates[0].title = DEFAULT_SECTION_TITLE
        return self._materialize(candidates, context)

    def is_likely_start(self, text: str, context: DetectionContext) -> bool:
        stripped = text.strip()
        if not stripped:
            return False
        key = MatchCache.key("start", stripped)
        found, cached = context.cache.lookup(key)
        if found:
            return bool(cached)
        result = (
            (len(stripped) <= self._max_title_length and stripped.endswith(":"))
            or (len(stripped) < _SHORT_LINE_LENGTH and stripped[0].isupper())
            or self._patterns.count_keywords(stripped) >= _MIN_KEYWORD_HITS
        )
        context.cache.store(key, result)
        return result


class SectionDetector:
    """Runs the detection tiers in order and post-processes the winner."""

    def __init__(
        self,
        *,
        codec: AnchorCodec,
        patterns: PatternConfig,
        high_confidence: float = 0.9,
        medium_confidence: float = 0.7,
        low_confidence: float = 0.5,
        min_section_length: int = 50,
        max_title_length: int = 200,
        regex_timeout: float = 1.0,
    ) -> None:
        if not 0.0 <= low_confidence <= medium_confidence <= high_confidence <= 1.0:
            raise ValueError(
                "Tier confidences must satisfy 0 <= low <= medium <= high <= 1, got "
                f"{low_confidence}, {medium_confidence}, {high_confidence}"
            )
        if min_section_length < 0:
            raise ValueError("min_section_length must not be negative")
        self._min_section_length = min_section_length
        builder = SectionBuilder(codec, max_title_length)
        self._strategies: tuple[DetectionStrategy, ...] = (
            HeaderStrategy(builder, high_confidence),
            PatternStrategy(builder, medium_confidence, patterns, regex_timeout),
            HeuristicStrategy(builder, low_confidence, patterns, max_title_length),
        )

    @property
    def strategies(self) -> tuple[DetectionStrategy, ...]:
        return self._strategies

    def detect(
        self,
        elements: Sequence[TextElement],
        context: DetectionContext | None = None,
    ) -> list[DocumentSection]:
        """Detect sections in ``elements`` using the first tier that finds any."""
        if not elements:
            return []
        if context is None:
            context = DetectionContext()
        for strategy in self._strategies:
            sections = strategy.detect(elements, context)
            if sections:
                Log.debug(
                    f"{strategy.method.value} detection produced {len(sections)} sections"
                )
                return self.post_process(sections)
        return []

    def post_process(self, sections: Sequence[DocumentSection]) -> list[DocumentSection]:
        """Drop undersized sections, then merge short ones into their predecessor."""
        kept = [s for s in sections if s.content_length >= self._min_section_length]
        processed: list[DocumentSection] = []
        buffer: DocumentSection | None = None
        for section in kept:
            if buffer is None:
                buffer = section
            elif section.content_length < self._min_section_length * 2:
                buffer = self.merge_sections(buffer, section)
            else:
                processed.append(buffer)
                buffer = section
        if buffer is not None:
            processed.append(buffer)
        return processed

    @staticmethod
    def merge_sections(first: DocumentSection, second: DocumentSection) -> DocumentSection:
        return first.merged_with(second)
