from __future__ import annotations

import time
import uuid
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone

from docstruct import __version__
from docstruct.extraction.models import ExtractedDocument
from docstruct.logging.logger import Log
from docstruct.structure.detector import DetectionContext, SectionDetector
from docstruct.structure.models import DocumentSection, StructureAnalysisResult

LOW_CONFIDENCE_THRESHOLD = 0.7
LOW_AVERAGE_CONFIDENCE = 0.6
TIME_WARNING_RATIO = 0.8


class StructureAnalyzer:
    """Public entry point for analyzing the section structure of a document.

    ``analyze`` never raises: any failure is returned as a zero-section
    result whose ``metadata["error"]`` carries the cause.
    """

    def __init__(
        self,
        detector: SectionDetector,
        *,
        min_confidence: float = 0.3,
        max_analysis_time: float = 120,
        min_viable_length: int = 100,
        max_batch_size: int = 100,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._detector = detector
        self._min_confidence = min_confidence
        self._max_analysis_time = max_analysis_time
        self._min_viable_length = min_viable_length
        self._max_batch_size = max_batch_size
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, document: ExtractedDocument) -> StructureAnalysisResult:
        started = self._clock()
        document_id = f"doc_{uuid.uuid4().hex}"
        Log.info(
            f"Analyzing structure of '{document.source_id}' "
            f"({len(document.elements)} elements)"
        )
        context = DetectionContext()
        try:
            raw_sections = self._detector.detect(document.elements, context)
            sections = [s for s in raw_sections if s.confidence >= self._min_confidence]
            sections.sort(key=lambda s: s.start)

            elapsed = self._clock() - started
            flattened = [flat for section in sections for flat in section.flatten()]
            average_confidence = self._average_confidence(flattened)
            result = StructureAnalysisResult(
                document_id=document_id,
                sections=sections,
                analysis_time=elapsed,
                average_confidence=average_confidence,
                statistics=self._statistics(sections, flattened, document),
                metadata=self._metadata(
                    document,
                    raw_count=len(raw_sections),
                    kept_count=len(sections),
                    cache_stats=context.cache.stats(),
                ),
                warnings=self._warnings(flattened, average_confidence, elapsed),
            )
        except Exception as exc:
            elapsed = self._clock() - started
            Log.error(f"Structure analysis failed for '{document.source_id}': {exc}")
            return StructureAnalysisResult(
                document_id=document_id,
                sections=[],
                analysis_time=elapsed,
                average_confidence=0.0,
                statistics=self._statistics([], [], document),
                metadata={
                    "source_id": document.source_id,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "analyzer_version": __version__,
                    "analysis_timestamp": datetime.now(timezone.utc).isoformat(),
                },
                warnings=[f"Analysis failed: {exc}"],
            )
        finally:
            context.reset()

        Log.info(
            f"Structure analysis of '{document.source_id}' found {result.sections_count} "
            f"sections in {elapsed:.3f}s (average confidence {average_confidence})"
        )
        return result

    def analyze_batch(
        self,
        documents: Mapping[str, ExtractedDocument] | Iterable[ExtractedDocument],
    ) -> dict[str, StructureAnalysisResult]:
        """Analyze each document independently; one failure never aborts the batch.

        Sequence input is keyed by ``source_id`` (or position when empty). A key
        already taken gets a ``#<position>`` suffix, so every document keeps its
        own result.
        """
        if isinstance(documents, Mapping):
            items = list(documents.items())
        else:
            items = self._keyed_documents(documents)
        if len(items) > self._max_batch_size:
            raise ValueError(
                f"Batch of {len(items)} documents exceeds the limit of {self._max_batch_size}"
            )
        results: dict[str, StructureAnalysisResult] = {}
        for key, document in items:
            results[key] = self.analyze(document)
        return results

    def can_analyze(self, document: ExtractedDocument) -> bool:
        if not document.elements:
            return False
        if len(document.plain_text().strip()) < self._min_viable_length:
            return False
        if document.has_errors:
            Log.warning(
                f"Document '{document.source_id}' has extraction errors: "
                f"{'; '.join(document.errors)}"
            )
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _keyed_documents(
        documents: Iterable[ExtractedDocument],
    ) -> list[tuple[str, ExtractedDocument]]:
        items: list[tuple[str, ExtractedDocument]] = []
        taken: set[str] = set()
        for index, document in enumerate(documents):
            base = document.source_id or str(index)
            key = base
            suffix = index
            while key in taken:
                key = f"{base}#{suffix}"
                suffix += 1
            taken.add(key)
            items.append((key, document))
        return items

    @staticmethod
    def _average_confidence(sections: list[DocumentSection]) -> float:
        if not sections:
            return 0.0
        return round(sum(s.confidence for s in sections) / len(sections), 3)

    @staticmethod
    def _statistics(
        sections: list[DocumentSection],
        flattened: list[DocumentSection],
        document: ExtractedDocument,
    ) -> dict[str, object]:
        total_length = sum(s.content_length for s in flattened)
        document_length = len(document.plain_text())
        levels = Counter(s.level for s in flattened)
        return {
            "total_sections": len(flattened),
            "top_level_sections": len(sections),
            "sections_by_level": dict(sorted(levels.items())),
            "average_section_length": round(total_length / len(flattened)) if flattened else 0,
            "total_content_length": total_length,
            "coverage_percentage": (
                round(total_length / document_length * 100, 2) if document_length else 0.0
            ),
            "max_depth": max((s.depth() for s in sections), default=0),
        }

    def _metadata(
        self,
        document: ExtractedDocument,
        *,
        raw_count: int,
        kept_count: int,
        cache_stats: dict[str, int],
    ) -> dict[str, object]:
        kinds = Counter(element.kind.value for element in document.elements)
        metadata: dict[str, object] = {
            "source_id": document.source_id,
            "mime_type": document.mime_type,
            "total_pages": document.total_pages,
            "extraction_time": document.extraction_time,
            "total_elements": len(document.elements),
            "element_kinds": dict(kinds),
            "raw_sections_detected": raw_count,
            "filtered_sections": raw_count - kept_count,
            "cache": cache_stats,
            "analyzer_version": __version__,
            "analysis_timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if document.has_errors:
            metadata["extraction_errors"] = list(document.errors)
        return metadata

    def _warnings(
        self,
        sections: list[DocumentSection],
        average_confidence: float,
        elapsed: float,
    ) -> list[str]:
        warnings: list[str] = []
        if not sections:
            warnings.append("No sections detected in document")
        low = sum(1 for s in sections if s.confidence < LOW_CONFIDENCE_THRESHOLD)
        if low:
            warnings.append(
                f"{low} sections have low confidence scores (< {LOW_CONFIDENCE_THRESHOLD})"
            )
        if elapsed > self._max_analysis_time * TIME_WARNING_RATIO:
            warnings.append(
                f"Analysis time ({elapsed:.2f}s) approaching limit "
                f"({self._max_analysis_time:g}s)"
            )
        if average_confidence < LOW_AVERAGE_CONFIDENCE:
            warnings.append(f"Low average confidence score: {average_confidence:.2f}")
        return warnings
