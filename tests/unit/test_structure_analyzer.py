"""Tests for StructureAnalyzer results, batches and gating."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from docstruct.anchors.codec import AnchorCodec
from docstruct.extraction.models import ExtractedDocument, TextElement
from docstruct.extraction.text_extractor import PlainTextExtractor
from docstruct.structure.analyzer import StructureAnalyzer
from docstruct.structure.detector import SectionDetector
from docstruct.structure.patterns import PatternConfig

ElementsFactory = Callable[..., list[TextElement]]


def _analyzer(
    codec: AnchorCodec,
    patterns: PatternConfig,
    *,
    min_section_length: int = 20,
    **kwargs: object,
) -> StructureAnalyzer:
    detector = SectionDetector(
        codec=codec,
        patterns=patterns,
        min_section_length=min_section_length,
    )
    return StructureAnalyzer(detector, **kwargs)  # type: ignore[arg-type]


def _document(elements: list[TextElement], **kwargs: object) -> ExtractedDocument:
    return ExtractedDocument(
        source_id="doc.txt",
        mime_type="text/plain",
        elements=elements,
        **kwargs,  # type: ignore[arg-type]
    )


class TestAnalyze:
    def test_contract_sections_and_statistics(
        self, codec: AnchorCodec, pattern_config: PatternConfig, contract_text: str
    ) -> None:
        document = PlainTextExtractor().extract_text(contract_text, source_id="contract.txt")
        result = _analyzer(codec, pattern_config).analyze(document)

        assert result.succeeded
        assert result.sections_count == 2
        assert result.average_confidence == pytest.approx(0.7)
        assert result.warnings == []
        assert result.document_id.startswith("doc_")
        assert result.statistics["total_sections"] == 2
        assert result.statistics["sections_by_level"] == {1: 2}
        assert result.statistics["max_depth"] == 1
        assert result.metadata["source_id"] == "contract.txt"
        assert "analysis_timestamp" in result.metadata

    def test_sections_sorted_by_start(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        elements = make_elements("# A", "first body", "# B", "second body", "# C", "third")
        result = _analyzer(codec, pattern_config, min_section_length=0).analyze(
            _document(elements)
        )
        starts = [s.start for s in result.sections]
        assert starts == sorted(starts)

    def test_filters_sections_below_min_confidence(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        elements = make_elements("Сведения:", "обычный текст без структуры")
        analyzer = _analyzer(codec, pattern_config, min_section_length=0, min_confidence=0.6)
        result = analyzer.analyze(_document(elements))

        assert result.sections == []
        assert result.metadata["filtered_sections"] == 1
        assert "No sections detected in document" in result.warnings

    def test_low_confidence_warnings(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        elements = make_elements("Сведения:", "обычный текст без структуры")
        result = _analyzer(codec, pattern_config, min_section_length=0).analyze(
            _document(elements)
        )

        assert "1 sections have low confidence scores (< 0.7)" in result.warnings
        assert "Low average confidence score: 0.50" in result.warnings

    def test_slow_analysis_warns(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        ticks = iter([0.0, 100.0])
        analyzer = _analyzer(
            codec,
            pattern_config,
            min_section_length=0,
            max_analysis_time=120,
            clock=lambda: next(ticks),
        )
        result = analyzer.analyze(_document(make_elements("# A", "body text")))

        assert "Analysis time (100.00s) approaching limit (120s)" in result.warnings

    def test_detector_failure_becomes_error_result(self, make_elements: ElementsFactory) -> None:
        detector = MagicMock(spec=SectionDetector)
        detector.detect.side_effect = RuntimeError("detector exploded")
        result = StructureAnalyzer(detector).analyze(_document(make_elements("# A")))

        assert not result.succeeded
        assert result.sections == []
        assert result.average_confidence == 0.0
        assert result.metadata["error"] == "detector exploded"
        assert result.metadata["error_type"] == "RuntimeError"
        assert result.warnings == ["Analysis failed: detector exploded"]

    def test_runs_are_independent(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        analyzer = _analyzer(codec, pattern_config, min_section_length=0)
        document = _document(make_elements("# Same", "body"))
        first = analyzer.analyze(document)
        second = analyzer.analyze(document)

        assert first.sections[0].id != second.sections[0].id
        assert first.metadata["cache"] == second.metadata["cache"]


class TestAnalyzeBatch:
    def test_analyzes_each_document(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        analyzer = _analyzer(codec, pattern_config, min_section_length=0)
        results = analyzer.analyze_batch(
            {
                "a": _document(make_elements("# A", "alpha")),
                "b": _document(make_elements("# B", "beta")),
            }
        )
        assert set(results) == {"a", "b"}
        assert all(r.sections_count == 1 for r in results.values())

    def test_duplicate_source_ids_keep_every_result(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        analyzer = _analyzer(codec, pattern_config, min_section_length=0)
        first = _document(make_elements("# A", "alpha"))
        second = _document(make_elements("# B", "beta"))

        results = analyzer.analyze_batch([first, second])

        assert list(results) == ["doc.txt", "doc.txt#1"]
        assert results["doc.txt"].sections[0].title == "A"
        assert results["doc.txt#1"].sections[0].title == "B"

    def test_rejects_oversized_batch(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        analyzer = _analyzer(codec, pattern_config, max_batch_size=1)
        documents = [_document(make_elements("# A")), _document(make_elements("# B"))]
        with pytest.raises(ValueError, match="exceeds the limit of 1"):
            analyzer.analyze_batch(documents)


class TestCanAnalyze:
    def test_rejects_empty_document(
        self, codec: AnchorCodec, pattern_config: PatternConfig
    ) -> None:
        assert not _analyzer(codec, pattern_config).can_analyze(_document([]))

    def test_rejects_short_document(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        document = _document(make_elements("tiny"))
        assert not _analyzer(codec, pattern_config).can_analyze(document)

    def test_accepts_document_with_extraction_errors(
        self,
        codec: AnchorCodec,
        pattern_config: PatternConfig,
        make_elements: ElementsFactory,
    ) -> None:
        document = _document(make_elements("x" * 150), errors=["page 2 unreadable"])
        assert _analyzer(codec, pattern_config).can_analyze(document)
