from pathlib import Path

from docstruct.anchors.codec import AnchorCodec
from docstruct.config.settings import Settings
from docstruct.structure.analyzer import StructureAnalyzer
from docstruct.structure.detector import SectionDetector
from docstruct.structure.patterns import load_pattern_config


class StructureAnalyzerFactory:
    """Creates a configured StructureAnalyzer from application settings."""

    @classmethod
    def create(cls, settings: Settings, codec: AnchorCodec | None = None) -> StructureAnalyzer:
        patterns_path = settings.structure_patterns_path.strip()
        patterns = load_pattern_config(Path(patterns_path) if patterns_path else None)
        detector = SectionDetector(
            codec=codec or AnchorCodec(max_slug_length=settings.anchor_max_slug_length),
            patterns=patterns,
            high_confidence=settings.structure_high_confidence,
            medium_confidence=settings.structure_medium_confidence,
            low_confidence=settings.structure_low_confidence,
            min_section_length=settings.structure_min_section_length,
            max_title_length=settings.structure_max_title_length,
            regex_timeout=settings.regex_timeout_seconds,
        )
        return StructureAnalyzer(
            detector,
            min_confidence=settings.structure_min_confidence,
            max_analysis_time=settings.structure_max_analysis_time,
            min_viable_length=settings.structure_min_viable_length,
            max_batch_size=settings.structure_max_batch_size,
        )
