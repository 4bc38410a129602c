from collections.abc import Callable

from docstruct.extraction.base import BaseExtractor
from docstruct.llm.requester import ModelRequester
from docstruct.logging.logger import Log
from docstruct.processor.exceptions import ResponseRejectedError
from docstruct.processor.pipeline import PipelineContext, PipelineStep
from docstruct.reconciliation.reconciler import ResponseReconciler
from docstruct.splicing.splicer import ContentSplicer
from docstruct.structure.analyzer import StructureAnalyzer
from docstruct.structure.exceptions import DocumentNotAnalyzableError


class FailedStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        Log.error(f"Processing of '{context.source_id}' failed: {context.error_message}")
        return context


class ExtractStep(PipelineStep):
    def __init__(self, resolve_extractor: Callable[[str], BaseExtractor]) -> None:
        self._resolve_extractor = resolve_extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        extractor = self._resolve_extractor(context.mime_type)
        context.document = extractor.extract(context.raw_bytes, source_id=context.source_id)
        Log.info(
            f"Extracted {len(context.document.elements)} elements from '{context.source_id}'"
        )
        return context


class AnalyzeStep(PipelineStep):
    def __init__(self, analyzer: StructureAnalyzer) -> None:
        self._analyzer = analyzer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None:
            raise ValueError("PipelineContext.document must be set before analysis")
        if not self._analyzer.can_analyze(context.document):
            raise DocumentNotAnalyzableError(
                f"Document '{context.source_id}' is too short or empty to analyze"
            )
        context.analysis = self._analyzer.analyze(context.document)
        if not context.analysis.succeeded or not context.analysis.sections:
            raise DocumentNotAnalyzableError(
                f"Structure analysis of '{context.source_id}' produced no sections: "
                f"{context.analysis.metadata.get('error', 'nothing detected')}"
            )
        return context


class AnchorTextStep(PipelineStep):
    """Writes each section's anchor on its own line before the section's first element."""

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None or context.analysis is None:
            raise ValueError("PipelineContext.analysis must be set before anchoring")
        anchors_by_start: dict[int, list[str]] = {}
        anchor_ids: list[str] = []
        for section in context.analysis.all_sections():
            anchors_by_start.setdefault(section.start, []).append(section.anchor)
            anchor_ids.append(section.id)

        lines: list[str] = []
        for index, element in enumerate(context.document.elements):
            lines.extend(anchors_by_start.get(index, []))
            lines.append(element.plain_text())
        context.anchored_text = "\n".join(lines)
        context.anchor_ids = anchor_ids
        Log.info(f"Anchored {len(anchor_ids)} sections of '{context.source_id}'")
        return context


class RequestModelStep(PipelineStep):
    def __init__(self, requester: ModelRequester) -> None:
        self._requester = requester

    def run(self, context: PipelineContext) -> PipelineContext:
        context.raw_response = self._requester.request(
            context.anchored_text,
            context.schema_type,
        )
        Log.info(
            f"Received {len(context.raw_response)} chars of '{context.schema_type}' "
            f"response for '{context.source_id}'"
        )
        return context


class ReconcileStep(PipelineStep):
    def __init__(self, reconciler: ResponseReconciler, strict: bool = False) -> None:
        self._reconciler = reconciler
        self._strict = strict

    def run(self, context: PipelineContext) -> PipelineContext:
        response = self._reconciler.reconcile(
            context.raw_response,
            context.schema_type,
            context.anchor_ids,
            strict=self._strict,
        )
        context.model_response = response
        if not response.is_valid:
            raise ResponseRejectedError(
                f"Model response for '{context.source_id}' rejected: "
                f"{'; '.join(response.errors)}"
            )
        for warning in response.warnings:
            Log.warning(warning)
        return context


class SpliceStep(PipelineStep):
    def __init__(self, splicer: ContentSplicer) -> None:
        self._splicer = splicer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.model_response is None:
            raise ValueError("PipelineContext.model_response must be set before splicing")
        context.merged_text = self._splicer.apply_response(
            context.anchored_text,
            context.model_response,
        )
        context.parsed_content = self._splicer.extract_sections(context.merged_text)
        context.final_text = self._splicer.strip_anchors(context.merged_text)
        Log.info(
            f"Spliced {context.model_response.valid_anchor_count} sections "
            f"into '{context.source_id}'"
        )
        return context
