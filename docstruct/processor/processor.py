from collections.abc import Sequence
from functools import partial

from docstruct.anchors.codec import AnchorCodec
from docstruct.config.settings import Settings
from docstruct.extraction.factory import ExtractorFactory
from docstruct.llm.factory import ModelRequesterFactory
from docstruct.logging.logger import Log
from docstruct.processor.pipeline import PipelineContext, PipelineStep
from docstruct.processor.steps import (
    AnalyzeStep,
    AnchorTextStep,
    ExtractStep,
    FailedStep,
    ReconcileStep,
    RequestModelStep,
    SpliceStep,
)
from docstruct.reconciliation.reconciler import ResponseReconciler
from docstruct.schema.registry import SchemaRegistry
from docstruct.splicing.splicer import ContentSplicer
from docstruct.structure.factory import StructureAnalyzerFactory


class Processor:
    """Runs a document through the pipeline steps in order.

    Pipeline: extract -> analyze -> anchor -> request -> reconcile -> splice.
    """

    def __init__(self, steps: Sequence[PipelineStep], failed_step: PipelineStep) -> None:
        self._steps = list(steps)
        self._failed_step = failed_step

    def process(
        self,
        raw_bytes: bytes,
        *,
        mime_type: str,
        source_id: str = "",
        schema_type: str = "translation",
    ) -> PipelineContext:
        """Run every step and return the filled context."""
        context = PipelineContext(
            source_id=source_id,
            mime_type=mime_type,
            schema_type=schema_type,
            raw_bytes=raw_bytes,
        )
        Log.info(f"Processing '{source_id}' ({mime_type}) for '{schema_type}'")
        try:
            for step in self._steps:
                context = step.run(context)
        except Exception as exc:
            context.error_message = str(exc)
            self._failed_step.run(context)
            raise
        Log.info(f"Processed '{source_id}': {len(context.final_text)} chars of output")
        return context


def build_processor(settings: Settings) -> Processor:
    """Build a Processor with all required adapters."""
    codec = AnchorCodec(max_slug_length=settings.anchor_max_slug_length)
    registry = SchemaRegistry.load_bundled()
    steps: list[PipelineStep] = [
        ExtractStep(partial(ExtractorFactory.for_mime_type, settings=settings)),
        AnalyzeStep(StructureAnalyzerFactory.create(settings, codec=codec)),
        AnchorTextStep(),
        RequestModelStep(ModelRequesterFactory.create(settings, registry)),
        ReconcileStep(
            ResponseReconciler(registry=registry, codec=codec),
            strict=settings.reconcile_strict,
        ),
        SpliceStep(ContentSplicer(codec)),
    ]
    return Processor(steps=steps, failed_step=FailedStep())
