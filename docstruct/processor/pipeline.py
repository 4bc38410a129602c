from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from docstruct.extraction.models import ExtractedDocument
from docstruct.reconciliation.models import ParsedModelResponse
from docstruct.splicing.models import ParsedContent
from docstruct.structure.models import StructureAnalysisResult


@dataclass(slots=True)
class PipelineContext:
    source_id: str
    mime_type: str
    schema_type: str
    raw_bytes: bytes = b""
    document: ExtractedDocument | None = None
    analysis: StructureAnalysisResult | None = None
    anchored_text: str = ""
    anchor_ids: list[str] = field(default_factory=list)
    raw_response: str = ""
    model_response: ParsedModelResponse | None = None
    merged_text: str = ""
    parsed_content: ParsedContent | None = None
    final_text: str = ""
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
