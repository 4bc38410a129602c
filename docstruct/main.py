import argparse
import mimetypes
import sys
from pathlib import Path

from docstruct.config.settings import Settings
from docstruct.extraction.factory import ExtractorFactory
from docstruct.logging.logger import Log
from docstruct.processor.processor import build_processor
from docstruct.structure.factory import StructureAnalyzerFactory
from docstruct.structure.models import StructureAnalysisResult


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docstruct",
        description="Detect document sections, anchor them and splice model output back in.",
    )
    parser.add_argument("file", type=Path, help="PDF, plain text or markdown document")
    parser.add_argument(
        "--task",
        default="translation",
        help="response schema to request: translation, contradiction, ambiguity, general",
    )
    parser.add_argument(
        "--request",
        action="store_true",
        help="send the anchored document to the model and print the spliced result",
    )
    parser.add_argument("--mime-type", default="", help="override the guessed mime type")
    return parser


def guess_mime_type(path: Path) -> str:
    if path.suffix.lower() in {".md", ".markdown"}:
        return "text/markdown"
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "text/plain"


def format_summary(result: StructureAnalysisResult) -> str:
    lines = [
        f"Document {result.document_id}: {result.sections_count} sections, "
        f"average confidence {result.average_confidence}, "
        f"{result.analysis_time:.3f}s",
    ]
    for section in result.all_sections():
        indent = "  " * (section.level - 1)
        lines.append(
            f"{indent}- [{section.detection_method}] {section.title} "
            f"({section.content_length} chars, confidence {section.confidence})"
        )
    lines.extend(f"! {warning}" for warning in result.warnings)
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> configure logging -> analyze or run the pipeline."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    raw_bytes = args.file.read_bytes()
    mime_type = args.mime_type or guess_mime_type(args.file)

    if args.request:
        processor = build_processor(settings)
        context = processor.process(
            raw_bytes,
            mime_type=mime_type,
            source_id=args.file.name,
            schema_type=args.task,
        )
        print(context.final_text)
        return 0

    extractor = ExtractorFactory.for_mime_type(mime_type, settings)
    document = extractor.extract(raw_bytes, source_id=args.file.name)
    analyzer = StructureAnalyzerFactory.create(settings)
    result = analyzer.analyze(document)
    print(format_summary(result))
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
