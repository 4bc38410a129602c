from docstruct.processor.processor import Processor, build_processor

__all__ = ["Processor", "build_processor"]
