"""Offline model client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseModelClient and register the provider in ModelRequesterFactory.
"""

import json
from typing import Any, ClassVar

from docstruct.anchors.codec import AnchorCodec
from docstruct.llm.client_base import BaseModelClient
from docstruct.splicing.splicer import ContentSplicer


class ExampleClientAdapter(BaseModelClient):
    """Echoes every anchored section of the prompt back as a valid response.

    No network calls. Useful for local development, tests, and as a template
    for building real provider adapters.
    """

    DEFAULT_KIND: ClassVar[str] = "warning"

    def __init__(self, codec: AnchorCodec | None = None) -> None:
        self._splicer = ContentSplicer(codec or AnchorCodec())

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt
        needs_kind = "kind" in self._item_required_fields(json_schema)
        parsed = self._splicer.extract_sections(user_prompt)
        sections: list[dict[str, str]] = []
        for section in parsed.sections:
            if section.anchor is None:
                continue
            item = {
                "anchor": section.id,
                "content": section.original_text or section.title,
            }
            if needs_kind:
                item["kind"] = self.DEFAULT_KIND
            sections.append(item)
        return json.dumps({"sections": sections}, ensure_ascii=False)

    @staticmethod
    def _item_required_fields(json_schema: dict[str, Any]) -> list[str]:
        sections = json_schema.get("properties", {}).get("sections", {})
        required = sections.get("items", {}).get("required", [])
        return list(required) if isinstance(required, list) else []
