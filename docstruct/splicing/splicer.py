"""Extract and replace content at anchor boundaries of an anchored document.

Nothing here raises on malformed input: text without recognizable anchors
is treated as a single unanchored section.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from docstruct.anchors.codec import AnchorCodec
from docstruct.reconciliation.models import ParsedModelResponse
from docstruct.splicing.models import ParsedContent, Risk, RiskKind, SplicedSection

TRANSLATION_MARKER = "**[Переведено]:**"
RISK_MARKERS: dict[RiskKind, str] = {
    RiskKind.CONTRADICTION: "**[Найдено противоречие]:**",
    RiskKind.RISK: "**[Найден риск]:**",
    RiskKind.WARNING: "**[Предупреждение]:**",
}

INTRO_SECTION_ID = "intro"
INTRO_SECTION_TITLE = "Введение"
MAIN_SECTION_ID = "main"
MAIN_SECTION_TITLE = "Документ"
UNTITLED_TITLE = "Без названия"

_DEFAULT_RISK_BY_SCHEMA: dict[str, RiskKind] = {
    "contradiction": RiskKind.CONTRADICTION,
    "ambiguity": RiskKind.WARNING,
}

_RISK_KINDS: dict[str, RiskKind] = {kind.value: kind for kind in RiskKind}
_MARKDOWN_PREFIX_RE = re.compile(r"^#+\s*")
_NUMBERING_PREFIX_RE = re.compile(r"^(?:\d+(?:\.\d+)*\.?|[IVXLC]+\.)\s+")


class ContentSplicer:
    """Splits, rewrites and strips anchor markers in document text."""

    def __init__(
        self,
        codec: AnchorCodec,
        translation_marker: str = TRANSLATION_MARKER,
        risk_markers: Mapping[RiskKind, str] | None = None,
    ) -> None:
        self._codec = codec
        self._translation_marker = translation_marker
        self._risk_markers = dict(risk_markers or RISK_MARKERS)
        self._kind_by_marker: dict[str, RiskKind | None] = {translation_marker: None}
        for kind, marker in self._risk_markers.items():
            self._kind_by_marker[marker] = kind
        alternatives = sorted(self._kind_by_marker, key=len, reverse=True)
        self._typed_marker_re = re.compile("|".join(re.escape(m) for m in alternatives))
        self._strip_re = re.compile(codec.marker_pattern.pattern + r"[ \t]*(?:\r?\n)?")

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def extract_sections(self, text: str) -> ParsedContent:
        text = text or ""
        matches = list(self._codec.iter_matches(text))
        if not matches:
            return ParsedContent(
                original_text=text,
                sections=[self._build_section(MAIN_SECTION_ID, text, title=MAIN_SECTION_TITLE)],
                anchor_ids=[],
            )

        sections: list[SplicedSection] = []
        intro = text[: matches[0].start]
        if intro.strip():
            sections.append(
                self._build_section(INTRO_SECTION_ID, intro, title=INTRO_SECTION_TITLE)
            )
        for index, match in enumerate(matches):
            end = matches[index + 1].start if index + 1 < len(matches) else len(text)
            sections.append(
                self._build_section(match.anchor_id, text[match.end : end], anchor=match.marker)
            )
        return ParsedContent(
            original_text=text,
            sections=sections,
            anchor_ids=[match.anchor_id for match in matches],
        )

    def list_anchors(self, text: str) -> list[str]:
        return [match.anchor_id for match in self._codec.iter_matches(text or "")]

    @staticmethod
    def extract_title(text: str) -> str:
        for line in text.splitlines():
            candidate = line.strip()
            if not candidate:
                continue
            candidate = _MARKDOWN_PREFIX_RE.sub("", candidate)
            candidate = _NUMBERING_PREFIX_RE.sub("", candidate).strip(" *")
            return candidate or UNTITLED_TITLE
        return UNTITLED_TITLE

    # ------------------------------------------------------------------
    # Rewriting
    # ------------------------------------------------------------------

    def replace_anchors(self, text: str, id_to_replacement: Mapping[str, str]) -> str:
        """Substitute markers whose id is in the mapping; leave the rest untouched.

        Replacement text must not itself contain an anchor marker.
        """
        return self._codec.marker_pattern.sub(
            lambda m: id_to_replacement.get(m.group("id"), m.group(0)),
            text or "",
        )

    def strip_anchors(self, text: str) -> str:
        """Remove every marker with its trailing spaces and at most one line break.

        Removal repeats until no marker is left: joining the text around a
        removed marker can form a new one.
        """
        text = text or ""
        while (stripped := self._strip_re.sub("", text)) != text:
            text = stripped
        return text

    def insert_after_anchors(self, text: str, id_to_block: Mapping[str, str]) -> str:
        return self._codec.marker_pattern.sub(
            lambda m: (
                f"{m.group(0)}\n{id_to_block[m.group('id')]}"
                if m.group("id") in id_to_block
                else m.group(0)
            ),
            text or "",
        )

    def append_to_sections(self, text: str, id_to_block: Mapping[str, str]) -> str:
        """Place each block at the end of its anchor's slice, before the next anchor."""
        text = text or ""
        matches = list(self._codec.iter_matches(text))
        if not matches:
            return text
        pieces = [text[: matches[0].start]]
        for index, match in enumerate(matches):
            has_next = index + 1 < len(matches)
            end = matches[index + 1].start if has_next else len(text)
            chunk = text[match.start : end]
            block = id_to_block.get(match.anchor_id)
            if block:
                body = chunk.rstrip()
                trailing = chunk[len(body) :] or ("\n" if has_next else "")
                chunk = f"{body}\n\n{block}{trailing}"
            pieces.append(chunk)
        return "".join(pieces)

    def apply_response(self, text: str, response: ParsedModelResponse) -> str:
        """Write every valid anchor's model content back into its section."""
        default_kind = _DEFAULT_RISK_BY_SCHEMA.get(response.schema_type.lower())
        blocks: dict[str, str] = {}
        for anchor_id, items in response.anchor_items.items():
            outcome = response.anchor_outcomes.get(anchor_id)
            if outcome is None or not outcome.is_valid:
                continue
            lines = []
            for item in items:
                content = item.get("content")
                if not isinstance(content, str) or not content.strip():
                    continue
                marker = self._marker_for(item.get("kind"), default_kind)
                lines.append(f"{marker} {content.strip()}")
            if lines:
                blocks[anchor_id] = "\n\n".join(lines)
        return self.append_to_sections(text, blocks)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _marker_for(self, kind: object, default_kind: RiskKind | None) -> str:
        risk_kind = _RISK_KINDS.get(kind.lower()) if isinstance(kind, str) else None
        if risk_kind is not None and risk_kind in self._risk_markers:
            return self._risk_markers[risk_kind]
        if default_kind is not None:
            return self._risk_markers[default_kind]
        return self._translation_marker

    def _build_section(
        self,
        section_id: str,
        chunk: str,
        *,
        title: str | None = None,
        anchor: str | None = None,
    ) -> SplicedSection:
        typed = list(self._typed_marker_re.finditer(chunk))
        original = chunk[: typed[0].start()] if typed else chunk
        translated: list[str] = []
        risks: list[Risk] = []
        for index, marker in enumerate(typed):
            end = typed[index + 1].start() if index + 1 < len(typed) else len(chunk)
            body = chunk[marker.end() : end].strip()
            if not body:
                continue
            kind = self._kind_by_marker[marker.group(0)]
            if kind is None:
                translated.append(body)
            else:
                risks.append(Risk(kind=kind, text=body))
        original_text = original.strip()
        return SplicedSection(
            id=section_id,
            title=title or self.extract_title(original_text),
            original_text=original_text,
            translated_texts=translated,
            risks=risks,
            anchor=anchor,
        )
