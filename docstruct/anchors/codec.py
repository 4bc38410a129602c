"""Anchor markers: generation, recognition and id extraction.

Marker grammar::

    <!-- SECTION_ANCHOR_<id>:<slug>_<hash> -->

``id`` is the section id (``[A-Za-z0-9_-]``, at most 255 chars), ``slug`` is the
ASCII-transliterated, lower-cased and truncated section title and ``hash`` is
at least six hex digits of a SHA-256 over ``id + title``. The hash only grows
past six digits when the shorter form is already taken in the registry.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import ClassVar

import icu  # type: ignore[import-untyped]

from docstruct.anchors.exceptions import AnchorCollisionError, InvalidAnchorIdError
from docstruct.anchors.registry import AnchorRegistry

ANCHOR_PREFIX = "<!-- SECTION_ANCHOR_"
ANCHOR_SUFFIX = " -->"

_MIN_HASH_LENGTH = 6
_MAX_ID_LENGTH = 255


@dataclass(frozen=True)
class AnchorMatch:
    """A marker located inside a larger text."""

    marker: str
    anchor_id: str
    start: int
    end: int


class AnchorCodec:
    """Builds and parses section anchor markers.

    The codec itself is stateless configuration; uniqueness is tracked by the
    AnchorRegistry passed to ``generate``.
    """

    _ICU_TRANSFORM: ClassVar[str] = "Any-Latin; Latin-ASCII; Lower"

    _ID_RE: ClassVar[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_-]{1,255}")
    _BODY_PATTERN: ClassVar[str] = (
        r"(?P<id>[A-Za-z0-9_-]{1,255}):(?P<slug>[a-z0-9_]{1,255})_(?P<hash>[0-9a-f]{6,64})"
    )
    _MARKER_RE: ClassVar[re.Pattern[str]] = re.compile(
        re.escape(ANCHOR_PREFIX) + _BODY_PATTERN + re.escape(ANCHOR_SUFFIX)
    )
    _BODY_RE: ClassVar[re.Pattern[str]] = re.compile(_BODY_PATTERN)
    _NON_SLUG_RE: ClassVar[re.Pattern[str]] = re.compile(r"[^a-z0-9]+")

    def __init__(self, max_slug_length: int = 50, max_attempts: int = 16) -> None:
        if max_slug_length < 1:
            raise ValueError("max_slug_length must be positive")
        if not 1 <= max_attempts <= 64 - _MIN_HASH_LENGTH + 1:
            raise ValueError("max_attempts must be between 1 and 59")
        self._max_slug_length = max_slug_length
        self._max_attempts = max_attempts
        self._transliterator: icu.Transliterator = icu.Transliterator.createInstance(
            self._ICU_TRANSFORM
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(self, section_id: str, title: str, registry: AnchorRegistry) -> str:
        """Issue a marker for ``section_id`` that is unique within ``registry``.

        Raises:
            InvalidAnchorIdError: if the id contains characters outside the grammar.
            AnchorCollisionError: if no unique marker was found within the attempt limit.
        """
        if not self._ID_RE.fullmatch(section_id or ""):
            raise InvalidAnchorIdError(
                f"Section id '{section_id}' must match [A-Za-z0-9_-] "
                f"and be at most {_MAX_ID_LENGTH} characters"
            )
        slug = self.slugify(title)
        digest = hashlib.sha256(f"{section_id}{title}".encode("utf-8")).hexdigest()
        for attempt in range(self._max_attempts):
            marker = self.format_marker(
                section_id, slug, digest[: _MIN_HASH_LENGTH + attempt]
            )
            if registry.register(marker):
                return marker
        raise AnchorCollisionError(
            f"Could not issue a unique anchor for '{section_id}' "
            f"after {self._max_attempts} attempts"
        )

    def generate_batch(
        self,
        pairs: Iterable[tuple[str, str]],
        registry: AnchorRegistry,
    ) -> list[str]:
        return [self.generate(section_id, title, registry) for section_id, title in pairs]

    def slugify(self, title: str) -> str:
        normalized = unicodedata.normalize("NFC", title or "")
        transliterated = self._transliterator.transliterate(normalized)
        slug = self._NON_SLUG_RE.sub("_", transliterated.lower()).strip("_")
        slug = slug[: self._max_slug_length].rstrip("_")
        return slug or "section"

    @staticmethod
    def format_marker(section_id: str, slug: str, digest: str) -> str:
        return f"{ANCHOR_PREFIX}{section_id}:{slug}_{digest}{ANCHOR_SUFFIX}"

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------

    @classmethod
    def extract_id(cls, anchor_text: str) -> str | None:
        """Return the section id of a complete marker, or None."""
        match = cls._MARKER_RE.fullmatch(anchor_text.strip()) if anchor_text else None
        return match.group("id") if match else None

    def normalize_reference(self, value: object) -> str | None:
        """Resolve a marker, a marker body or a bare id to the section id."""
        if not isinstance(value, str):
            return None
        candidate = value.strip()
        if not candidate:
            return None
        marker_id = self.extract_id(candidate)
        if marker_id is not None:
            return marker_id
        body = self._BODY_RE.fullmatch(candidate)
        if body:
            return body.group("id")
        if self._ID_RE.fullmatch(candidate):
            return candidate
        return None

    def is_anchor(self, text: str) -> bool:
        return self.extract_id(text) is not None

    def find_all(self, text: str) -> list[str]:
        return [match.marker for match in self.iter_matches(text)]

    def iter_matches(self, text: str) -> Iterator[AnchorMatch]:
        for match in self._MARKER_RE.finditer(text or ""):
            yield AnchorMatch(
                marker=match.group(0),
                anchor_id=match.group("id"),
                start=match.start(),
                end=match.end(),
            )

    @property
    def marker_pattern(self) -> re.Pattern[str]:
        return self._MARKER_RE
