"""Section heading patterns and legal keywords loaded from configuration.

Patterns are validated once when the configuration is loaded and are then
only ever read. Matching runs on the ``regex`` engine with a per-call timeout;
a timeout or engine error counts as "no match".
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

import regex

from docstruct.logging.logger import Log
from docstruct.structure.exceptions import PatternConfigError

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "patterns.json"

MAX_PATTERN_LENGTH = 500
MAX_MATCH_INPUT_LENGTH = 10_000
MAX_LEVEL = 6

_UNSAFE_CONSTRUCTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?<!\\)[*+?]\+"), "stacked quantifier"),
    (re.compile(r"(?<!\\)\+\*"), "stacked quantifier"),
    (re.compile(r"(?<!\\)[*+]\{"), "stacked quantifier"),
    (re.compile(r"\(\.[*+]\)[*+{]"), "nested unbounded quantifier"),
    (re.compile(r"\((?:\\[wsdS]|\.)[*+]\)[*+{]"), "nested unbounded quantifier"),
)


class PatternGroup(str, Enum):
    NUMBERED = "numbered"
    SUBSECTION = "subsections"
    NAMED = "named"


@dataclass(frozen=True)
class SectionPattern:
    group: PatternGroup
    source: str
    compiled: Any


@dataclass(frozen=True)
class PatternMatch:
    """Result of matching one element against the heading patterns."""

    prefix: str
    title: str
    level: int
    group: PatternGroup
    pattern: str


def validate_pattern(source: str) -> None:
    """Reject patterns that are too long, do not compile or can backtrack badly.

    Raises:
        PatternConfigError: describing the first problem found.
    """
    if not source:
        raise PatternConfigError("Pattern must not be empty")
    if len(source) > MAX_PATTERN_LENGTH:
        raise PatternConfigError(
            f"Pattern exceeds {MAX_PATTERN_LENGTH} characters: {source[:40]}..."
        )
    for construct, label in _UNSAFE_CONSTRUCTS:
        if construct.search(source):
            raise PatternConfigError(f"Potentially unsafe regex pattern ({label}): {source}")
    try:
        regex.compile(source)
    except regex.error as exc:
        raise PatternConfigError(f"Invalid regex pattern {source!r}: {exc}") from exc


def compile_pattern(source: str) -> Any:
    validate_pattern(source)
    return regex.compile(source, regex.MULTILINE)


def safe_match(pattern: Any, text: str, timeout: float) -> Any | None:
    """Match ``pattern`` at the start of ``text`` with a bounded run time."""
    subject = text[:MAX_MATCH_INPUT_LENGTH]
    try:
        return pattern.match(subject, timeout=timeout)
    except TimeoutError:
        Log.warning(f"Regex timed out after {timeout}s: {pattern.pattern}")
    except regex.error as exc:
        Log.warning(f"Regex engine error for {pattern.pattern}: {exc}")
    return None


@dataclass(frozen=True)
class PatternConfig:
    """Read-only heading patterns and legal keyword list."""

    patterns: tuple[SectionPattern, ...]
    prefix_levels: Mapping[str, int]
    legal_keywords: tuple[str, ...]

    def match(self, text: str, *, timeout: float) -> PatternMatch | None:
        """Return the first pattern match for ``text`` in configured order."""
        for pattern in self.patterns:
            found = safe_match(pattern.compiled, text, timeout)
            if found is None:
                continue
            groups = found.groups()
            prefix = (groups[0] if groups else found.group(0)) or ""
            title = (groups[1] if len(groups) > 1 else "") or ""
            return PatternMatch(
                prefix=prefix.strip(),
                title=title.strip(),
                level=self.level_for_prefix(prefix, pattern.group),
                group=pattern.group,
                pattern=pattern.source,
            )
        return None

    def level_for_prefix(self, prefix: str, group: PatternGroup) -> int:
        stripped = prefix.strip()
        if group is PatternGroup.NAMED:
            return 1
        if stripped[:1].isdigit():
            numbers = re.findall(r"\d+", stripped)
            return max(1, min(len(numbers), MAX_LEVEL))
        lowered = stripped.lower()
        for keyword, level in self.prefix_levels.items():
            if lowered.startswith(keyword):
                return max(1, min(level, MAX_LEVEL))
        return 1

    def count_keywords(self, text: str) -> int:
        lowered = text.lower()
        return sum(lowered.count(keyword) for keyword in self.legal_keywords)


def build_pattern_config(data: Mapping[str, Any]) -> PatternConfig:
    """Validate and compile a raw configuration mapping.

    Raises:
        PatternConfigError: if any section is malformed or any pattern is unsafe.
    """
    patterns: list[SectionPattern] = []
    for group in PatternGroup:
        sources = data.get(group.value, [])
        if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
            raise PatternConfigError(f"'{group.value}' must be a list of strings")
        for source in sources:
            patterns.append(
                SectionPattern(group=group, source=source, compiled=compile_pattern(source))
            )

    raw_levels = data.get("prefix_levels", {})
    if not isinstance(raw_levels, dict):
        raise PatternConfigError("'prefix_levels' must be an object")
    prefix_levels: dict[str, int] = {}
    for keyword, level in raw_levels.items():
        if not isinstance(level, int) or isinstance(level, bool) or not 1 <= level <= MAX_LEVEL:
            raise PatternConfigError(
                f"Level for prefix '{keyword}' must be an integer between 1 and {MAX_LEVEL}"
            )
        prefix_levels[str(keyword).lower()] = level

    raw_keywords = data.get("legal_keywords", [])
    if isinstance(raw_keywords, dict):
        raw_keywords = [word for words in raw_keywords.values() for word in words]
    if not isinstance(raw_keywords, list) or not all(isinstance(w, str) for w in raw_keywords):
        raise PatternConfigError("'legal_keywords' must be a list or a map of lists of strings")
    keywords = tuple(dict.fromkeys(word.strip().lower() for word in raw_keywords if word.strip()))

    return PatternConfig(
        patterns=tuple(patterns),
        prefix_levels=MappingProxyType(prefix_levels),
        legal_keywords=keywords,
    )


def load_pattern_config(path: Path | None = None) -> PatternConfig:
    """Load section patterns from a JSON file.

    Args:
        path: Configuration file. Defaults to the bundled config/patterns.json.

    Raises:
        PatternConfigError: if the file cannot be read or is invalid.
    """
    if path is None:
        path = _DEFAULT_CONFIG_PATH
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PatternConfigError(f"Failed to load pattern configuration: {exc}") from exc
    if not isinstance(data, dict):
        raise PatternConfigError("Pattern configuration must be a JSON object")
    config = build_pattern_config(data)
    Log.debug(
        f"Loaded {len(config.patterns)} section patterns and "
        f"{len(config.legal_keywords)} legal keywords from {path}"
    )
    return config
