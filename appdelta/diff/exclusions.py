"""
Exclusion filtering for classified and unclassified changes.

Exclusion terms are case-insensitive wildcard patterns that match anywhere in
a field ("java" excludes "Java 8 Update 391"). A term may use:
- ``*`` for any run of characters
- ``?`` for exactly one character
- ``[...]`` for a character class (``[!...]`` negates; a ``]`` right after
  the opening ``[`` or ``[!`` is a literal member, so ``[]x]`` matches "]" or "x")

Filtering runs as an ordered list of independent stages. Each stage takes a
record stream and returns a new one; nothing is modified in place.

STAGE ORDER:
1. Global exclusions, on Application, before classification
2. Publisher exclusions, on Publisher, before classification
3. Per-type exclusions (installs, uninstalls, updates), on Application,
   after classification, each only against records of its own change type
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Pattern, Sequence

from .change_events import ChangeType

logger = logging.getLogger(__name__)


class InvalidExclusionPattern(ValueError):
    """Raised when an exclusion term cannot be compiled into a matcher."""

    def __init__(self, term: str, reason: str):
        self.term = term
        self.reason = reason
        super().__init__(f"Invalid exclusion term {term!r}: {reason}")


def _character_class(term: str, body: str) -> str:
    if body.startswith("!"):
        prefix, body = "^", body[1:]
    else:
        prefix = ""
    if not body:
        raise InvalidExclusionPattern(term, "empty character class")
    body = body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
    if body.startswith("^"):
        body = "\\" + body
    return f"[{prefix}{body}]"


def wildcard_to_regex(term: str) -> str:
    """
    Translate one wildcard term into a regular expression fragment.

    Raises:
        InvalidExclusionPattern: On an unterminated character class
    """
    parts = []
    index = 0
    while index < len(term):
        char = term[index]
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            start = index + 1
            if start < len(term) and term[start] == "!":
                start += 1
            if start < len(term) and term[start] == "]":
                start += 1
            end = term.find("]", start)
            if end == -1:
                raise InvalidExclusionPattern(term, "unterminated character class")
            parts.append(_character_class(term, term[index + 1:end]))
            index = end
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


class ExclusionPattern:
    """
    A compiled "contains any term" matcher.

    An empty (or all-blank) term set matches nothing.
    """

    def __init__(self, terms: Sequence[str], regex: Optional[Pattern]):
        self.terms = tuple(terms)
        self._regex = regex

    @property
    def is_empty(self) -> bool:
        return self._regex is None

    def matches(self, value: Optional[str]) -> bool:
        """Return True if ``value`` contains any term."""
        if self._regex is None:
            return False
        return self._regex.search(value or "") is not None

    def matches_field(self, record: Any, field_name: str) -> bool:
        """Return True if ``record.<field_name>`` contains any term."""
        return self.matches(getattr(record, field_name, ""))

    def __repr__(self) -> str:
        return f"ExclusionPattern(terms={list(self.terms)!r})"


def build_pattern(terms: Optional[Iterable[str]]) -> ExclusionPattern:
    """
    Compile a set of exclusion terms into a single case-insensitive matcher.

    Each term is wrapped as ``*term*`` and the terms are OR'd together.
    Blank terms are ignored; duplicates are kept once.

    Args:
        terms: Exclusion terms (may be None or empty)

    Returns:
        ExclusionPattern

    Raises:
        InvalidExclusionPattern: If any term cannot be compiled
    """
    cleaned: List[str] = []
    for term in terms or ():
        term = str(term).strip() if term is not None else ""
        if term and term not in cleaned:
            cleaned.append(term)

    if not cleaned:
        return ExclusionPattern((), None)

    fragments = []
    for term in cleaned:
        fragment = wildcard_to_regex(term)
        try:
            re.compile(fragment, re.IGNORECASE | re.DOTALL)
        except re.error as e:
            raise InvalidExclusionPattern(term, str(e)) from e
        fragments.append(f"(?:{fragment})")

    regex = re.compile("|".join(fragments), re.IGNORECASE | re.DOTALL)
    return ExclusionPattern(cleaned, regex)


@dataclass(frozen=True)
class ExclusionStage:
    """
    One independent filter stage.

    A record is excluded when its ``field_name`` attribute matches the
    pattern and, for per-type stages, its ``change`` equals ``change_type``.
    """
    name: str
    field_name: str
    pattern: ExclusionPattern
    change_type: Optional[Enum] = None

    def excludes(self, record: Any) -> bool:
        if self.change_type is not None and getattr(record, "change", None) != self.change_type:
            return False
        return self.pattern.matches_field(record, self.field_name)


def apply_stages(records: Iterable[Any], stages: Sequence[ExclusionStage]) -> List[Any]:
    """Run ``records`` through ``stages`` in order and return the surviving records."""
    remaining = list(records)
    for stage in stages:
        if stage.pattern.is_empty:
            continue
        kept = []
        for record in remaining:
            if stage.excludes(record):
                logger.debug(
                    "Excluded %r by %s exclusion",
                    getattr(record, stage.field_name, ""),
                    stage.name
                )
            else:
                kept.append(record)
        remaining = kept
    return remaining


def _empty_pattern() -> ExclusionPattern:
    return ExclusionPattern((), None)


@dataclass(frozen=True)
class ExclusionRules:
    """
    All exclusion patterns for one run, grouped by stage.

    Build with ``from_terms`` so every term is validated up front.
    """
    global_pattern: ExclusionPattern = field(default_factory=_empty_pattern)
    publisher_pattern: ExclusionPattern = field(default_factory=_empty_pattern)
    installs_pattern: ExclusionPattern = field(default_factory=_empty_pattern)
    uninstalls_pattern: ExclusionPattern = field(default_factory=_empty_pattern)
    updates_pattern: ExclusionPattern = field(default_factory=_empty_pattern)

    @classmethod
    def from_terms(
        cls,
        global_terms: Optional[Iterable[str]] = None,
        publisher_terms: Optional[Iterable[str]] = None,
        install_terms: Optional[Iterable[str]] = None,
        uninstall_terms: Optional[Iterable[str]] = None,
        update_terms: Optional[Iterable[str]] = None
    ) -> "ExclusionRules":
        """Compile every term list; raises InvalidExclusionPattern on the first bad term."""
        return cls(
            global_pattern=build_pattern(global_terms),
            publisher_pattern=build_pattern(publisher_terms),
            installs_pattern=build_pattern(install_terms),
            uninstalls_pattern=build_pattern(uninstall_terms),
            updates_pattern=build_pattern(update_terms),
        )

    def pre_classification_stages(self) -> List[ExclusionStage]:
        return [
            ExclusionStage("global", "application", self.global_pattern),
            ExclusionStage("publisher", "publisher", self.publisher_pattern),
        ]

    def post_classification_stages(self) -> List[ExclusionStage]:
        return [
            ExclusionStage("installs", "application", self.installs_pattern, ChangeType.INSTALLED),
            ExclusionStage("uninstalls", "application", self.uninstalls_pattern, ChangeType.UNINSTALLED),
            ExclusionStage("updates", "application", self.updates_pattern, ChangeType.UPDATED),
        ]

    def apply_pre(self, deltas: Iterable[Any]) -> List[Any]:
        """Apply global and publisher exclusions to reformatted differences."""
        return apply_stages(deltas, self.pre_classification_stages())

    def apply_post(self, records: Iterable[Any]) -> List[Any]:
        """Apply per-type exclusions to classified change records."""
        return apply_stages(records, self.post_classification_stages())
