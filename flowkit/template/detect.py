"""
Template detection (no rendering).

A detector inspects a string for template syntax and reports which
variables, filters and control tags it uses. Text is never rendered here;
the messaging runtime renders at send time.

Syntax recognized:
    {{ user.name | upcase }}   variable output with filters
    {% if flow.ok %} ... {% endif %}   control tags

Invariants:
    - vars, filters and tags are de-duplicated, first occurrence order
    - estimated_static_length is the text length with delimiters removed
    - Unbalanced delimiters raise TemplateParseError
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..errors import TemplateParseError

_VAR_RE = re.compile(r"\{\{\s*([a-zA-Z0-9_.]+)")
_FILTER_RE = re.compile(r"\|\s*([a-zA-Z0-9_]+)")
_TAG_RE = re.compile(r"\{%\s*([a-zA-Z0-9_]+)")
_DELIM_RE = re.compile(r"\{\{|\}\}|\{%|%\}")

_CLOSERS = {"{{": "}}", "{%": "%}"}


@dataclass(frozen=True)
class TemplateMeta:
    """What a detector found in one string."""

    is_template: bool = False
    vars: tuple[str, ...] = ()
    filters: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    estimated_static_length: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_template": self.is_template,
            "vars": list(self.vars),
            "filters": list(self.filters),
            "tags": list(self.tags),
            "estimated_static_length": self.estimated_static_length,
        }


class TemplateDetector(Protocol):
    """Parses text for template usage without rendering it."""

    def parse(self, text: str, context: Optional[dict[str, Any]] = None) -> TemplateMeta:
        ...


def _unique(values: list[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return tuple(seen)


def _check_balanced(text: str) -> None:
    open_delim: Optional[str] = None
    for match in _DELIM_RE.finditer(text):
        token = match.group(0)
        if token in _CLOSERS:
            if open_delim is not None:
                raise TemplateParseError(
                    f"'{token}' opened inside '{open_delim}' at offset {match.start()}",
                    text=text,
                )
            open_delim = token
        else:
            if open_delim is None or _CLOSERS[open_delim] != token:
                raise TemplateParseError(
                    f"unexpected '{token}' at offset {match.start()}",
                    text=text,
                )
            open_delim = None
    if open_delim is not None:
        raise TemplateParseError(f"unclosed '{open_delim}'", text=text)


class PatternDetector:
    """Regex-based detector for the double-brace template syntax."""

    def parse(self, text: str, context: Optional[dict[str, Any]] = None) -> TemplateMeta:
        """Parse text and extract template metadata.

        Args:
            text: Raw text, possibly containing template syntax
            context: Runtime context (unused by this detector)

        Returns:
            TemplateMeta describing the text

        Raises:
            TemplateParseError: If delimiters are unbalanced
        """
        _check_balanced(text)

        static = text
        for delim in ("{{", "}}", "{%", "%}"):
            static = static.replace(delim, "")

        has_output = "{{" in text
        has_tags = "{%" in text
        return TemplateMeta(
            is_template=has_output or has_tags,
            vars=_unique(_VAR_RE.findall(text)) if has_output else (),
            filters=_unique(_FILTER_RE.findall(text)) if has_output else (),
            tags=_unique(_TAG_RE.findall(text)) if has_tags else (),
            estimated_static_length=len(static),
        )
