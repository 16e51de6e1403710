"""
Template detection and policy for text embedded in components.
"""

from .detect import PatternDetector, TemplateDetector, TemplateMeta
from .policy import (
    DEFAULT_ALLOWED_FILTERS,
    DEFAULT_ALLOWED_TAGS,
    KNOWN_NAMESPACES,
    PolicyFinding,
    TemplatePolicy,
    lint_template,
)

__all__ = [
    "DEFAULT_ALLOWED_FILTERS",
    "DEFAULT_ALLOWED_TAGS",
    "KNOWN_NAMESPACES",
    "PatternDetector",
    "PolicyFinding",
    "TemplateDetector",
    "TemplateMeta",
    "TemplatePolicy",
    "lint_template",
]
