"""
Template policy: which filters, tags and variables a design may use.

The policy is evaluated against TemplateMeta produced by a detector and
yields PolicyFinding values. The validation pipeline turns findings into
issues with a path.

Severity rules:
    - Lax policy (default): findings are warnings, undeclared context
      variables are info
    - Strict policy: findings are errors, undeclared context variables are
      warnings
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, List, Optional

from .detect import TemplateMeta

if TYPE_CHECKING:
    from ..config import Settings

DEFAULT_ALLOWED_FILTERS: FrozenSet[str] = frozenset({
    # text
    "upcase", "downcase", "capitalize", "strip", "truncate", "replace",
    "slug", "camelize", "underscore",
    # formatting
    "date", "number", "default", "json",
    # math
    "plus", "minus", "times", "divide", "modulo", "abs", "round", "floor", "ceil",
    # arrays
    "size", "first", "last", "join", "sort", "uniq", "reverse",
    # escaping
    "escape", "escape_once", "url_encode", "url_decode",
    # locale aware
    "phone", "currency", "money", "cpf", "cnpj", "cep", "rg",
    # dates
    "date_tz", "time_ago", "duration", "timestamp", "from_now",
    # hashing
    "md5", "sha1", "sha256", "base64", "base64_decode",
    # misc
    "length", "word_count", "newline_to_br", "strip_html",
})

DEFAULT_ALLOWED_TAGS: FrozenSet[str] = frozenset({
    "if", "elsif", "else", "endif", "unless", "endunless",
    "for", "endfor", "break", "continue",
    "case", "when", "endcase",
    "assign", "capture", "endcapture",
    "comment", "endcomment",
})

KNOWN_NAMESPACES: FrozenSet[str] = frozenset({
    "context", "profile", "user", "flow", "sys", "state", "global",
})

# Always available on messaging channels
BUILTIN_CONTEXT_KEYS: FrozenSet[str] = frozenset({"wa_phone", "wa_name"})


@dataclass(frozen=True)
class PolicyFinding:
    """One policy violation in a template."""

    severity: str  # "info" | "warn" | "error"
    code: str
    message: str


@dataclass(frozen=True)
class TemplatePolicy:
    """Rules for template usage.

    Attributes:
        strict: Findings become errors instead of warnings
        allowed_filters: Permitted filters (None allows any)
        allowed_tags: Permitted control tags (None allows any)
        max_depth: Maximum number of filters per text (0 disables the check)
    """

    strict: bool = False
    allowed_filters: Optional[FrozenSet[str]] = DEFAULT_ALLOWED_FILTERS
    allowed_tags: Optional[FrozenSet[str]] = DEFAULT_ALLOWED_TAGS
    max_depth: int = 5

    @classmethod
    def default(cls) -> TemplatePolicy:
        return cls()

    @classmethod
    def strict_policy(cls) -> TemplatePolicy:
        return cls(strict=True, max_depth=3)

    @classmethod
    def from_settings(cls, settings: Settings) -> TemplatePolicy:
        if settings.strict_templates:
            return cls(strict=True, max_depth=min(settings.max_filter_depth, 3))
        return cls(max_depth=settings.max_filter_depth)


def lint_template(
    meta: TemplateMeta,
    policy: TemplatePolicy,
    declared_context: Optional[FrozenSet[str]] = None,
) -> List[PolicyFinding]:
    """Check template metadata against a policy.

    Args:
        meta: Detector output for one text
        policy: Policy to enforce
        declared_context: Keys usable as context.<key>; None skips the check

    Returns:
        Findings in a stable order: filters, tags, depth, variables
    """
    if not meta.is_template:
        return []

    findings: List[PolicyFinding] = []
    severity = "error" if policy.strict else "warn"

    if policy.allowed_filters is not None:
        for f in meta.filters:
            if f not in policy.allowed_filters:
                findings.append(PolicyFinding(severity, "template.filter.not_allowed", f"filter not allowed: {f}"))

    if policy.allowed_tags is not None:
        for t in meta.tags:
            if t not in policy.allowed_tags:
                findings.append(PolicyFinding(severity, "template.tag.not_allowed", f"tag not allowed: {t}"))

    if policy.max_depth > 0 and len(meta.filters) > policy.max_depth:
        findings.append(PolicyFinding(
            severity,
            "template.filter.depth_exceeded",
            f"filter chain depth {len(meta.filters)} exceeds maximum {policy.max_depth}",
        ))

    for var in meta.vars:
        if "." not in var:
            # Bare names are loop or assign locals
            continue
        namespace, _, key = var.partition(".")
        if namespace not in KNOWN_NAMESPACES:
            findings.append(PolicyFinding(
                severity,
                "template.var.unknown_namespace",
                f"variable uses unknown namespace: {var}",
            ))
        elif namespace == "context" and declared_context is not None:
            root = key.split(".", 1)[0]
            if root not in declared_context and root not in BUILTIN_CONTEXT_KEYS:
                findings.append(PolicyFinding(
                    "warn" if policy.strict else "info",
                    "template.var.undeclared",
                    f"context variable '{root}' is not declared in profile.context",
                ))

    return findings
