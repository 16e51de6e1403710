"""
Unit tests for template detection and policy.

Tests cover:
- Variable, filter and tag extraction
- Static length estimation
- Unbalanced delimiter detection
- Lax vs strict policy severities
"""

import pytest

from flowkit.errors import TemplateParseError
from flowkit.template import PatternDetector, TemplateMeta, TemplatePolicy, lint_template


class TestPatternDetector:
    """Tests for PatternDetector.parse."""

    @pytest.fixture
    def detector(self):
        return PatternDetector()

    def test_plain_text(self, detector):
        meta = detector.parse("Hello there")

        assert meta.is_template is False
        assert meta.vars == ()
        assert meta.estimated_static_length == len("Hello there")

    def test_variables_and_filters(self, detector):
        meta = detector.parse("Hi {{ user.name | upcase | truncate }}, total {{ flow.total | money }}")

        assert meta.is_template is True
        assert meta.vars == ("user.name", "flow.total")
        assert meta.filters == ("upcase", "truncate", "money")

    def test_tags(self, detector):
        meta = detector.parse("{% if flow.ok %}yes{% else %}no{% endif %}")

        assert meta.tags == ("if", "else", "endif")
        assert meta.vars == ()

    def test_deduplicates(self, detector):
        meta = detector.parse("{{ user.name }} and {{ user.name }}")
        assert meta.vars == ("user.name",)

    def test_static_length_strips_delimiters(self, detector):
        meta = detector.parse("Hello {{user.name}}")
        assert meta.estimated_static_length == len("Hello user.name")

    def test_unclosed(self, detector):
        with pytest.raises(TemplateParseError):
            detector.parse("Hello {{ user.name")

    def test_stray_closer(self, detector):
        with pytest.raises(TemplateParseError):
            detector.parse("Hello }} there")

    def test_nested_open(self, detector):
        with pytest.raises(TemplateParseError):
            detector.parse("{{ a {% if %} }}")


class TestTemplatePolicy:
    """Tests for lint_template."""

    def _meta(self, text):
        return PatternDetector().parse(text)

    def test_non_template_has_no_findings(self):
        assert lint_template(TemplateMeta(), TemplatePolicy.default()) == []

    def test_allowed_usage(self):
        meta = self._meta("{{ user.name | upcase }} {% if flow.ok %}!{% endif %}")
        assert lint_template(meta, TemplatePolicy.default()) == []

    def test_disallowed_filter_warns(self):
        findings = lint_template(self._meta("{{ user.name | explode }}"), TemplatePolicy.default())

        assert [f.code for f in findings] == ["template.filter.not_allowed"]
        assert findings[0].severity == "warn"

    def test_disallowed_filter_strict_errors(self):
        findings = lint_template(self._meta("{{ user.name | explode }}"), TemplatePolicy.strict_policy())
        assert findings[0].severity == "error"

    def test_disallowed_tag(self):
        findings = lint_template(self._meta("{% raw %}x{% endraw %}"), TemplatePolicy.default())
        assert {f.code for f in findings} == {"template.tag.not_allowed"}

    def test_filter_depth(self):
        meta = self._meta("{{ user.name | upcase | downcase | strip | capitalize }}")
        findings = lint_template(meta, TemplatePolicy(max_depth=3))

        assert [f.code for f in findings] == ["template.filter.depth_exceeded"]

    def test_unknown_namespace(self):
        findings = lint_template(self._meta("{{ secrets.token }}"), TemplatePolicy.default())
        assert [f.code for f in findings] == ["template.var.unknown_namespace"]

    def test_bare_names_skipped(self):
        assert lint_template(self._meta("{{ item }}"), TemplatePolicy.default()) == []

    def test_undeclared_context_is_info(self):
        meta = self._meta("{{ context.order_id }}")
        findings = lint_template(meta, TemplatePolicy.default(), frozenset({"lang"}))

        assert [f.code for f in findings] == ["template.var.undeclared"]
        assert findings[0].severity == "info"

    def test_undeclared_context_strict_is_warn(self):
        meta = self._meta("{{ context.order_id }}")
        findings = lint_template(meta, TemplatePolicy.strict_policy(), frozenset())
        assert findings[0].severity == "warn"

    def test_builtin_context_keys(self):
        meta = self._meta("{{ context.wa_name }}")
        assert lint_template(meta, TemplatePolicy.default(), frozenset()) == []

    def test_declared_context_none_skips(self):
        assert lint_template(self._meta("{{ context.anything }}"), TemplatePolicy.default(), None) == []

    def test_any_filter_allowed_when_catalogue_disabled(self):
        policy = TemplatePolicy(allowed_filters=None)
        assert lint_template(self._meta("{{ user.name | explode }}"), policy) == []
