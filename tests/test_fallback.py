"""Tests for tutorgate.analysis.fallback: deterministic fallback text."""

from __future__ import annotations

from tutorgate.analysis.analyzer import analyze
from tutorgate.analysis.fallback import (
    FALLBACK_NOTE,
    build_answer_fallback,
    build_explanation_fallback,
    build_fallback,
    fallback_disclaimer,
    render_issues,
)
from tutorgate.schemas.completion import ProviderError

_ERRORS = [
    ProviderError(provider="mistral", error="timed out after 12s"),
    ProviderError(provider="openai", error="rate limit"),
]


# ── build_fallback ────────────────────────────────────────────


class TestBuildFallback:
    def test_name_error_names_variable_and_has_code_block(self):
        text = build_fallback(
            "print(greeting)", "NameError: name 'greeting' is not defined",
        )

        assert "```python" in text
        assert "greeting" in text
        assert "**NameError**" in text
        assert 'print("greeting")' in text
        assert 'greeting = "your value here"' in text

    def test_type_error_narrative(self):
        text = build_fallback(
            'print("Age: " + 30)',
            'TypeError: can only concatenate str (not "int") to str',
        )

        assert "TypeError" in text
        assert "str(age)" in text
        assert "**Corrected Code:**" in text

    def test_syntax_error_narrative(self):
        text = build_fallback("if x > 1\n    pass", "SyntaxError: expected ':'")
        assert "missing colons" in text.lower()

    def test_unknown_error_type_gets_generic_text(self):
        text = build_fallback("x = 1", "Segmentation fault")

        assert "**What Went Wrong:**" in text
        assert "# Fix the issue based on the error message above" in text

    def test_without_error_renders_analyzer_issues(self):
        text = build_fallback("print(X)")

        assert "**Issues Detected in Your Code:**" in text
        assert "UNDEFINED VARIABLE" in text
        assert "**Suggestions to Fix:**" in text
        assert 'print("X")' in text

    def test_clean_code_gets_general_tips(self):
        text = build_fallback("x = 1\nprint(x)")

        assert "**General Tips:**" in text
        assert "**Corrected Code:**" in text

    def test_always_ends_with_disclaimer(self):
        text = build_fallback("x = 1")
        assert text.rstrip().endswith(f"*Note: {FALLBACK_NOTE}*")

    def test_disclaimer_lists_provider_errors(self):
        text = build_fallback("x = 1", upstream_errors=_ERRORS)

        assert "mistral: timed out after 12s" in text
        assert "openai: rate limit" in text


# ── Explanation / answer fallbacks ────────────────────────────


class TestOtherFallbacks:
    def test_explanation_quotes_code(self):
        text = build_explanation_fallback("total = 1 + 2", _ERRORS)

        assert "total = 1 + 2" in text
        assert FALLBACK_NOTE in text
        assert "mistral: timed out after 12s" in text

    def test_answer_recognises_topic(self):
        text = build_answer_fallback("What is a loop?")

        assert "grocery list" in text
        assert "for item in [1, 2, 3]:" in text

    def test_answer_substitutes_language(self):
        text = build_answer_fallback("What is a variable?", language="JavaScript")
        assert "In JavaScript:" in text

    def test_answer_function_example_keeps_braces(self):
        text = build_answer_fallback("How do I write a function?")
        assert 'f"Hello {name}"' in text

    def test_answer_unknown_topic_is_generic(self):
        text = build_answer_fallback("How do compilers work?")

        assert "great programming question" in text
        assert '"How do compilers work?"' in text
        assert FALLBACK_NOTE in text


# ── Helpers ───────────────────────────────────────────────────


class TestRenderIssues:
    def test_none_without_issues(self):
        assert render_issues([], []) is None

    def test_numbered_list(self):
        result = analyze("print(A)\nprint(B)")
        text = render_issues(result.issues, result.suggestions)

        assert "1. **UNDEFINED VARIABLE** (Line 1)" in text
        assert "2. **UNDEFINED VARIABLE** (Line 2)" in text


class TestDisclaimer:
    def test_plain(self):
        assert fallback_disclaimer() == f"*Note: {FALLBACK_NOTE}*"

    def test_with_errors(self):
        text = fallback_disclaimer(_ERRORS)
        assert text.endswith("Provider errors: mistral: timed out after 12s, openai: rate limit*")
