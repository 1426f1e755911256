"""Tests for tutorgate.analysis.analyzer: static issue analyzer."""

from __future__ import annotations

from tutorgate.analysis.analyzer import analyze
from tutorgate.schemas.analysis import IssueType

# ── Undefined names in print() ────────────────────────────────


class TestPrintedNames:
    def test_use_before_definition_flagged(self):
        result = analyze("print(x)\nx = 5")

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.type == IssueType.UNDEFINED_VARIABLE
        assert issue.line == 1
        assert issue.variable == "x"
        assert issue.message == "Variable 'x' is used on line 1 but is never defined"

    def test_suggestion_offers_quotes_and_definition(self):
        result = analyze("print(X)")

        assert len(result.suggestions) == 1
        suggestion = result.suggestions[0]
        assert suggestion.type == "fix_undefined_variable"
        assert suggestion.variable == "X"
        assert 'print("X")' in suggestion.message
        assert any('X = "your value"' in alt for alt in suggestion.alternatives)

    def test_bare_uppercase_name_flagged_once(self):
        result = analyze("print(X)")

        assert len(result.issues) == 1
        assert result.issues[0].variable == "X"

    def test_quoted_text_not_flagged(self):
        assert analyze('print("X")').issues == []
        assert analyze("print('hello world')").issues == []

    def test_defined_name_not_flagged(self):
        assert analyze("x = 5\nprint(x)").issues == []

    def test_literals_and_calls_skipped(self):
        code = "print(42)\nprint([1, 2])\nprint({'a': 1})\nprint(len([1]))"
        assert analyze(code).issues == []

    def test_attribute_access_uses_base_name(self):
        result = analyze("print(user.name)")

        assert [i.variable for i in result.issues] == ["user"]

    def test_builtins_never_flagged(self):
        assert analyze("print(True)\nprint(None)").issues == []


# ── General usage scan ────────────────────────────────────────


class TestGeneralUsage:
    def test_undefined_constant_flagged(self):
        result = analyze("total = PRICE * 2")

        assert len(result.issues) == 1
        assert result.issues[0].variable == "PRICE"
        assert result.issues[0].message == "Variable 'PRICE' may be undefined on line 1"

    def test_uppercase_heuristic_can_be_disabled(self):
        result = analyze("total = PRICE * 2", uppercase_heuristic=False)
        assert result.issues == []

    def test_lowercase_reads_not_flagged_outside_print(self):
        assert analyze("total = price * 2").issues == []

    def test_function_parameters_are_defined(self):
        code = "def greet(name):\n    print(name)"
        assert analyze(code).issues == []

    def test_import_alias_is_defined(self):
        code = "import math as m\nprint(m.pi)"
        assert analyze(code).issues == []

    def test_loop_target_is_defined(self):
        code = "numbers = [1, 2, 3]\nfor n in numbers:\n    print(n)"
        assert analyze(code).issues == []

    def test_names_inside_strings_ignored(self):
        assert analyze('message = "HELLO THERE"').issues == []

    def test_names_in_comments_ignored(self):
        assert analyze("x = 1  # uses CONSTANT later").issues == []

    def test_one_issue_per_variable_and_line(self):
        result = analyze("print(X)\ny = X + X")

        pairs = [(i.variable, i.line) for i in result.issues]
        assert pairs == [("X", 1), ("X", 2)]


# ── Syntax smells ─────────────────────────────────────────────


class TestSyntaxSmells:
    def test_missing_colon(self):
        result = analyze("x = 5\nif x > 1\n    print(x)")

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.type == IssueType.SYNTAX_ERROR
        assert issue.line == 2
        assert issue.message == "Missing colon (:) after control structure on line 2"

    def test_unmatched_parentheses_in_print(self):
        result = analyze('print("hi"')

        assert [i.message for i in result.issues] == [
            "Possible unmatched parentheses on line 1",
        ]

    def test_parentheses_inside_strings_do_not_count(self):
        assert analyze('print("(")').issues == []

    def test_issues_sorted_by_line(self):
        result = analyze("y = 1\nif y > 0\nprint(Z)")

        lines = [i.line for i in result.issues]
        assert lines == sorted(lines)


# ── Edge cases ────────────────────────────────────────────────


class TestEdgeCases:
    def test_empty_source(self):
        result = analyze("")
        assert result.issues == []
        assert result.suggestions == []
        assert not result.has_issues

    def test_other_languages_have_no_rules(self):
        assert analyze("console.log(X)", "javascript").issues == []

    def test_language_tag_is_case_insensitive(self):
        assert analyze("print(X)", "Python").has_issues

    def test_analysis_is_deterministic(self):
        code = "print(x)\nif x\nvalue = TOTAL"
        assert analyze(code) == analyze(code)
