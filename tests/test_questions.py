"""Tests for tutorgate.analysis.questions: question vs. code detection."""

from __future__ import annotations

import pytest

from tutorgate.analysis.questions import is_question


class TestIsQuestion:
    @pytest.mark.parametrize("text", [
        "What is a variable?",
        "loops",
        "difference between list and tuple",
    ])
    def test_short_plain_text(self, text):
        assert is_question(text)

    @pytest.mark.parametrize("text", [
        "How do I reverse a list in Python without changing the original list; is slicing ok",
        "Explain how recursion works when a function calls itself again and again\nuntil a base case",
        "Can you explain what happens in memory when I write a = [1, 2]; b = a and change b",
        "Why is my loop never ending, I wrote while (x < 10) and then print(x) inside;",
    ])
    def test_question_openers_win_over_code_punctuation(self, text):
        assert is_question(text)

    def test_trailing_question_mark(self):
        text = "My function returns None instead of the sum when I call total(nums); what now?"
        assert is_question(text)

    @pytest.mark.parametrize("text", [
        "x = 5; print(x)",
        "def greet(name):\n    return 'hi ' + name",
        "for (let i = 0; i < 3; i++) { console.log(i) }",
        "import os\nprint(os.getcwd())",
    ])
    def test_code_is_not_a_question(self, text):
        assert not is_question(text)

    def test_long_prose_without_code_is_a_question_below_limit(self):
        text = (
            "I keep getting confused between the ways lists and dictionaries store things\n"
            "and I would like a comparison of the two with an everyday analogy"
        )
        assert len(text) < 200
        assert is_question(text)

    def test_very_long_prose_is_not_a_question(self):
        text = "I have a homework assignment about sorting\n" + "and it is long " * 20
        assert len(text) >= 200
        assert not is_question(text)

    @pytest.mark.parametrize("text", [None, "", 42])
    def test_non_text(self, text):
        assert not is_question(text)
