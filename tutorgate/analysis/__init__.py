"""Static analysis and deterministic fallback text.

Nothing in this package touches the network; it is what the gateway
falls back on when every provider is down.
"""

from tutorgate.analysis.analyzer import PYTHON_BUILTINS, analyze
from tutorgate.analysis.concepts import extract_concepts, generate_examples
from tutorgate.analysis.errors import parse_error
from tutorgate.analysis.fallback import (
    build_answer_fallback,
    build_explanation_fallback,
    build_fallback,
    fallback_disclaimer,
    render_issues,
)
from tutorgate.analysis.questions import is_question

__all__ = [
    "PYTHON_BUILTINS",
    "analyze",
    "build_answer_fallback",
    "build_explanation_fallback",
    "build_fallback",
    "extract_concepts",
    "fallback_disclaimer",
    "generate_examples",
    "is_question",
    "parse_error",
    "render_issues",
]
