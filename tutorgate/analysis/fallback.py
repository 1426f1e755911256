"""Deterministic feedback used when no upstream provider can answer.

Everything here is templated from the static analyzer and the error
parser, with no network access, so the gateway can always return a usable
answer. Every text ends with a disclaimer so callers (and learners) can
tell it apart from AI-generated output.
"""

from __future__ import annotations

from collections.abc import Sequence

from tutorgate.analysis.analyzer import analyze
from tutorgate.analysis.errors import parse_error
from tutorgate.schemas.analysis import CodeIssue, ParsedError, Suggestion
from tutorgate.schemas.completion import ProviderError

FALLBACK_NOTE = (
    "AI providers are currently unavailable. This is an automated fallback "
    "analysis based on code patterns."
)

# Canned concept answers for the question fallback: (keywords, answer)
_TOPIC_ANSWERS: list[tuple[tuple[str, ...], str]] = [
    (
        ("variable",),
        "A variable is like a labeled box where you store something. "
        "In {language}: `x = 5` means you put 5 into the box called x.",
    ),
    (
        ("loop",),
        "A loop is like checking each item on your grocery list one by one. "
        "The code repeats until it is done:\n\n"
        "```python\nfor item in [1, 2, 3]:\n    print(item)\n```",
    ),
    (
        ("function",),
        "A function is like a vending machine: you give it input, it does some "
        "work, and you get output back:\n\n"
        "```python\ndef greet(name):\n    return f\"Hello {{name}}\"\n```",
    ),
    (
        ("object oriented", "object-oriented", "oop"),
        "Object-Oriented Programming is like a blueprint for building houses. "
        "A class is the blueprint and objects are the actual houses:\n\n"
        "```python\nclass Car:\n    def __init__(self, color):\n"
        "        self.color = color\n\nmy_car = Car(\"red\")  # one actual car\n```",
    ),
    (
        ("array", "list"),
        "A list is like a row of lockers: each has a fixed position and holds one "
        "item. In Python, `my_list = [1, 2, 3]` creates a list with three numbers.",
    ),
    (
        ("recursion", "recursive"),
        "Recursion is like Russian dolls: a function that calls itself on a smaller "
        "piece of the same problem until it reaches the smallest one:\n\n"
        "```python\ndef factorial(n):\n    return n * factorial(n - 1) if n > 1 else 1\n```",
    ),
    (
        ("data structure",),
        "Data structures are different kinds of containers. A list is like a "
        "shopping cart, and a dictionary is like a phone book that maps names "
        "to numbers.",
    ),
]


def render_issues(
    issues: Sequence[CodeIssue], suggestions: Sequence[Suggestion]
) -> str | None:
    """Format analyzer output as a numbered markdown list.

    Returns None when there are no issues to report.
    """
    if not issues:
        return None

    parts = ["**Issues Detected in Your Code:**\n"]
    for idx, issue in enumerate(issues, start=1):
        label = issue.type.value.replace("_", " ").upper()
        parts.append(f"{idx}. **{label}** (Line {issue.line}):\n   {issue.message}\n")

    if suggestions:
        parts.append("**Suggestions to Fix:**\n")
        for idx, suggestion in enumerate(suggestions, start=1):
            block = f"{idx}. {suggestion.message}"
            for alt in suggestion.alternatives:
                block += f"\n   - {alt}"
            parts.append(block + "\n")

    return "\n".join(parts)


def build_fallback(
    code: str,
    error_message: str | None = None,
    upstream_errors: Sequence[ProviderError] = (),
) -> str:
    """Build templated feedback on a piece of code.

    With an error message the text follows the error type (NameError,
    TypeError, SyntaxError, or a generic paragraph). Without one, the
    analyzer's findings are rendered instead, or general tips when it
    found nothing. A corrected-code block and the fallback disclaimer are
    always included.

    Args:
        code: The learner's code.
        error_message: Console error captured by the code runner, if any.
        upstream_errors: Failures from the providers that were tried.

    Returns:
        Markdown feedback text.
    """
    sections: list[str] = []
    parsed = parse_error(error_message)

    if parsed is not None:
        sections.append(_error_narrative(parsed))
    else:
        result = analyze(code)
        rendered = render_issues(result.issues, result.suggestions)
        if rendered:
            sections.append(rendered)
            sections.append(
                "**Why This Happened:**\n"
                "- The code uses variables or expressions that are not properly defined.\n"
                "- Make sure all variables are defined before use, or use quotes for strings.\n"
            )
            sections.append(
                "**How to Fix It:**\n"
                "1. Review the suggestions above\n"
                "2. Add quotes around text that should be strings\n"
                "3. Define all variables before using them\n"
            )
        else:
            sections.append(
                "**Code Analysis:**\n"
                "No common mistakes were detected, and the code looks fine at a glance.\n"
            )
            sections.append(
                "**General Tips:**\n"
                "1. Make sure all variables are defined before use\n"
                "2. Use quotes around text to make it a string\n"
                "3. Check for syntax errors (missing colons, brackets, etc.)\n"
            )

    sections.append(_corrected_code(code, parsed))
    sections.append(fallback_disclaimer(upstream_errors))
    return "\n".join(sections)


def build_explanation_fallback(
    code: str, upstream_errors: Sequence[ProviderError] = ()
) -> str:
    """Basic explanation for code that the analyzer found no problems in."""
    return (
        "**Code Explanation:**\n\n"
        f"```python\n{code}\n```\n\n"
        "This code appears to be correct. Run it to see the output, then try "
        "changing one line at a time to see how the result changes.\n\n"
        + fallback_disclaimer(upstream_errors)
    )


def build_answer_fallback(
    question: str,
    language: str = "python",
    upstream_errors: Sequence[ProviderError] = (),
) -> str:
    """Answer common beginner questions from canned, analogy-first text."""
    lowered = question.lower()
    answer = (
        "This is a great programming question! Try breaking it into smaller "
        "parts, and ask again in a moment for a full explanation with examples."
    )
    for keywords, template in _TOPIC_ANSWERS:
        if any(keyword in lowered for keyword in keywords):
            answer = template.format(language=language)
            break

    return (
        f"I'm here to help you learn programming! Your question: \"{question}\"\n\n"
        f"{answer}\n\n"
        + fallback_disclaimer(upstream_errors)
    )


def fallback_disclaimer(upstream_errors: Sequence[ProviderError] = ()) -> str:
    """The note that marks text as templated rather than AI-generated."""
    if upstream_errors:
        failures = ", ".join(str(err) for err in upstream_errors)
        return f"*Note: {FALLBACK_NOTE} Provider errors: {failures}*"
    return f"*Note: {FALLBACK_NOTE}*"


def _error_narrative(parsed: ParsedError) -> str:
    """What Went Wrong / Why / How to Fix, templated on the error type."""
    where = f" (line {parsed.line})" if parsed.line else ""
    heading = (
        f"**Error Detected:**\n\n- **{parsed.type}**{where}: {parsed.message}\n"
        if parsed.type
        else f"**Error Detected:**\n\n- {parsed.message}\n"
    )

    if parsed.type == "NameError" and parsed.variable:
        name = parsed.variable
        body = (
            "**What Went Wrong:**\n"
            f"- NameError means Python doesn't recognise the name '{name}'.\n\n"
            "**Why This Happened:**\n"
            f"- The variable '{name}' is used but was never defined.\n"
            f"- Python treats unquoted text like {name} as a variable name, not as a string.\n\n"
            "**How to Fix It:**\n"
            f"1. **Option 1**: Use quotes to print text:\n"
            f"   ```python\n   print(\"{name}\")\n   ```\n"
            f"2. **Option 2**: Define the variable first:\n"
            f"   ```python\n   {name} = \"your value here\"\n   print({name})\n   ```\n"
        )
    elif parsed.type == "TypeError":
        body = (
            "**What Went Wrong:**\n"
            "- TypeError means an operation was given a value of the wrong type.\n\n"
            "**Why This Happened:**\n"
            "- You're combining values whose types don't work together, "
            "for example adding a number to a string.\n\n"
            "**How to Fix It:**\n"
            "1. Check the types of the values you're using (print(type(value)))\n"
            "2. Convert types where needed with str(), int() or float():\n"
            "   ```python\n   age = 30\n   print(\"Age: \" + str(age))\n   ```\n"
            "3. Make sure you're using the right operator for the data types\n"
        )
    elif parsed.type == "SyntaxError":
        body = (
            "**What Went Wrong:**\n"
            "- SyntaxError means Python couldn't read the code as written.\n\n"
            "**Why This Happened:**\n"
            "- This usually means a missing colon, bracket, parenthesis or quote, "
            "or inconsistent indentation.\n\n"
            "**How to Fix It:**\n"
            "1. Check for missing colons (:) after if/for/while/def statements\n"
            "2. Check for unmatched brackets, parentheses, or quotes\n"
            "3. Verify your indentation is consistent (spaces or tabs, not both)\n"
        )
    else:
        body = (
            "**What Went Wrong:**\n"
            "- The program stopped with the error shown above.\n\n"
            "**Why This Happened:**\n"
            "- Review the error message to identify the specific issue; the last "
            "line names the error type and the line number points to where it happened.\n\n"
            "**How to Fix It:**\n"
            "1. Read the error type and message carefully\n"
            "2. Look at the line it points to and the line just before it\n"
            "3. Change one thing at a time and run the code again\n"
        )

    return heading + "\n" + body


def _corrected_code(code: str, parsed: ParsedError | None) -> str:
    """The always-present corrected-code block."""
    if parsed is not None and parsed.type == "NameError" and parsed.variable:
        name = parsed.variable
        fixed = (
            "# Option 1: Use quotes to print text\n"
            f"print(\"{name}\")\n\n"
            "# Option 2: Define the variable first\n"
            f"{name} = \"your value here\"\n"
            f"print({name})"
        )
    elif "print(X)" in code or "print( X" in code:
        fixed = (
            "# If you want to print the letter X as text:\n"
            "print(\"X\")\n\n"
            "# Or if X should be a variable:\n"
            "X = \"some value\"\n"
            "print(X)"
        )
    elif parsed is not None:
        fixed = f"# Fix the issue based on the error message above\n{code}"
    else:
        fixed = f"# Fix the issues detected above\n{code}"

    return f"**Corrected Code:**\n```python\n{fixed}\n```\n"
