"""Static issue analyzer for learner code.

Line-based pattern matching that spots the mistakes beginners make most
often (printing an undefined name, unbalanced parentheses in a print call,
a control statement without its colon) without executing anything.

This is a heuristic, not a data-flow analysis. Names defined conditionally
or in another scope are treated as defined everywhere after their first
definition, and some unusual lines produce false positives. Results are
suggestions for the tutor prompt and the fallback text, never a verdict
on whether the program is correct.

Only Python has rules. Other languages return an empty result.
"""

from __future__ import annotations

import re

from tutorgate.schemas.analysis import AnalysisResult, CodeIssue, IssueType, Suggestion

# Builtins, common methods and keywords that are never reported.
# Compared case-insensitively.
PYTHON_BUILTINS: frozenset[str] = frozenset({
    "print", "len", "str", "int", "float", "list", "dict", "tuple", "set",
    "true", "false", "none", "range", "input", "open", "close", "read",
    "write", "append", "remove", "pop", "sort", "reverse", "split", "join",
    "upper", "lower", "strip", "replace", "find", "count", "sum", "max", "min",
    "abs", "round", "type", "isinstance", "if", "else", "elif", "for", "while",
    "def", "class", "import", "from", "return", "break", "continue", "pass",
    "try", "except", "finally", "raise", "assert", "with", "as", "in", "not",
    "and", "or", "is", "lambda", "yield", "global", "nonlocal", "del", "self",
    "enumerate", "zip", "sorted", "map", "filter", "bool", "format",
})

_PRINT_ARG_RE = re.compile(r"print\s*\(([^)]+)\)")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# All-caps or all-lowercase identifiers, not preceded by an attribute dot
_USAGE_RE = re.compile(r"(?<![\w.])([A-Z][A-Z0-9_]*|[a-z_][a-z0-9_]*)\b")
_STRING_RE = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'")
_CONTROL_RE = re.compile(r"^(if|elif|else|for|while|def|class)\b")
_ASSIGN_RE = re.compile(r"(?<![=!<>+\-*/%&|^:])=(?!=)")
_FOR_RE = re.compile(r"^for\s+(.+?)\s+in\b")
_DEF_RE = re.compile(r"^(?:async\s+)?def\s+(\w+)\s*\(([^)]*)\)?")
_CLASS_RE = re.compile(r"^class\s+(\w+)")
_IMPORT_RE = re.compile(r"^import\s+(.+)$")
_FROM_IMPORT_RE = re.compile(r"^from\s+\S+\s+import\s+(.+)$")
_AS_RE = re.compile(r"\bas\s+(\w+)")


def analyze(
    source: str,
    language: str = "python",
    *,
    uppercase_heuristic: bool = True,
) -> AnalysisResult:
    """Scan source text for common beginner mistakes.

    Args:
        source: Raw source text. Callers bound its size upstream.
        language: Language tag. Only ``"python"`` has rules.
        uppercase_heuristic: When True, the general usage scan reports any
            undefined identifier that starts with an uppercase letter. When
            False it only reports names passed straight to ``print``.

    Returns:
        AnalysisResult with issues ordered by line and at most one issue
        per (variable, line).
    """
    if not source or not isinstance(source, str):
        return AnalysisResult()
    if language.lower() != "python":
        return AnalysisResult()

    lines = [raw.strip() for raw in source.split("\n")]
    scrubbed = [_scrub(line) for line in lines]
    defined_by_line = [_defined_names(line) for line in scrubbed]

    issues: list[CodeIssue] = []
    suggestions: list[Suggestion] = []
    reported: set[tuple[str, int]] = set()

    def defined_before(name: str, number: int) -> bool:
        return any(name in names for names in defined_by_line[: number - 1])

    # Pass 1: bare names passed to print()
    for number, line in enumerate(lines, start=1):
        if "print(" not in scrubbed[number - 1]:
            continue
        match = _PRINT_ARG_RE.search(line)
        if not match:
            continue
        content = match.group(1).strip()
        if content.startswith(("\"", "'", "[", "{")) or content[:1].isdigit() or "(" in content:
            continue

        name = content.split(".")[0].split("[")[0].strip()
        if name.lower() in PYTHON_BUILTINS or not _IDENTIFIER_RE.match(name):
            continue
        if defined_before(name, number):
            continue

        issues.append(CodeIssue(
            type=IssueType.UNDEFINED_VARIABLE,
            line=number,
            variable=name,
            message=f"Variable '{name}' is used on line {number} but is never defined",
        ))
        suggestions.append(Suggestion(
            type="fix_undefined_variable",
            line=number,
            variable=name,
            message=f'If you want to print the text "{name}", use quotes: print("{name}")',
            alternatives=[
                f'Define the variable first: {name} = "your value"',
                f'Use quotes if it\'s text: print("{name}")',
            ],
        ))
        reported.add((name, number))

    # Pass 2: general usage of undefined names
    for number, line in enumerate(scrubbed, start=1):
        if not line or line.startswith(("import ", "from ")):
            continue
        for match in _USAGE_RE.finditer(line):
            name = match.group(1)
            if name.lower() in PYTHON_BUILTINS or (name, number) in reported:
                continue
            if name in defined_by_line[number - 1] or defined_before(name, number):
                continue
            # Calls and keyword arguments are not variable reads
            if re.search(rf"\b{re.escape(name)}\s*\(", line):
                continue
            if re.search(rf"\b{re.escape(name)}\s*=(?!=)", line):
                continue

            printed = f"print({name}" in line
            if (uppercase_heuristic and name[0].isupper()) or printed:
                issues.append(CodeIssue(
                    type=IssueType.UNDEFINED_VARIABLE,
                    line=number,
                    variable=name,
                    message=f"Variable '{name}' may be undefined on line {number}",
                ))
                reported.add((name, number))

    # Pass 3: syntax smells
    for number, line in enumerate(scrubbed, start=1):
        if not line:
            continue
        if "print" in line and line.count("(") != line.count(")"):
            issues.append(CodeIssue(
                type=IssueType.SYNTAX_ERROR,
                line=number,
                message=f"Possible unmatched parentheses on line {number}",
            ))
        if _CONTROL_RE.match(line) and not line.endswith(":"):
            issues.append(CodeIssue(
                type=IssueType.SYNTAX_ERROR,
                line=number,
                message=f"Missing colon (:) after control structure on line {number}",
            ))

    issues.sort(key=lambda issue: issue.line)
    return AnalysisResult(issues=issues, suggestions=suggestions)


def _scrub(line: str) -> str:
    """Blank out string literals and drop a trailing comment."""
    without_strings = _STRING_RE.sub('""', line)
    return without_strings.split("#", 1)[0].strip()


def _defined_names(line: str) -> set[str]:
    """Names a single (scrubbed) line binds."""
    names: set[str] = set()
    if not line:
        return names

    if match := _FOR_RE.match(line):
        names.update(_split_targets(match.group(1)))
    if match := _DEF_RE.match(line):
        names.add(match.group(1))
        for param in match.group(2).split(","):
            param = param.split(":")[0].split("=")[0].strip().lstrip("*")
            if _IDENTIFIER_RE.match(param):
                names.add(param)
    if match := _CLASS_RE.match(line):
        names.add(match.group(1))
    if match := _IMPORT_RE.match(line):
        for part in match.group(1).split(","):
            part = part.strip()
            alias = _AS_RE.search(part)
            names.add(alias.group(1) if alias else part.split(".")[0])
    if match := _FROM_IMPORT_RE.match(line):
        for part in match.group(1).strip("()").split(","):
            part = part.strip()
            alias = _AS_RE.search(part)
            names.add(alias.group(1) if alias else part)
    if line.startswith(("with ", "except ")):
        names.update(_AS_RE.findall(line))

    assign = _ASSIGN_RE.search(line)
    if assign and not _CONTROL_RE.match(line):
        names.update(_split_targets(line[: assign.start()]))

    return {name for name in names if _IDENTIFIER_RE.match(name)}


def _split_targets(targets: str) -> list[str]:
    """Split 'a, (b, c)' into ['a', 'b', 'c']."""
    cleaned = targets.replace("(", " ").replace(")", " ").replace("*", " ")
    return [part.strip() for part in cleaned.split(",") if part.strip()]
