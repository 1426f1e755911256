"""Schemas produced by the static issue analyzer and the error parser.

These are transient values: built per analysis call and returned to the
caller, never stored.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class IssueType(StrEnum):
    """Categories of problems the analyzer can detect."""

    UNDEFINED_VARIABLE = "undefined_variable"
    SYNTAX_ERROR = "syntax_error"


class CodeIssue(BaseModel):
    """A single problem detected in source text."""

    type: IssueType = Field(description="Category of the detected problem")
    line: int = Field(ge=1, description="1-based line number where it was detected")
    variable: str | None = Field(
        default=None, description="Offending identifier, for undefined-variable issues"
    )
    message: str = Field(description="Human-readable description of the issue")


class Suggestion(BaseModel):
    """A human suggestion attached to a detected issue."""

    type: str = Field(description="Suggestion kind (e.g. 'fix_undefined_variable')")
    line: int = Field(ge=1, description="Line the suggestion applies to")
    variable: str | None = Field(default=None, description="Identifier the fix concerns")
    message: str = Field(description="Primary suggestion text")
    alternatives: list[str] = Field(
        default_factory=list, description="Other ways to resolve the issue"
    )


class AnalysisResult(BaseModel):
    """Output of a static analysis pass."""

    issues: list[CodeIssue] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)


class ParsedError(BaseModel):
    """Best-effort breakdown of an interpreter error message."""

    type: str | None = Field(default=None, description="Error class, e.g. 'NameError'")
    message: str = Field(description="The full, trimmed error text")
    variable: str | None = Field(
        default=None, description="Unbound name extracted from a NameError"
    )
    line: int | None = Field(default=None, description="Line number mentioned in the text")
