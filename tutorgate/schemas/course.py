"""Course outline schemas.

A provider asked for a course answers with JSON; CourseOutline is the
shape that JSON must validate against before it is returned to a caller.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Difficulty(StrEnum):
    """Target level of a generated course."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CourseLesson(BaseModel):
    """One lesson in a generated course."""

    title: str = Field(min_length=1)
    description: str = ""
    order: int = Field(default=1, ge=1, description="1-based position in the course")
    concepts: list[str] = Field(default_factory=list)


class CourseOutline(BaseModel):
    """A generated course: title, objectives, and ordered lessons."""

    title: str = Field(min_length=1)
    description: str = ""
    objectives: list[str] = Field(default_factory=list)
    lessons: list[CourseLesson] = Field(min_length=1)
    provider: str | None = Field(
        default=None, description="Provider that generated the outline"
    )
