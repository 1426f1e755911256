"""Tell a learner's question apart from pasted code.

Used when a request carries both a code snippet and free text: real
questions get answered, anything that reads like code gets the code
explained instead.
"""

from __future__ import annotations

import re

# Anything this short without statement separators is taken as a question
_SHORT_QUESTION_LENGTH = 50
# Longer text without code structure still counts as a question below this
_MAX_QUESTION_LENGTH = 200

_QUESTION_PATTERNS = [
    re.compile(r"^what\s+(is|are|does|do|can|could|should|would)", re.IGNORECASE),
    re.compile(r"^how\s+(do|does|can|could|should|would|to)", re.IGNORECASE),
    re.compile(r"^why\s+(do|does|is|are|can|could|should)", re.IGNORECASE),
    re.compile(r"^when\s+(do|does|is|are|can|could|should)", re.IGNORECASE),
    re.compile(r"^where\s+(do|does|is|are|can|could|should)", re.IGNORECASE),
    re.compile(r"^explain\s+", re.IGNORECASE),
    re.compile(r"^tell\s+me\s+", re.IGNORECASE),
    re.compile(r"^can\s+you\s+explain", re.IGNORECASE),
    re.compile(r"^could\s+you\s+explain", re.IGNORECASE),
    re.compile(r"\?$"),
]

_CODE_PATTERNS = [
    re.compile(
        r"^\s*(def|function|class|import|const|let|var|public|private|static)",
        re.IGNORECASE,
    ),
    re.compile(r"[{}();=]"),
]


def is_question(text: str | None) -> bool:
    """Whether ``text`` reads as a natural-language question rather than code.

    Checked in order: short single-line text without ``;`` or ``{`` is a
    question; question openers ("what is", "how do", "explain", ...) or a
    trailing ``?`` make it a question; code keywords or punctuation make it
    code; anything else is a question only when under 200 characters.
    """
    if not text or not isinstance(text, str):
        return False

    trimmed = text.strip()

    if (
        len(trimmed) < _SHORT_QUESTION_LENGTH
        and "\n" not in trimmed
        and ";" not in trimmed
        and "{" not in trimmed
    ):
        return True

    if any(pattern.search(trimmed) for pattern in _QUESTION_PATTERNS):
        return True

    if any(pattern.search(trimmed) for pattern in _CODE_PATTERNS):
        return False

    return len(trimmed) < _MAX_QUESTION_LENGTH
