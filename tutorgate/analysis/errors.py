"""Best-effort parsing of interpreter error messages.

Pulls the error class, the unbound name of a NameError, and a line number
out of whatever text the code runner captured. The extraction is
regex-based and approximate: the error class is taken from the last
``XxxError:`` line, so chained tracebacks report the exception that was
finally raised, while the line number is the first ``line N`` found.
Unusual formats simply leave fields empty.
"""

from __future__ import annotations

import re

from tutorgate.schemas.analysis import ParsedError

_ERROR_TYPE_RE = re.compile(r"^(\w+Error):", re.MULTILINE)
_NAME_ERROR_RE = re.compile(r"name '(\w+)' is not defined")
_LINE_RE = re.compile(r"line (\d+)")


def parse_error(message: str | None) -> ParsedError | None:
    """Split an error message into type, variable, and line.

    Args:
        message: Raw error text, e.g. ``"NameError: name 'x' is not defined"``.

    Returns:
        ParsedError, or None when the message is empty.
    """
    if not message or not isinstance(message, str) or not message.strip():
        return None

    info = ParsedError(message=message.strip())

    type_matches = _ERROR_TYPE_RE.findall(message.strip())
    if type_matches:
        info.type = type_matches[-1]

    if info.type == "NameError":
        var_match = _NAME_ERROR_RE.search(message)
        if var_match:
            info.variable = var_match.group(1)

    line_match = _LINE_RE.search(message)
    if line_match:
        info.line = int(line_match.group(1))

    return info
