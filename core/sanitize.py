"""Repair text whose newlines were flattened to a bare ``n`` upstream.

Best-effort: a fixed, ordered list of substitutions applied once each. It can
miss genuine corruption and it can touch legitimate text that happens to match.
"""

import re
from typing import Any, List, Pattern, Tuple

_RULES: List[Tuple[Pattern[str], str]] = [
    # "instructions.mdnnFiles" -> "instructions.md\n\nFiles"
    (re.compile(r"\.md(nn)(?=[A-Z])"), ".md\n\n"),
    # "analyze:n-" -> "analyze:\n-"
    (re.compile(r":n(-)"), ":\n\\1"),
    # "XnnY" -> "X\n\nY" when Y is capitalized
    (re.compile(r"(\w)(nn)(?=[A-Z])"), "\\1\n\n"),
    # ":n-" or " n-" -> "\n-"
    (re.compile(r"(:|\s)(n)(-)"), "\\1\n\\3"),
    # ":n*" / ":n•" list markers
    (re.compile(r"(:)(n)(?=[-*•])"), "\\1\n"),
    # literal backslash-n
    (re.compile(r"\\n"), "\n"),
]


def sanitize_string(value: Any) -> str:
    if not isinstance(value, str):
        return str(value)
    out = value
    for pattern, replacement in _RULES:
        out = pattern.sub(replacement, out)
    return out


__all__ = ["sanitize_string"]
