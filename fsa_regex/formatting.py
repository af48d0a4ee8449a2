from __future__ import annotations

import re
from typing import Optional, Pattern, Sequence

from .config import SynthesisConfig

OPERATORS = "()|*"


def format_repeat(body: str) -> str:
    """``body`` zero or more times; an empty body repeats to nothing."""
    if body == "":
        return body
    if len(body) == 1:
        return f"{body}*"
    return f"({body})*"


def format_alternate(branches: Sequence[str], optional: bool = False) -> str:
    """Join ``branches`` with ``|``.

    ``optional`` uses bracket notation, ``[a|b]`` meaning "a, b, or nothing".
    A single branch stays bare.
    """
    joined = "|".join(branches)
    if optional:
        return f"[{joined}]"
    if len(branches) <= 1:
        return joined
    return f"({joined})"


def to_pattern(regex: str, config: Optional[SynthesisConfig] = None) -> str:
    """Translate synthesized text into Python ``re`` syntax.

    Labels are escaped, epsilon becomes an empty group and the empty-language
    symbol becomes a pattern that matches nothing.
    """
    config = config or SynthesisConfig()
    if regex == config.empty_symbol:
        return "(?!)"
    epsilon = config.epsilon_symbol
    parts = []
    idx = 0
    while idx < len(regex):
        if regex.startswith(epsilon, idx):
            parts.append("(?:)")
            idx += len(epsilon)
            # ε* is just ε
            if regex.startswith("*", idx):
                idx += 1
            continue
        char = regex[idx]
        if char == "(":
            parts.append("(?:")
        elif char in OPERATORS:
            parts.append(char)
        elif config.brackets and char == "[":
            parts.append("(?:")
        elif config.brackets and char == "]":
            parts.append(")?")
        else:
            parts.append(re.escape(char))
        idx += 1
    return "".join(parts)


def compile_regex(regex: str, config: Optional[SynthesisConfig] = None) -> Pattern[str]:
    return re.compile(to_pattern(regex, config))


def regex_matches(regex: str, text: str, config: Optional[SynthesisConfig] = None) -> bool:
    return compile_regex(regex, config).fullmatch(text) is not None
