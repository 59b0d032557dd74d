"""Deterministic repair of the JSON defects seen in model output.

Only three defects are handled: trailing commas before a closing bracket,
``\\'`` escapes (invalid in JSON) and a payload cut off before its closing
brackets. Anything else is left for a fresh generation.
"""

import re

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_CLOSERS = {"{": "}", "[": "]"}


def close_open_brackets(text: str) -> str:
    """Append the closers for any ``{``/``[`` left open outside strings.

    Text that ends inside a string literal is returned unchanged.
    """
    stack: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
    if in_string:
        return text
    return text + "".join(reversed(stack))


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def repair_json(text: str) -> str:
    repaired = text.strip().replace("\\'", "'")
    repaired = close_open_brackets(repaired)
    return strip_trailing_commas(repaired)
