"""
Defensive JSON extraction from free-text model output.

Models often wrap the requested JSON in prose or markdown fences. We scan for
the first balanced top-level `{...}` region instead of trusting the format.
"""
from typing import Optional


def extract_first_json_object(text: Optional[str]) -> Optional[str]:
    """
    Return the first balanced `{...}` substring of `text`, or None.

    Braces inside JSON string literals (including escaped quotes) do not
    count toward the balance. An unterminated object yields None.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None
