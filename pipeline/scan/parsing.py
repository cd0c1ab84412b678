"""Coerce free-form model replies into JSON values."""

import json
import re
from typing import Any, Optional

_FENCE_RE = re.compile(r'```(?:json|JSON)?[ \t]*\n?')

_CLOSERS = {'[': ']', '{': '}'}


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers and surrounding whitespace."""
    return _FENCE_RE.sub('', text or '').strip()


def extract_balanced(text: str, opener: str = '[') -> Optional[str]:
    """
    Return the first balanced opener...closer substring, or None.

    Brackets inside JSON string literals are ignored.
    """
    closer = _CLOSERS[opener]
    start = text.find(opener)

    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for i in range(start, len(text)):
            ch = text[i]

            if in_string:
                if escaped:
                    escaped = False
                elif ch == '\\':
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if ch == '"':
                in_string = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]

        # Unbalanced from this opener; try the next one
        start = text.find(opener, start + 1)

    return None


def load_json_reply(text: str, opener: str = '[') -> Any:
    """
    Decode a model reply that should contain JSON.

    Fences are stripped; if what remains does not start with [ or {, the
    first balanced `opener` block is extracted. Raises ValueError when no
    JSON can be found or decoded.
    """
    content = strip_code_fences(text)

    if not content.startswith(('[', '{')):
        extracted = extract_balanced(content, opener)
        if extracted is None:
            raise ValueError(f"No JSON {opener}...{_CLOSERS[opener]} found in reply")
        content = extracted

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Reply is not valid JSON: {e}") from e
