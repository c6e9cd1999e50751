"""Helpers for note content, which is either plain text or a serialized
rich-text document (a JSON list of element nodes with `children`, whose
leaves carry `text`)."""
import json
from typing import Any, List


def _load(text: str) -> Any:
    """Parsed JSON, or raises ValueError. Nesting too deep to parse counts as not JSON."""
    try:
        return json.loads(text)
    except (TypeError, RecursionError) as e:
        raise ValueError(str(e))


def is_json_data(text: str) -> bool:
    try:
        _load(text)
    except ValueError:
        return False
    return True


def _node_text(node: Any) -> str:
    # Walk with an explicit stack; documents may nest arbitrarily deep
    parts: List[str] = []
    stack: List[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            parts.append(current)
        elif isinstance(current, dict):
            if "text" in current and "children" not in current:
                parts.append(str(current.get("text") or ""))
            else:
                stack.extend(reversed(current.get("children") or []))
        elif isinstance(current, list):
            stack.extend(reversed(current))
    return "".join(parts)


def to_plain_text(content: str) -> str:
    """Plain text of a note's content; one line per top-level block."""
    if not content:
        return ""
    try:
        document = _load(content)
    except ValueError:
        return content
    if not isinstance(document, list):
        # a bare JSON scalar (e.g. "42") is just text
        return content
    return "\n".join(_node_text(block) for block in document)
