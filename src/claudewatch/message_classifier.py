"""
Heuristic classification of a session message's content.

Claude Code records assistant tool calls as content blocks of type
"tool_use" and their results as user-role blocks of type "tool_result".
The status engine only asks "is this a pending tool call?", but the
classification is kept separate so the heuristic can be changed and
tested without touching the state machine.

The matching is deliberately the same loose substring search over the
serialized content the status badges have always used; HEURISTIC_VERSION
changes whenever the rules do.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

HEURISTIC_VERSION = 1

TOOL_USE_MARKER = "tool_use"
TOOL_RESULT_MARKER = "tool_result"

# A question directed at the user near the end of plain text
_QUESTION_RE = re.compile(r"\?\s*[\"'`)\]]*\s*$")


@dataclass(frozen=True)
class MessageClassification:
    """What a message's content looks like."""

    is_tool_use: bool = False
    is_tool_result: bool = False
    is_question: bool = False
    heuristic_version: int = HEURISTIC_VERSION


MessageClassifier = Callable[[Any], MessageClassification]


def serialize_content(content: Any) -> str:
    """Lower-cased JSON rendering of message content, for substring checks."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content.lower()
    try:
        return json.dumps(content, ensure_ascii=False).lower()
    except (TypeError, ValueError):
        return str(content).lower()


def _extract_text(content: Any) -> str:
    """Concatenate the plain-text parts of message content."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    parts.append(text)
            elif isinstance(block, str):
                parts.append(block)
        return "\n".join(parts)
    return ""


def classify_message(content: Any) -> MessageClassification:
    """Classify serialized message content.

    is_tool_use is a plain substring match on "tool_use", so it also fires
    for text that merely mentions the word; that looseness is accepted.
    """
    serialized = serialize_content(content)
    text = _extract_text(content).strip()
    return MessageClassification(
        is_tool_use=TOOL_USE_MARKER in serialized,
        is_tool_result=TOOL_RESULT_MARKER in serialized,
        is_question=bool(text) and bool(_QUESTION_RE.search(text)),
    )
