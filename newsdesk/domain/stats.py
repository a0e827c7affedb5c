import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypedDict

DEFAULT_WORDS_PER_MINUTE = 200


class DocNode(TypedDict, total=False):
    """A node of the structured document produced by the article editor."""

    type: str
    text: str
    content: list["DocNode"]


@dataclass(frozen=True)
class ContentStats:
    word_count: int = 0
    character_count: int = 0
    reading_time: int = 0


ZERO_STATS = ContentStats()


def _parse(document: Any) -> Mapping[str, Any] | None:
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except (ValueError, TypeError):
            return None
    if isinstance(document, Mapping):
        return document
    return None


def extract_text(document: Any) -> str:
    """
    Concatenate the text of every text node, each followed by one space.

    Traversal is depth-first over the root's ``content`` list.
    """
    root = _parse(document)
    if root is None:
        return ""

    parts: list[str] = []

    def visit(node: Any) -> None:
        if not isinstance(node, Mapping):
            return
        text = node.get("text")
        if node.get("type") == "text" and isinstance(text, str) and text:
            parts.append(text + " ")
        children = node.get("content")
        if isinstance(children, list):
            for child in children:
                visit(child)

    children = root.get("content")
    if isinstance(children, list):
        for child in children:
            visit(child)

    return "".join(parts)


def calculate_stats(
    document: Any,
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
) -> ContentStats:
    """
    Compute word count, character count and reading time (minutes).

    Never raises: unparseable input yields zero stats.
    """
    try:
        text = extract_text(document)
    except RecursionError:
        return ZERO_STATS

    word_count = len(text.split())
    wpm = words_per_minute if words_per_minute > 0 else DEFAULT_WORDS_PER_MINUTE
    return ContentStats(
        word_count=word_count,
        character_count=len(text),
        reading_time=math.ceil(word_count / wpm),
    )
