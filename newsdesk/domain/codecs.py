"""
Explicit string mappings for domain enums.

Each codec is a bijection between enum members and their wire strings
(snake_case, as stored and sent over the API) and display labels
(PascalCase). Codecs are built once at import time from a literal table.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Generic, TypeVar

from newsdesk.domain.entities import ArticleStatus, CategoryType, LogLevel

E = TypeVar("E", bound=Enum)


class EnumCodec(Generic[E]):
    def __init__(self, table: Mapping[E, tuple[str, str]]) -> None:
        """
        Args:
            table: member -> (wire string, label)

        Raises:
            ValueError: If wire strings or labels are not unique.
        """
        self._to_wire: dict[E, str] = {m: wire for m, (wire, _) in table.items()}
        self._to_label: dict[E, str] = {m: label for m, (_, label) in table.items()}
        self._from_wire: dict[str, E] = {wire: m for m, wire in self._to_wire.items()}
        self._from_label: dict[str, E] = {label: m for m, label in self._to_label.items()}

        if len(self._from_wire) != len(table) or len(self._from_label) != len(table):
            raise ValueError("Enum codec table must be a bijection")

    def encode(self, member: E) -> str:
        return self._to_wire[member]

    def decode(self, value: str) -> E:
        """Decode a wire string or a label into a member."""
        if value in self._from_wire:
            return self._from_wire[value]
        if value in self._from_label:
            return self._from_label[value]
        raise ValueError(f"Unknown value: {value!r}")

    def label(self, member: E) -> str:
        return self._to_label[member]

    def wire_values(self) -> list[str]:
        return list(self._to_wire.values())


ARTICLE_STATUS = EnumCodec(
    {
        ArticleStatus.DRAFT: ("draft", "Draft"),
        ArticleStatus.SUBMITTED: ("submitted", "Submitted"),
        ArticleStatus.UNDER_REVIEW: ("under_review", "UnderReview"),
        ArticleStatus.APPROVED: ("approved", "Approved"),
        ArticleStatus.REJECTED: ("rejected", "Rejected"),
        ArticleStatus.PUBLISHED: ("published", "Published"),
    }
)

CATEGORY_TYPE = EnumCodec(
    {
        CategoryType.EVENT: ("event", "Event"),
        CategoryType.NEWS_TYPE: ("news_type", "NewsType"),
        CategoryType.OTHER: ("other", "Other"),
    }
)

LOG_LEVEL = EnumCodec(
    {
        LogLevel.INFO: ("info", "Info"),
        LogLevel.WARN: ("warn", "Warn"),
        LogLevel.ERROR: ("error", "Error"),
    }
)
