#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
"""Cursor bookkeeping and request descriptors for the paginated axes."""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from bridge.github.models import PageInfo
from bridge.github.query import GithubQuery


class Direction(Enum):
    """Which way an axis paginates.

    Issues and timeline items are read forward (`first`/`after`); user content
    edits are read backward (`last`/`before`) because GitHub serves them
    newest first.
    """

    FORWARD = "forward"
    BACKWARD = "backward"

    def continuation(self, page_info: PageInfo) -> Optional[str]:
        if self is Direction.FORWARD:
            return page_info.end_cursor
        return page_info.start_cursor


@dataclass(frozen=True)
class CursorState:
    page_size: int
    direction: Direction
    cursor: Optional[str] = None
    has_next_page: bool = False
    has_previous_page: bool = False

    @property
    def has_more(self) -> bool:
        if self.direction is Direction.FORWARD:
            return self.has_next_page
        return self.has_previous_page

    def advanced(self, page_info: PageInfo) -> "CursorState":
        """State after a page carrying `page_info` was fully received."""
        return replace(
            self,
            cursor=self.direction.continuation(page_info),
            has_next_page=page_info.has_next_page,
            has_previous_page=page_info.has_previous_page,
        )


@dataclass(frozen=True)
class QueryRequest:
    """Immutable description of one GraphQL call."""

    query: GithubQuery
    variables: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @classmethod
    def build(cls, query, **variables):
        return cls(query=query, variables=variables)

    @property
    def name(self) -> str:
        return self.query.name

    def to_dict(self) -> dict:
        return {"query": self.query.value, "variables": dict(self.variables)}
