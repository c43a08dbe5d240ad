#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
"""Pydantic models for GitHub GraphQL API responses."""

from typing import Annotated, Any, Generic, Literal, TypeVar, Union, get_args

from pydantic import BaseModel, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from bridge.github.utils import ISSUE_COMMENT


class PageInfo(BaseModel):
    """GraphQL pagination info."""

    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


T = TypeVar("T")


def _default_page_info() -> PageInfo:
    return PageInfo.model_construct(
        has_next_page=False,
        has_previous_page=False,
        start_cursor=None,
        end_cursor=None,
    )


class Connection(BaseModel, Generic[T]):
    """Generic paginated list with nodes and pageInfo."""

    nodes: list[T] = []
    page_info: PageInfo = Field(default_factory=_default_page_info)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Actor(BaseModel):
    login: str


class UserContentEdit(BaseModel):
    """One revision of an issue or comment body."""

    id: str
    created_at: str | None = None
    edited_at: str | None = None
    deleted_at: str | None = None
    # None for edits older than GitHub's edit tracking
    diff: str | None = None
    editor: Actor | None = None
    deleted_by: Actor | None = None

    @property
    def has_diff(self) -> bool:
        return bool(self.diff)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


EditConnection = Connection[UserContentEdit]


def _empty_edits() -> EditConnection:
    return EditConnection(nodes=[])


class Label(BaseModel):
    name: str
    color: str | None = None


class IssueComment(BaseModel):
    type_name: Literal["IssueComment"] = Field(alias="__typename")
    id: str
    url: str | None = None
    body: str | None = None
    created_at: str | None = None
    author: Actor | None = None
    user_content_edits: EditConnection = Field(default_factory=_empty_edits)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LabeledEvent(BaseModel):
    type_name: Literal["LabeledEvent"] = Field(alias="__typename")
    id: str
    created_at: str | None = None
    actor: Actor | None = None
    label: Label | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UnlabeledEvent(BaseModel):
    type_name: Literal["UnlabeledEvent"] = Field(alias="__typename")
    id: str
    created_at: str | None = None
    actor: Actor | None = None
    label: Label | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClosedEvent(BaseModel):
    type_name: Literal["ClosedEvent"] = Field(alias="__typename")
    id: str
    created_at: str | None = None
    actor: Actor | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReopenedEvent(BaseModel):
    type_name: Literal["ReopenedEvent"] = Field(alias="__typename")
    id: str
    created_at: str | None = None
    actor: Actor | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RenamedTitleEvent(BaseModel):
    type_name: Literal["RenamedTitleEvent"] = Field(alias="__typename")
    id: str
    created_at: str | None = None
    current_title: str | None = None
    previous_title: str | None = None
    actor: Actor | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UnknownTimelineItem(BaseModel):
    """Fallback for timeline item types not modeled above."""

    type_name: str = Field(alias="__typename")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


_TIMELINE_MODELS = (
    IssueComment,
    LabeledEvent,
    UnlabeledEvent,
    ClosedEvent,
    ReopenedEvent,
    RenamedTitleEvent,
)

# Tags come from the Literal annotations so they stay in sync with the models
_KNOWN_TIMELINE_TAGS = {
    get_args(model.model_fields["type_name"].annotation)[0]
    for model in _TIMELINE_MODELS
}


def timeline_discriminator(v: Any) -> str:
    if isinstance(v, BaseModel):
        typename = getattr(v, "type_name", "")
    else:
        typename = v.get("__typename", v.get("type_name", ""))
    return typename if typename in _KNOWN_TIMELINE_TAGS else "unknown"


TimelineItem = Annotated[
    Union[
        Annotated[IssueComment, Tag("IssueComment")],
        Annotated[LabeledEvent, Tag("LabeledEvent")],
        Annotated[UnlabeledEvent, Tag("UnlabeledEvent")],
        Annotated[ClosedEvent, Tag("ClosedEvent")],
        Annotated[ReopenedEvent, Tag("ReopenedEvent")],
        Annotated[RenamedTitleEvent, Tag("RenamedTitleEvent")],
        Annotated[UnknownTimelineItem, Tag("unknown")],
    ],
    Discriminator(timeline_discriminator),
]


def is_comment(item) -> bool:
    return getattr(item, "type_name", None) == ISSUE_COMMENT


class TimelineEdge(BaseModel):
    cursor: str | None = None
    node: TimelineItem


class TimelineConnection(BaseModel):
    edges: list[TimelineEdge] = []
    page_info: PageInfo = Field(default_factory=_default_page_info)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RemoteIssue(BaseModel):
    """An issue as returned by the timeline query, with its embedded prefixes."""

    id: str
    number: int | None = None
    url: str | None = None
    title: str | None = None
    body: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    author: Actor | None = None
    user_content_edits: EditConnection = Field(default_factory=_empty_edits)
    timeline_items: TimelineConnection = Field(default_factory=TimelineConnection)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Shapes of the two fallback queries


class IssueEdits(BaseModel):
    id: str
    user_content_edits: EditConnection = Field(default_factory=_empty_edits)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommentEdits(BaseModel):
    type_name: str = Field(alias="__typename")
    id: str | None = None
    user_content_edits: EditConnection = Field(default_factory=_empty_edits)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IssueCommentEdits(BaseModel):
    id: str
    timeline_items: Connection[CommentEdits] = Field(
        default_factory=lambda: Connection[CommentEdits](nodes=[])
    )

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Issues(BaseModel, Generic[T]):
    issues: Connection[T]


class RepositoryResponse(BaseModel, Generic[T]):
    """`data` object of every query: repository -> issues connection."""

    repository: _Issues[T]

    @property
    def issues(self) -> Connection[T]:
        return self.repository.issues


IssueTimelineResponse = RepositoryResponse[RemoteIssue]
IssueEditResponse = RepositoryResponse[IssueEdits]
CommentEditResponse = RepositoryResponse[IssueCommentEdits]
