#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
"""Incremental walk over the issues of a GitHub project.

`IssueIterator` drives four independently paginated axes:

- issues of the project, one per query, updated since the watermark;
- timeline items of the current issue;
- user content edits of the current issue;
- user content edits of the current timeline item, when it is a comment.

Each axis is exposed as an `advance_*()` coroutine returning whether a new
value is available, and a `current_*()` accessor. Any failing query is kept as
a sticky error: from then on every advance returns False and the error stays
available through `error`.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from bridge.config import DEFAULT_CAPACITY
from bridge.exceptions import TransportError
from bridge.github.cursor import CursorState, Direction, QueryRequest
from bridge.github.models import (
    CommentEditResponse,
    IssueEditResponse,
    IssueTimelineResponse,
    RemoteIssue,
    TimelineEdge,
    UserContentEdit,
    is_comment,
)
from bridge.github.query import GithubQuery
from bridge.github.sequence import Page, PagedSequence
from bridge.logger import logger, timed_execution
from bridge.utils import CancellableContext, iso_utc, with_utc_tz


class QueryExecutor(Protocol):
    async def execute(self, request: QueryRequest) -> dict:
        """Run the query and return the GraphQL `data` object."""
        ...


@dataclass(frozen=True)
class IssueEvent:
    issue: RemoteIssue


@dataclass(frozen=True)
class IssueEditEvent:
    issue: RemoteIssue
    edit: UserContentEdit


@dataclass(frozen=True)
class TimelineItemEvent:
    issue: RemoteIssue
    item: Any


@dataclass(frozen=True)
class CommentEditEvent:
    issue: RemoteIssue
    comment: Any
    edit: UserContentEdit


def _reverse_comment_edits(edges):
    for edge in edges:
        if is_comment(edge.node):
            edge.node.user_content_edits.nodes.reverse()


class IssueIterator:
    def __init__(
        self,
        executor: QueryExecutor,
        owner: str,
        project: str,
        since: Optional[datetime] = None,
        capacity: int = DEFAULT_CAPACITY,
        context: Optional[CancellableContext] = None,
    ) -> None:
        """Setup the traversal of one project.

        Args:
            executor: runs the GraphQL queries.
            owner (str): owner of the repository.
            project (str): name of the repository.
            since (datetime): only issues updated at or after this date are visited.
            capacity (int): number of timeline items and edits queried at a time,
                more capacity = more used memory = less queries to make.
            context (CancellableContext): cancellation signal and timeout shared by
                every query of this iterator.
        """
        self._executor = executor
        self._logger = logger
        self.owner = owner
        self.project = project
        self.since = with_utc_tz(since) if since is not None else None
        self.capacity = capacity
        self.context = context or CancellableContext()
        self._err: Optional[TransportError] = None

        self._issues: PagedSequence[RemoteIssue] = PagedSequence(
            "issues",
            fetch=self._fetch_issues,
            direction=Direction.FORWARD,
            page_size=1,
            active=self._active,
        )
        # cursor preceding the current issue, scopes every per-issue query
        self._issue_anchor: Optional[str] = None
        self._timeline: Optional[PagedSequence[TimelineEdge]] = None
        # end cursor of the timeline page before the loaded one
        self._timeline_page_anchor: Optional[str] = None
        self._issue_edits: Optional[PagedSequence[UserContentEdit]] = None
        self._comment_edits: Optional[PagedSequence[UserContentEdit]] = None

        self.last_updated_at: Optional[str] = None

    def set_logger(self, logger_):
        self._logger = logger_

    @property
    def error(self) -> Optional[TransportError]:
        """First error encountered, if any."""
        return self._err

    def _active(self) -> bool:
        return self._err is None and not self.context.cancelled

    # Issues

    async def advance_issue(self) -> bool:
        """Move to the next issue. Only one issue is queried at each call."""
        if not self._active():
            return False

        anchor = self._issues.cursor.cursor
        if not await self._issues.advance():
            return False

        issue = self._issues.current
        self._issue_anchor = anchor
        self._start_issue(issue)
        return True

    def current_issue(self) -> RemoteIssue:
        return self._issues.current

    def _start_issue(self, issue: RemoteIssue) -> None:
        self._logger.debug(f"Walking issue #{issue.number} ({issue.id})")
        if issue.updated_at and (
            self.last_updated_at is None or issue.updated_at > self.last_updated_at
        ):
            self.last_updated_at = issue.updated_at

        self._timeline_page_anchor = None
        self._timeline = PagedSequence(
            "timeline",
            fetch=self._fetch_timeline,
            direction=Direction.FORWARD,
            page_size=self.capacity,
            embedded=Page(
                items=issue.timeline_items.edges,
                page_info=issue.timeline_items.page_info,
            ),
            active=self._active,
        )
        self._issue_edits = PagedSequence(
            "issue edits",
            fetch=self._fetch_issue_edits,
            direction=Direction.BACKWARD,
            page_size=self.capacity,
            embedded=Page(
                items=issue.user_content_edits.nodes,
                page_info=issue.user_content_edits.page_info,
            ),
            reverse=True,
            skip=lambda edit: not edit.has_diff,
            active=self._active,
        )
        self._comment_edits = None

    # Timeline

    async def advance_timeline_item(self) -> bool:
        if not self._active() or self._timeline is None:
            return False

        self._comment_edits = None
        if not await self._timeline.advance():
            return False

        item = self._timeline.current.node
        if is_comment(item):
            self._comment_edits = PagedSequence(
                "comment edits",
                fetch=self._fetch_comment_edits,
                direction=Direction.BACKWARD,
                page_size=self.capacity,
                embedded=Page(
                    items=item.user_content_edits.nodes,
                    page_info=item.user_content_edits.page_info,
                ),
                reverse=True,
                skip=lambda edit: not edit.has_diff,
                active=self._active,
            )
        return True

    def current_timeline_item(self):
        return self._timeline.current.node  # pyright: ignore

    def _comment_anchor(self) -> Optional[str]:
        """Cursor of the timeline item just before the current comment."""
        previous = self._timeline.previous()  # pyright: ignore
        if previous is None:
            return self._timeline_page_anchor
        return previous.cursor

    # Edits

    async def advance_issue_edit(self) -> bool:
        if not self._active() or self._issue_edits is None:
            return False
        return await self._issue_edits.advance()

    def current_issue_edit(self) -> UserContentEdit:
        return self._issue_edits.current  # pyright: ignore

    async def advance_comment_edit(self) -> bool:
        if not self._active() or self._comment_edits is None:
            return False
        return await self._comment_edits.advance()

    def current_comment_edit(self) -> UserContentEdit:
        return self._comment_edits.current  # pyright: ignore

    async def events(self):
        """Single ordered stream of everything the iterator walks.

        Yields an `IssueEvent` per issue, followed by its `IssueEditEvent`s
        oldest first, then a `TimelineItemEvent` per timeline item, each
        comment being followed by its `CommentEditEvent`s oldest first.
        Stops on exhaustion, error or cancellation.
        """
        while await self.advance_issue():
            issue = self.current_issue()
            yield IssueEvent(issue=issue)

            while await self.advance_issue_edit():
                yield IssueEditEvent(issue=issue, edit=self.current_issue_edit())

            while await self.advance_timeline_item():
                item = self.current_timeline_item()
                yield TimelineItemEvent(issue=issue, item=item)

                while await self.advance_comment_edit():
                    yield CommentEditEvent(
                        issue=issue, comment=item, edit=self.current_comment_edit()
                    )

    # Queries

    def _issue_variables(self, first, after):
        return {
            "owner": self.owner,
            "name": self.project,
            "issueFirst": first,
            "issueAfter": after,
            "issueSince": iso_utc(self.since) if self.since is not None else None,
        }

    async def _fetch_issues(self, cursor: CursorState) -> Optional[Page]:
        request = QueryRequest.build(
            GithubQuery.ISSUE_TIMELINE_QUERY,
            **self._issue_variables(first=cursor.page_size, after=cursor.cursor),
            timelineFirst=self.capacity,
            timelineAfter=None,
            issueEditLast=self.capacity,
            issueEditBefore=None,
            commentEditLast=self.capacity,
            commentEditBefore=None,
        )
        response = await self._query(request, IssueTimelineResponse)
        if response is None:
            return None

        issues = response.issues
        # GitHub provides the edits in reverse chronological order
        for issue in issues.nodes:
            issue.user_content_edits.nodes.reverse()
            _reverse_comment_edits(issue.timeline_items.edges)
        return Page(items=issues.nodes, page_info=issues.page_info)

    async def _fetch_timeline(self, cursor: CursorState) -> Optional[Page]:
        request = QueryRequest.build(
            GithubQuery.ISSUE_TIMELINE_QUERY,
            **self._issue_variables(first=1, after=self._issue_anchor),
            timelineFirst=cursor.page_size,
            timelineAfter=cursor.cursor,
            issueEditLast=self.capacity,
            issueEditBefore=None,
            commentEditLast=self.capacity,
            commentEditBefore=None,
        )
        response = await self._query(request, IssueTimelineResponse)
        if response is None:
            return None

        self._timeline_page_anchor = cursor.cursor
        if not response.issues.nodes:
            return Page(items=[], page_info=response.issues.page_info)

        timeline = response.issues.nodes[0].timeline_items
        _reverse_comment_edits(timeline.edges)
        return Page(items=timeline.edges, page_info=timeline.page_info)

    async def _fetch_issue_edits(self, cursor: CursorState) -> Optional[Page]:
        request = QueryRequest.build(
            GithubQuery.ISSUE_EDIT_QUERY,
            **self._issue_variables(first=1, after=self._issue_anchor),
            issueEditLast=cursor.page_size,
            issueEditBefore=cursor.cursor,
        )
        response = await self._query(request, IssueEditResponse)
        if response is None:
            return None

        if not response.issues.nodes:
            return Page(items=[], page_info=response.issues.page_info)

        edits = response.issues.nodes[0].user_content_edits
        return Page(items=edits.nodes, page_info=edits.page_info)

    async def _fetch_comment_edits(self, cursor: CursorState) -> Optional[Page]:
        # re-anchor the timeline on the comment itself, so that the query is
        # scoped to this issue/comment pair only
        request = QueryRequest.build(
            GithubQuery.COMMENT_EDIT_QUERY,
            **self._issue_variables(first=1, after=self._issue_anchor),
            timelineFirst=1,
            timelineAfter=self._comment_anchor(),
            commentEditLast=cursor.page_size,
            commentEditBefore=cursor.cursor,
        )
        response = await self._query(request, CommentEditResponse)
        if response is None:
            return None

        issues = response.issues.nodes
        if not issues or not issues[0].timeline_items.nodes:
            return Page(items=[], page_info=response.issues.page_info)

        edits = issues[0].timeline_items.nodes[0].user_content_edits
        return Page(items=edits.nodes, page_info=edits.page_info)

    async def _query(self, request: QueryRequest, response_model):
        if not self._active():
            return None

        self._logger.debug(
            f"Querying {request.name} for '{self.owner}/{self.project}' with variables: {dict(request.variables)}"
        )
        try:
            with timed_execution("github", request.name):
                data = await self.context.run(self._executor.execute(request))
            return response_model.model_validate(data)
        except asyncio.CancelledError:
            if not self.context.cancelled:
                raise
            self._logger.debug(f"{request.name} was cancelled")
        except asyncio.TimeoutError as exception:
            self._fail(
                f"{request.name} timed out after {self.context.timeout} seconds",
                exception,
            )
        except ValidationError as exception:
            self._fail(f"Unexpected response to {request.name}", exception)
        except Exception as exception:
            self._fail(f"{request.name} failed: {exception}", exception)
        return None

    def _fail(self, msg, exception):
        if isinstance(exception, TransportError):
            error = exception
        else:
            error = TransportError(msg)
            error.__cause__ = exception
        self._err = error
        self._logger.error(
            f"Stopping the import of '{self.owner}/{self.project}': {msg}"
        )
