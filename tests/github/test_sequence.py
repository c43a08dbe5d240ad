#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
import pytest

from bridge.github.cursor import CursorState, Direction, QueryRequest
from bridge.github.models import PageInfo
from bridge.github.query import GithubQuery
from bridge.github.sequence import (
    EXHAUSTED,
    NOT_STARTED,
    Embedded,
    Fallback,
    Page,
    PagedSequence,
)


class FakeFetch:
    """Serves scripted pages and records the cursor states it was called with."""

    def __init__(self, *pages):
        self.pages = list(pages)
        self.cursors = []

    async def __call__(self, cursor):
        self.cursors.append(cursor)
        if not self.pages:
            msg = "Unexpected fetch"
            raise AssertionError(msg)
        return self.pages.pop(0)


def forward_page(*items, has_next_page=False, end_cursor=None):
    return Page(
        items=list(items),
        page_info=PageInfo(has_next_page=has_next_page, end_cursor=end_cursor),
    )


def backward_page(*items, has_previous_page=False, start_cursor=None):
    return Page(
        items=list(items),
        page_info=PageInfo(
            has_previous_page=has_previous_page, start_cursor=start_cursor
        ),
    )


async def drain(sequence):
    items = []
    while await sequence.advance():
        items.append(sequence.current)
    return items


@pytest.mark.asyncio
async def test_embedded_page_only():
    fetch = FakeFetch()
    sequence = PagedSequence(
        "numbers",
        fetch=fetch,
        direction=Direction.FORWARD,
        page_size=2,
        embedded=forward_page(1, 2, 3),
    )

    assert sequence.position == NOT_STARTED
    assert await drain(sequence) == [1, 2, 3]
    assert sequence.position == EXHAUSTED
    assert fetch.cursors == []


@pytest.mark.asyncio
async def test_fetch_when_nothing_is_embedded():
    fetch = FakeFetch(
        forward_page(1, 2, has_next_page=True, end_cursor="b"),
        forward_page(3, end_cursor="c"),
    )
    sequence = PagedSequence(
        "numbers", fetch=fetch, direction=Direction.FORWARD, page_size=2
    )

    assert await sequence.advance()
    assert sequence.position == Fallback(0)
    assert await drain(sequence) == [2, 3]

    assert fetch.cursors == [
        CursorState(page_size=2, direction=Direction.FORWARD),
        CursorState(
            page_size=2,
            direction=Direction.FORWARD,
            cursor="b",
            has_next_page=True,
        ),
    ]


@pytest.mark.asyncio
async def test_embedded_then_fallback():
    fetch = FakeFetch(forward_page(3, 4))
    sequence = PagedSequence(
        "numbers",
        fetch=fetch,
        direction=Direction.FORWARD,
        page_size=2,
        embedded=forward_page(1, 2, has_next_page=True, end_cursor="b"),
    )

    assert await sequence.advance()
    assert sequence.position == Embedded(0)
    assert await drain(sequence) == [2, 3, 4]
    assert fetch.cursors[0].cursor == "b"


@pytest.mark.asyncio
async def test_backward_pages_are_reversed():
    # the embedded page is given already in chronological order
    fetch = FakeFetch(
        backward_page(4, 3, has_previous_page=True, start_cursor="d"),
        backward_page(6, 5, start_cursor="f"),
    )
    sequence = PagedSequence(
        "edits",
        fetch=fetch,
        direction=Direction.BACKWARD,
        page_size=2,
        embedded=backward_page(1, 2, has_previous_page=True, start_cursor="b"),
        reverse=True,
    )

    assert await drain(sequence) == [1, 2, 3, 4, 5, 6]
    assert [cursor.cursor for cursor in fetch.cursors] == ["b", "d"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "chunks",
    [
        [[1, 2, 3]],
        [[1], [2, 3]],
        [[1, 2], [3]],
        [[1], [2], [3]],
    ],
)
async def test_page_boundaries_do_not_change_the_order(chunks):
    embedded, *fetched = chunks
    pages = [
        backward_page(
            *reversed(chunk),
            has_previous_page=i < len(fetched) - 1,
            start_cursor=f"p{i}",
        )
        for i, chunk in enumerate(fetched)
    ]
    sequence = PagedSequence(
        "edits",
        fetch=FakeFetch(*pages),
        direction=Direction.BACKWARD,
        page_size=3,
        embedded=backward_page(
            *embedded, has_previous_page=bool(fetched), start_cursor="e"
        ),
        reverse=True,
    )

    assert await drain(sequence) == [1, 2, 3]


@pytest.mark.asyncio
async def test_skipped_items_are_never_surfaced():
    fetch = FakeFetch(
        forward_page(0, 0, has_next_page=True, end_cursor="b"),
        forward_page(0, 4),
    )
    sequence = PagedSequence(
        "numbers",
        fetch=fetch,
        direction=Direction.FORWARD,
        page_size=2,
        embedded=forward_page(1, 0, has_next_page=True, end_cursor="a"),
        skip=lambda item: item == 0,
    )

    assert await drain(sequence) == [1, 4]
    assert len(fetch.cursors) == 2


@pytest.mark.asyncio
async def test_empty_embedded_page_is_not_fetched():
    fetch = FakeFetch()
    sequence = PagedSequence(
        "numbers",
        fetch=fetch,
        direction=Direction.FORWARD,
        page_size=2,
        embedded=forward_page(has_next_page=True, end_cursor="a"),
    )

    assert not await sequence.advance()
    assert sequence.exhausted
    assert fetch.cursors == []


@pytest.mark.asyncio
async def test_exhausted_sequence_is_not_fetched_again():
    fetch = FakeFetch(forward_page(1))
    sequence = PagedSequence(
        "numbers", fetch=fetch, direction=Direction.FORWARD, page_size=2
    )

    assert await drain(sequence) == [1]
    assert not await sequence.advance()
    assert not await sequence.advance()
    assert len(fetch.cursors) == 1


@pytest.mark.asyncio
async def test_failed_fetch_commits_nothing():
    fetch = FakeFetch(None)
    sequence = PagedSequence(
        "numbers",
        fetch=fetch,
        direction=Direction.FORWARD,
        page_size=2,
        embedded=forward_page(1, has_next_page=True, end_cursor="a"),
    )

    assert await sequence.advance()
    cursor = sequence.cursor

    assert not await sequence.advance()
    assert sequence.position == Embedded(0)
    assert sequence.cursor == cursor
    assert sequence.current == 1


@pytest.mark.asyncio
async def test_inactive_sequence_does_not_fetch():
    fetch = FakeFetch(forward_page(1))
    sequence = PagedSequence(
        "numbers",
        fetch=fetch,
        direction=Direction.FORWARD,
        page_size=2,
        active=lambda: False,
    )

    assert not await sequence.advance()
    assert sequence.position == NOT_STARTED
    assert fetch.cursors == []


def test_no_current_item_before_advancing():
    sequence = PagedSequence(
        "numbers", fetch=FakeFetch(), direction=Direction.FORWARD, page_size=2
    )

    with pytest.raises(LookupError):
        sequence.current


@pytest.mark.asyncio
async def test_previous():
    sequence = PagedSequence(
        "numbers",
        fetch=FakeFetch(),
        direction=Direction.FORWARD,
        page_size=2,
        embedded=forward_page("a", "b"),
    )

    await sequence.advance()
    assert sequence.previous() is None
    await sequence.advance()
    assert sequence.previous() == "a"


@pytest.mark.parametrize(
    "direction, page_info, expected",
    [
        (
            Direction.FORWARD,
            PageInfo(has_next_page=True, start_cursor="s", end_cursor="e"),
            ("e", True),
        ),
        (
            Direction.FORWARD,
            PageInfo(has_previous_page=True, start_cursor="s", end_cursor="e"),
            ("e", False),
        ),
        (
            Direction.BACKWARD,
            PageInfo(has_previous_page=True, start_cursor="s", end_cursor="e"),
            ("s", True),
        ),
        (
            Direction.BACKWARD,
            PageInfo(has_next_page=True, start_cursor="s", end_cursor="e"),
            ("s", False),
        ),
    ],
)
def test_cursor_state_advanced(direction, page_info, expected):
    state = CursorState(page_size=10, direction=direction).advanced(page_info)

    assert (state.cursor, state.has_more) == expected
    assert state.page_size == 10


def test_query_request_is_a_snapshot():
    variables = {"owner": "octo", "issueAfter": None}
    request = QueryRequest.build(GithubQuery.ISSUE_TIMELINE_QUERY, **variables)
    variables["issueAfter"] = "c1"

    assert request.variables["issueAfter"] is None
    assert request.name == "ISSUE_TIMELINE_QUERY"
    assert request.to_dict() == {
        "query": GithubQuery.ISSUE_TIMELINE_QUERY.value,
        "variables": {"owner": "octo", "issueAfter": None},
    }
    with pytest.raises(TypeError):
        request.variables["owner"] = "other"  # pyright: ignore
