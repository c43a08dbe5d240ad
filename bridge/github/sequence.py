#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
"""Lazy walk over one paginated axis.

A `PagedSequence` first walks the page embedded in its parent's response, if
any, then keeps loading pages of its own through a fetch coroutine until the
remote reports nothing more. Pages it loads itself can be reversed before
their first item is surfaced, and items matching a skip predicate are never
surfaced. Callers only see `advance()` / `current`; the phase switch between
embedded and fetched pages is invisible to them.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar, Union

from bridge.github.cursor import CursorState, Direction
from bridge.github.models import PageInfo

T = TypeVar("T")


@dataclass(frozen=True)
class NotStarted:
    pass


@dataclass(frozen=True)
class Embedded:
    index: int


@dataclass(frozen=True)
class Fallback:
    index: int


@dataclass(frozen=True)
class Exhausted:
    pass


Position = Union[NotStarted, Embedded, Fallback, Exhausted]

NOT_STARTED = NotStarted()
EXHAUSTED = Exhausted()


@dataclass
class Page(Generic[T]):
    items: List[T]
    page_info: PageInfo

    def reversed(self) -> "Page[T]":
        return Page(items=list(reversed(self.items)), page_info=self.page_info)


# returns None when the fetch failed or was cancelled
Fetch = Callable[[CursorState], Awaitable[Optional[Page]]]


class PagedSequence(Generic[T]):
    def __init__(
        self,
        name: str,
        fetch: Fetch,
        direction: Direction,
        page_size: int,
        embedded: Optional[Page] = None,
        reverse: bool = False,
        skip: Optional[Callable[[T], bool]] = None,
        active: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.name = name
        self._fetch = fetch
        self._embedded = embedded
        self._reverse = reverse
        self._skip = skip or (lambda item: False)
        self._active = active or (lambda: True)
        self.cursor = CursorState(page_size=page_size, direction=direction)
        self.position: Position = NOT_STARTED
        self._page: Optional[Page] = None

    @property
    def exhausted(self) -> bool:
        return isinstance(self.position, Exhausted)

    @property
    def index(self) -> int:
        match self.position:
            case Embedded(index) | Fallback(index):
                return index
        msg = f"{self.name}: no current item"
        raise LookupError(msg)

    @property
    def current(self) -> T:
        index = self.index
        return self._page.items[index]  # pyright: ignore

    def previous(self) -> Optional[T]:
        """Item preceding the current one in the loaded page, if any."""
        index = self.index
        if index == 0:
            return None
        return self._page.items[index - 1]  # pyright: ignore

    async def advance(self) -> bool:
        while self._active():
            position = await self._next_position()
            if position is None:
                # failed or cancelled fetch, nothing was committed
                return False

            self.position = position
            match position:
                case Embedded(index) | Fallback(index):
                    if self._skip(self._page.items[index]):  # pyright: ignore
                        continue
                    return True
                case _:
                    return False
        return False

    async def _next_position(self) -> Optional[Position]:
        match self.position:
            case NotStarted():
                if self._embedded is not None:
                    return self._enter(self._embedded, Embedded)
                return await self._load()
            case Embedded(index) if index + 1 < len(self._page.items):  # pyright: ignore
                return Embedded(index + 1)
            case Fallback(index) if index + 1 < len(self._page.items):  # pyright: ignore
                return Fallback(index + 1)
            case Embedded() | Fallback():
                if not self.cursor.has_more:
                    return EXHAUSTED
                return await self._load()
            case _:
                return EXHAUSTED

    async def _load(self) -> Optional[Position]:
        page = await self._fetch(self.cursor)
        if page is None:
            return None
        if self._reverse:
            page = page.reversed()
        return self._enter(page, Fallback)

    def _enter(self, page: Page, phase) -> Position:
        self._page = page
        self.cursor = self.cursor.advanced(page.page_info)
        if not page.items:
            return EXHAUSTED
        return phase(0)
