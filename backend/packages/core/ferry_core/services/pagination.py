"""
Cursor pagination.

Iterates a filtered query page by page, keyed on an increasing column, so
rows inserted or deleted while iterating never cause skips or repeats.
"""

from collections import deque
from collections.abc import Iterator
from typing import Any

from sqlalchemy import Select, and_, or_
from sqlalchemy.orm import InstrumentedAttribute, Session

from ferry_core import get_logger

logger = get_logger(__name__)


class CursorPaginator(Iterator[Any]):
    """
    Lazy iterator over the entities selected by ``query``.

    Every page adds ``order_column > cursor`` to the base query, orders by
    ``order_column`` and reads at most ``page_size`` rows. The cursor is the
    ordering value of the last entity handed out.

    When ``order_column`` is not unique pass a unique ``tiebreak_column``:
    the cursor then becomes the pair ``(order, tiebreak)`` and rows sharing
    an ordering value are never skipped across page boundaries.

    The base query must select a single entity and carry no ORDER BY or
    LIMIT of its own.
    """

    def __init__(
        self,
        session: Session,
        query: Select[Any],
        order_column: InstrumentedAttribute[Any],
        page_size: int = 500,
        tiebreak_column: InstrumentedAttribute[Any] | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.session = session
        self.query = query
        self.order_column = order_column
        self.tiebreak_column = tiebreak_column
        self.page_size = page_size
        self.pages = 0
        self._cursor: tuple[Any, ...] | None = None
        self._page: deque[Any] = deque()
        self._done = False

    @property
    def cursor(self) -> tuple[Any, ...] | None:
        return self._cursor

    def _page_query(self) -> Select[Any]:
        stmt = self.query
        if self._cursor is not None:
            if self.tiebreak_column is None:
                stmt = stmt.where(self.order_column > self._cursor[0])
            else:
                last_order, last_tiebreak = self._cursor
                stmt = stmt.where(
                    or_(
                        self.order_column > last_order,
                        and_(
                            self.order_column == last_order,
                            self.tiebreak_column > last_tiebreak,
                        ),
                    )
                )
        ordering = [self.order_column]
        if self.tiebreak_column is not None:
            ordering.append(self.tiebreak_column)
        return stmt.order_by(*ordering).limit(self.page_size)

    def _fetch(self) -> None:
        result = self.session.execute(self._page_query())
        rows = list(result.scalars().all())
        self.pages += 1
        logger.debug("Page fetched", extra={"page": self.pages, "rows": len(rows)})
        if not rows:
            self._done = True
        self._page.extend(rows)

    def has_next(self) -> bool:
        if self._page:
            return True
        if self._done:
            return False
        self._fetch()
        return bool(self._page)

    def next(self) -> Any:
        if not self.has_next():
            raise StopIteration
        entity = self._page.popleft()
        cursor = [getattr(entity, self.order_column.key)]
        if self.tiebreak_column is not None:
            cursor.append(getattr(entity, self.tiebreak_column.key))
        self._cursor = tuple(cursor)
        return entity

    __next__ = next

    def __iter__(self) -> "CursorPaginator":
        return self

    def close(self) -> None:
        """Stop iterating; later calls to has_next() return False."""
        self._done = True
        self._page.clear()


def paginate(
    session: Session,
    query: Select[Any],
    order_column: InstrumentedAttribute[Any],
    page_size: int = 500,
    tiebreak_column: InstrumentedAttribute[Any] | None = None,
) -> CursorPaginator:
    """Iterate ``query`` with a cursor on ``order_column``."""
    return CursorPaginator(session, query, order_column, page_size, tiebreak_column)
