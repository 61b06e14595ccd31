from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from functools import lru_cache
import logging
import threading
from typing import Any

from pyuca import Collator

from born_today.core.text import fold_text
from born_today.schemas.people import Person
from born_today.schemas.view import (
    SELECTED_PERSON_ID_NONE,
    FilterCriteria,
    SortCriteria,
    ViewSnapshot,
)
from born_today.services.view_state import ViewStateStore

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[ViewSnapshot], None]
ScrollListener = Callable[[int], None]

KEY_PREVIOUS = "ArrowUp"
KEY_NEXT = "ArrowDown"


def filter_people(people: Iterable[Person], criteria: FilterCriteria) -> list[Person]:
    """Keep people matching every active criterion (year equality AND folded text)."""
    needle = fold_text(criteria.text_contains) if criteria.text_contains is not None else None
    matched: list[Person] = []
    for person in people:
        if criteria.year_equals is not None and person.year != criteria.year_equals:
            continue
        if (
            needle is not None
            and needle not in person.full_name_lowercase
            and needle not in person.description_lowercase
        ):
            continue
        matched.append(person)
    return matched


def sort_people(people: Iterable[Person], criteria: SortCriteria) -> list[Person]:
    """Single-key stable sort; names use Unicode collation of the surname guess."""
    key = _surname_key if criteria.field == "sort_key" else _year_key
    return sorted(people, key=key, reverse=criteria.direction == "desc")


@lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator()


def _surname_key(person: Person) -> tuple[int, ...]:
    return _collator().sort_key(person.sort_key_lowercase)


def _year_key(person: Person) -> int:
    return person.year


def build_view(people: Iterable[Person], criteria: FilterCriteria, order: SortCriteria) -> tuple[Person, ...]:
    return tuple(sort_people(filter_people(people, criteria), order))


class ListViewController:
    """Filter, sort, selection, keyboard navigation and scroll sync for the people list.

    All state lives in one record guarded by one lock. Every transition
    recomputes the view and revalidates the selection before returning, so
    after any call ``selected_id`` is either ``SELECTED_PERSON_ID_NONE`` or the
    id of a person in ``view``.

    Renderers either pull ``snapshot()`` or ``subscribe`` to be handed a new
    snapshot whenever something they draw changed. Scroll listeners receive
    the selected row index whenever the view or the selection changed and the
    selection is visible.
    """

    def __init__(
        self,
        store: ViewStateStore | None = None,
        *,
        filter_criteria: FilterCriteria | None = None,
        sort_criteria: SortCriteria | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._store = store or ViewStateStore()
        self._people: tuple[Person, ...] = ()
        self._filter = filter_criteria or FilterCriteria()
        self._sort = sort_criteria or SortCriteria()
        self._view: tuple[Person, ...] = ()
        self._index_by_id: dict[str, int] = {}
        self._listeners: list[SnapshotListener] = []
        self._scroll_listeners: list[ScrollListener] = []

    @property
    def store(self) -> ViewStateStore:
        return self._store

    @property
    def view(self) -> tuple[Person, ...]:
        return self._view

    @property
    def selected_id(self) -> str:
        return self._store.selected_id

    @property
    def filter(self) -> FilterCriteria:
        return self._filter

    @property
    def sort(self) -> SortCriteria:
        return self._sort

    def snapshot(self) -> ViewSnapshot:
        with self._lock:
            return ViewSnapshot(
                view=self._view,
                selected_id=self._store.selected_id,
                filter=self._filter,
                sort=self._sort,
            )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)
        return lambda: self._remove(self._listeners, listener)

    def on_scroll_to_index(self, listener: ScrollListener) -> Callable[[], None]:
        with self._lock:
            self._scroll_listeners.append(listener)
        return lambda: self._remove(self._scroll_listeners, listener)

    def set_filter(self, criteria: FilterCriteria) -> None:
        with self._lock:
            before = self._marker()
            self._filter = criteria
            self._recompute()
            self._clear_hidden_selection()
            logger.debug(
                "filter changed year=%s text=%r rows=%s",
                criteria.year_equals,
                criteria.text_contains,
                len(self._view),
            )
            self._publish(before)

    def set_sort(self, criteria: SortCriteria) -> None:
        with self._lock:
            before = self._marker()
            self._sort = criteria
            self._recompute()
            self._clear_hidden_selection()
            logger.debug("sort changed field=%s direction=%s", criteria.field, criteria.direction)
            self._publish(before)

    def replace_people(self, people: Sequence[Person]) -> None:
        with self._lock:
            before = self._marker()
            self._people = tuple(people)
            self._recompute()

            candidate = self._store.selected_id
            seed = self._store.take_seed()
            if candidate == SELECTED_PERSON_ID_NONE and seed is not None:
                candidate = seed
            if candidate not in self._index_by_id:
                if seed is not None and candidate == seed:
                    logger.info("ignoring selection seed not present in view person_id=%s", seed)
                candidate = self._view[0].id if self._view else SELECTED_PERSON_ID_NONE
            self._store.selected_id = candidate
            logger.debug("people replaced total=%s rows=%s selected=%s", len(self._people), len(self._view), candidate)
            self._publish(before)

    def clear_people(self) -> None:
        """Drop all people without consuming a pending selection seed."""
        with self._lock:
            before = self._marker()
            self._people = ()
            self._recompute()
            self._clear_hidden_selection()
            self._publish(before)

    def select(self, person_id: str) -> bool:
        """Select a visible person; ids not in the current view are rejected."""
        with self._lock:
            if person_id not in self._index_by_id:
                logger.debug("rejecting selection outside current view person_id=%s", person_id)
                return False
            before = self._marker()
            self._store.selected_id = person_id
            self._publish(before)
            return True

    def select_previous(self) -> bool:
        with self._lock:
            index = self.selected_index()
            if index is None or index == 0:
                return False
            return self._select_index(index - 1)

    def select_next(self) -> bool:
        with self._lock:
            index = self.selected_index()
            target = 0 if index is None else index + 1
            if target >= len(self._view):
                return False
            return self._select_index(target)

    def handle_key(self, key: str) -> bool:
        if key == KEY_PREVIOUS:
            return self.select_previous()
        if key == KEY_NEXT:
            return self.select_next()
        return False

    def selected_index(self) -> int | None:
        with self._lock:
            return self._index_by_id.get(self._store.selected_id)

    def _select_index(self, index: int) -> bool:
        before = self._marker()
        self._store.selected_id = self._view[index].id
        self._publish(before)
        return True

    def _recompute(self) -> None:
        self._view = build_view(self._people, self._filter, self._sort)
        self._index_by_id = {person.id: index for index, person in enumerate(self._view)}

    def _clear_hidden_selection(self) -> None:
        if self._store.selected_id not in self._index_by_id:
            self._store.selected_id = SELECTED_PERSON_ID_NONE

    def _marker(self) -> tuple[tuple[str, ...], str, FilterCriteria, SortCriteria]:
        return (tuple(person.id for person in self._view), self._store.selected_id, self._filter, self._sort)

    def _publish(self, before: tuple[tuple[str, ...], str, FilterCriteria, SortCriteria]) -> None:
        after = self._marker()
        if after == before:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("view listener failed selected=%s", snapshot.selected_id)

        if after[:2] == before[:2]:
            return
        index = self._index_by_id.get(self._store.selected_id)
        if index is None:
            return
        for scroll_listener in list(self._scroll_listeners):
            try:
                scroll_listener(index)
            except Exception:
                logger.exception("scroll listener failed index=%s", index)

    def _remove(self, listeners: list[Any], listener: Any) -> None:
        with self._lock:
            if listener in listeners:
                listeners.remove(listener)
