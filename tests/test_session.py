from __future__ import annotations

import asyncio
from typing import Any

import pytest

from born_today.core.dates import FeedDate
from born_today.schemas.view import SELECTED_PERSON_ID_NONE, FilterCriteria
from born_today.services.feed_client import (
    FeedCancelledError,
    FeedError,
    FeedMalformedPayloadError,
    FeedTimeoutError,
)
from born_today.services.session import LoadStatus, PeopleSession
from born_today.services.view_state import ViewStateStore

DATE = FeedDate(month="01", day="01")
DATE_PAGE = {"type": "standard", "titles": {"normalized": "January 1"}, "description": "Day of the year"}


def _birth(page_id: int, year: int, name: str, description: str) -> dict[str, Any]:
    return {
        "year": year,
        "pages": [
            DATE_PAGE,
            {"pageid": page_id, "type": "standard", "titles": {"normalized": name}, "description": description},
        ],
    }


BIRTHS = [
    _birth(4077, 2000, "Frankie Jonas", "American singer, actor, member of the Jonas Family (born 2000)"),
    _birth(1, 1815, "Ada Lovelace", "English mathematician"),
    {"year": 1900, "text": "missing pages"},
]


class FakeFeedClient:
    def __init__(self, *outcomes: list[dict[str, Any]] | FeedError) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[FeedDate] = []

    async def fetch(self, date: FeedDate) -> list[dict[str, Any]]:
        self.calls.append(date)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, FeedError):
            raise outcome
        return outcome


def test_load_populates_repository_and_view() -> None:
    session = PeopleSession(FakeFeedClient(BIRTHS))  # type: ignore[arg-type]

    asyncio.run(session.load(DATE))

    assert session.status is LoadStatus.SUCCEEDED
    assert session.error is None
    assert len(session.repository) == 2
    snapshot = session.snapshot()
    assert snapshot is not None
    assert [person.full_name for person in snapshot.view] == ["Ada Lovelace", "Frankie Jonas"]
    assert snapshot.selected_id == "pageid-1"
    assert session.selected_person() == snapshot.view[0]


def test_load_honours_seed_from_shared_link() -> None:
    store = ViewStateStore.from_query_string("personid=pageid-4077")
    session = PeopleSession(FakeFeedClient(BIRTHS), store=store)  # type: ignore[arg-type]

    asyncio.run(session.load(DATE))

    assert session.controller.selected_id == "pageid-4077"
    assert session.store.share_query() == "personid=pageid-4077"


def test_load_with_no_records_succeeds_empty() -> None:
    session = PeopleSession(FakeFeedClient([]))  # type: ignore[arg-type]

    asyncio.run(session.load(DATE))

    assert session.status is LoadStatus.SUCCEEDED
    snapshot = session.snapshot()
    assert snapshot is not None
    assert snapshot.view == ()
    assert snapshot.selected_id == SELECTED_PERSON_ID_NONE


def test_failed_load_blocks_view_until_reset() -> None:
    session = PeopleSession(
        FakeFeedClient(FeedMalformedPayloadError("missing births"), BIRTHS)  # type: ignore[arg-type]
    )

    asyncio.run(session.load(DATE))

    assert session.status is LoadStatus.FAILED
    assert isinstance(session.error, FeedMalformedPayloadError)
    assert session.snapshot() is None

    session.reset()
    assert session.status is LoadStatus.IDLE
    assert session.error is None

    asyncio.run(session.load(DATE))
    assert session.status is LoadStatus.SUCCEEDED


def test_failed_reload_keeps_filter_and_reset_clears_people() -> None:
    session = PeopleSession(FakeFeedClient(BIRTHS, FeedTimeoutError("timeout")))  # type: ignore[arg-type]
    asyncio.run(session.load(DATE))
    session.controller.set_filter(FilterCriteria(text_contains="jonas"))

    asyncio.run(session.load(DATE))
    session.reset()

    assert len(session.repository) == 0
    assert session.controller.view == ()
    assert session.controller.selected_id == SELECTED_PERSON_ID_NONE
    assert session.controller.filter.text_contains == "jonas"


def test_cancelled_load_leaves_state_unchanged() -> None:
    session = PeopleSession(
        FakeFeedClient(BIRTHS, FeedCancelledError("cancelled"))  # type: ignore[arg-type]
    )
    asyncio.run(session.load(DATE))
    session.controller.select("pageid-4077")
    before = session.controller.snapshot()

    async def cancelled_load() -> None:
        with pytest.raises(FeedCancelledError):
            await session.load(DATE)

    asyncio.run(cancelled_load())

    assert session.status is LoadStatus.SUCCEEDED
    assert session.error is None
    assert session.controller.snapshot() == before
    assert len(session.repository) == 2


def test_reset_after_failed_first_load_keeps_seed() -> None:
    store = ViewStateStore(seed="pageid-4077")
    session = PeopleSession(
        FakeFeedClient(FeedTimeoutError("timeout"), BIRTHS),  # type: ignore[arg-type]
        store=store,
    )

    asyncio.run(session.load(DATE))
    session.reset()
    asyncio.run(session.load(DATE))

    assert session.controller.selected_id == "pageid-4077"
