from __future__ import annotations

from enum import Enum
import logging

from born_today.core.dates import FeedDate
from born_today.schemas.people import Person
from born_today.schemas.view import ViewSnapshot
from born_today.services.feed_client import FeedCancelledError, FeedClient, FeedError
from born_today.services.list_view import ListViewController
from born_today.services.normalizer import normalize_births
from born_today.services.repository import PeopleRepository
from born_today.services.view_state import ViewStateStore

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PeopleSession:
    """One user's list: fetch, normalize, store and present people for a date.

    A failed load blocks the list until ``reset`` is called; a cancelled load
    leaves everything as it was before the load started.
    """

    def __init__(
        self,
        client: FeedClient,
        *,
        store: ViewStateStore | None = None,
        repository: PeopleRepository | None = None,
        controller: ListViewController | None = None,
    ) -> None:
        self.client = client
        self.repository = repository or PeopleRepository()
        self.controller = controller or ListViewController(store or ViewStateStore())
        self.status = LoadStatus.IDLE
        self.error: FeedError | None = None

    @property
    def store(self) -> ViewStateStore:
        return self.controller.store

    async def load(self, date: FeedDate) -> None:
        if self.status is LoadStatus.LOADING:
            logger.warning("load started while another is outstanding date=%s", date)
        previous_status = self.status
        self.status = LoadStatus.LOADING
        try:
            items = await self.client.fetch(date)
        except FeedCancelledError:
            self.status = previous_status
            raise
        except FeedError as exc:
            self.status = LoadStatus.FAILED
            self.error = exc
            logger.warning(
                "people load failed date=%s error=%s retryable=%s",
                date,
                type(exc).__name__,
                exc.retryable,
            )
            return

        people = self.repository.replace(normalize_births(items))
        self.controller.replace_people(people)
        self.error = None
        self.status = LoadStatus.SUCCEEDED
        logger.info("people loaded date=%s people=%s", date, len(people))

    def reset(self) -> None:
        """Recovery action after a failed load: clear people and error, back to idle."""
        self.repository.clear()
        self.controller.clear_people()
        self.error = None
        self.status = LoadStatus.IDLE

    def snapshot(self) -> ViewSnapshot | None:
        """Current list state, or ``None`` while no successful load is being shown."""
        if self.status is not LoadStatus.SUCCEEDED:
            return None
        return self.controller.snapshot()

    def selected_person(self) -> Person | None:
        return self.repository.get(self.controller.selected_id)
