from __future__ import annotations

from collections.abc import Iterable
import logging

from born_today.schemas.people import Person

logger = logging.getLogger(__name__)


class PeopleRepository:
    """Snapshot of the people from the last successful fetch.

    The collection is only ever swapped as a whole; nothing patches it in place.
    """

    def __init__(self) -> None:
        self._people: tuple[Person, ...] = ()
        self._by_id: dict[str, Person] = {}

    @property
    def people(self) -> tuple[Person, ...]:
        return self._people

    def __len__(self) -> int:
        return len(self._people)

    def replace(self, people: Iterable[Person]) -> tuple[Person, ...]:
        kept: list[Person] = []
        by_id: dict[str, Person] = {}
        for person in people:
            if person.id in by_id:
                logger.warning("dropping duplicate person id=%s", person.id)
                continue
            by_id[person.id] = person
            kept.append(person)
        self._people = tuple(kept)
        self._by_id = by_id
        return self._people

    def get(self, person_id: str) -> Person | None:
        return self._by_id.get(person_id)

    def clear(self) -> None:
        self._people = ()
        self._by_id = {}
