from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Any

from born_today.schemas.people import Person, PersonImage, person_id_for_page

logger = logging.getLogger(__name__)

PERSON_PAGE_TYPE = "standard"
DATE_PAGE_DESCRIPTION = "Day of the year"


def normalize_births(items: Iterable[Any]) -> list[Person]:
    """Map raw feed items to people, keeping feed order and dropping unusable items."""
    people: list[Person] = []
    skipped = 0
    for item in items:
        person = normalize_item(item)
        if person is None:
            skipped += 1
            continue
        people.append(person)
    if skipped:
        logger.debug("normalized births kept=%s skipped=%s", len(people), skipped)
    return people


def normalize_item(item: Any) -> Person | None:
    """Return the ``Person`` described by one raw births item, or ``None`` to skip it.

    Each item carries several pages: one for the person and others for the
    calendar date itself. They are told apart only by their values, so the
    first standard page whose description is not the date marker is taken,
    wherever it sits in the list.
    """
    if not isinstance(item, dict):
        return None
    year = _as_int(item.get("year"))
    if year is None:
        return None

    page = _person_page(item.get("pages"))
    if page is None:
        return None
    page_id = _as_int(page.get("pageid"))
    if page_id is None or page_id <= 0:
        logger.debug("skipping births item without a usable pageid pageid=%r", page.get("pageid"))
        return None

    titles = page.get("titles")
    full_name = _as_text(titles.get("normalized")) if isinstance(titles, dict) else None
    if full_name is None:
        logger.debug("skipping births item without a title pageid=%s", page_id)
        return None

    return Person(
        id=person_id_for_page(page_id),
        year=year,
        full_name=full_name,
        description=_as_text(page.get("description")),
        thumbnail=_as_image(page.get("thumbnail")),
        image=_as_image(page.get("originalimage")),
    )


def _person_page(raw_pages: Any) -> dict[str, Any] | None:
    if not isinstance(raw_pages, list):
        return None
    for page in raw_pages:
        if not isinstance(page, dict):
            continue
        if page.get("type") == PERSON_PAGE_TYPE and page.get("description") != DATE_PAGE_DESCRIPTION:
            return page
    return None


def _as_image(value: Any) -> PersonImage | None:
    if not isinstance(value, dict):
        return None
    source = _as_text(value.get("source"))
    width = _as_int(value.get("width"))
    height = _as_int(value.get("height"))
    if source is None or width is None or height is None:
        return None
    return PersonImage(width=width, height=height, source_url=source)


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _as_int(value: Any) -> int | None:
    # bool is an int subclass but never a valid year or page id
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
