from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlencode

from born_today.schemas.view import SELECTED_PERSON_ID_NONE

logger = logging.getLogger(__name__)

SELECTED_PERSON_ID_URL_PARAM = "personid"


class ViewStateStore:
    """Session-lifetime selection, kept apart from the fetched people.

    An optional seed (for example from a shared link) is held until the first
    set of people arrives; the list controller then keeps it if that person is
    in the view and ignores it otherwise.
    """

    def __init__(self, seed: str | None = None) -> None:
        self.selected_id = SELECTED_PERSON_ID_NONE
        self._seed = seed.strip() if seed and seed.strip() else None

    @classmethod
    def from_query_string(cls, query: str) -> ViewStateStore:
        values = parse_qs(query.lstrip("?")).get(SELECTED_PERSON_ID_URL_PARAM) or []
        return cls(seed=values[0] if values else None)

    @property
    def pending_seed(self) -> str | None:
        return self._seed

    def take_seed(self) -> str | None:
        seed, self._seed = self._seed, None
        if seed is not None:
            logger.debug("consuming selection seed person_id=%s", seed)
        return seed

    def share_query(self) -> str:
        if self.selected_id == SELECTED_PERSON_ID_NONE:
            return ""
        return urlencode({SELECTED_PERSON_ID_URL_PARAM: self.selected_id})
