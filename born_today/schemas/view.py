from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from born_today.schemas.people import Person

SortField = Literal["year", "sort_key"]
SortDir = Literal["asc", "desc"]

SELECTED_PERSON_ID_NONE = ""


class FilterCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    year_equals: int | None = None
    text_contains: str | None = None

    @field_validator("text_contains")
    @classmethod
    def _blank_text_is_no_filter(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value


class SortCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: SortField = "year"
    direction: SortDir = "asc"


@dataclass(frozen=True, slots=True)
class ViewSnapshot:
    """What a renderer needs to draw the list: the ordered view and the selection."""

    view: tuple[Person, ...]
    selected_id: str
    filter: FilterCriteria
    sort: SortCriteria

    @property
    def selected_index(self) -> int | None:
        if self.selected_id == SELECTED_PERSON_ID_NONE:
            return None
        for index, person in enumerate(self.view):
            if person.id == self.selected_id:
                return index
        return None

    @property
    def selected_person(self) -> Person | None:
        index = self.selected_index
        return None if index is None else self.view[index]
