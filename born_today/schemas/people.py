from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from born_today.core.text import fold_text, surname_guess

PERSON_ID_PREFIX = "pageid-"


class PersonImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    source_url: str


class Person(BaseModel):
    """One historical figure born on the requested date.

    The ``*_lowercase`` fields are derived from ``full_name`` and
    ``description`` when the model is built. Values supplied for them are
    discarded, so a ``Person`` never carries search fields out of step with
    its source fields. That includes ``model_copy(update=...)``, which
    rebuilds the model instead of patching fields in place.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    year: int
    full_name: str
    description: str | None = None
    thumbnail: PersonImage | None = None
    image: PersonImage | None = None
    full_name_lowercase: str = ""
    description_lowercase: str = ""
    sort_key_lowercase: str = ""

    @model_validator(mode="before")
    @classmethod
    def _derive_search_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        full_name = data.get("full_name")
        description = data.get("description")
        name_text = full_name if isinstance(full_name, str) else None
        description_text = description if isinstance(description, str) else None
        return {
            **data,
            "full_name_lowercase": fold_text(name_text),
            "description_lowercase": fold_text(description_text),
            "sort_key_lowercase": surname_guess(name_text),
        }

    def model_copy(self, *, update: Mapping[str, Any] | None = None, deep: bool = False) -> Person:
        if not update:
            return super().model_copy(deep=deep)
        return type(self).model_validate({**self.model_dump(), **update})

    @property
    def display_title(self) -> str:
        """Full name, with the birth year appended unless the description already states it."""
        if self.description and str(self.year) in self.description:
            return self.full_name
        return f"{self.full_name} ({self.year})"


def person_id_for_page(page_id: int) -> str:
    return f"{PERSON_ID_PREFIX}{page_id}"
