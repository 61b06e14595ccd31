import pytest
from pydantic import ValidationError

from born_today.core.text import fold_text, surname_guess
from born_today.schemas.people import Person


def test_fold_text_removes_accents_and_case() -> None:
    assert fold_text("Antonín DVOŘÁK") == "antonin dvorak"
    assert fold_text("Straße") == "strasse"
    assert fold_text(None) == ""
    assert fold_text("") == ""


@pytest.mark.parametrize(
    ("full_name", "expected"),
    [
        ("Frankie Jonas", "jonas"),
        ("Catherine Zeta-Jones", "zeta-jones"),
        ("Charles de Gaulle (politician)", "gaulle"),
        ("Nicholas, Grand Duke of Russia", "nicholas"),
        ("Zoë Saldaña", "saldana"),
        ("Madonna", "madonna"),
        ("", ""),
        ("(band)", ""),
    ],
)
def test_surname_guess(full_name: str, expected: str) -> None:
    assert surname_guess(full_name) == expected


def test_surname_guess_keeps_known_mistakes() -> None:
    assert surname_guess("Leopold II") == "ii"
    assert surname_guess("Pope John Paul II") == "ii"
    assert surname_guess("Elizabeth Queen Mother") == "mother"


def test_person_derives_search_fields_from_source_fields() -> None:
    person = Person(
        id="pageid-1",
        year=1841,
        full_name="Antonín Dvořák",
        description="Czech composer",
        full_name_lowercase="stale",
        sort_key_lowercase="stale",
    )

    assert person.full_name_lowercase == "antonin dvorak"
    assert person.description_lowercase == "czech composer"
    assert person.sort_key_lowercase == "dvorak"


def test_person_is_immutable() -> None:
    person = Person(id="pageid-1", year=1841, full_name="Antonín Dvořák")

    with pytest.raises(ValidationError):
        person.full_name = "Someone Else"  # type: ignore[misc]


def test_model_copy_with_update_recomputes_search_fields() -> None:
    person = Person(id="pageid-1", year=1815, full_name="Ada Lovelace", description="English mathematician")

    renamed = person.model_copy(update={"full_name": "Grace Hopper", "description": "Computer scientist"})

    assert renamed.id == person.id
    assert renamed.full_name_lowercase == "grace hopper"
    assert renamed.description_lowercase == "computer scientist"
    assert renamed.sort_key_lowercase == "hopper"
    assert person.sort_key_lowercase == "lovelace"
    assert person.model_copy() == person


def test_display_title_appends_year_when_description_lacks_it() -> None:
    with_year = Person(
        id="pageid-4077",
        year=2000,
        full_name="Frankie Jonas",
        description="American singer, actor, member of the Jonas Family (born 2000)",
    )
    without_year = Person(id="pageid-1", year=1815, full_name="Ada Lovelace", description="English mathematician")
    bare = Person(id="pageid-2", year=1841, full_name="Antonín Dvořák")

    assert with_year.display_title == "Frankie Jonas"
    assert without_year.display_title == "Ada Lovelace (1815)"
    assert bare.display_title == "Antonín Dvořák (1841)"
