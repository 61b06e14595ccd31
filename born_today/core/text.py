"""Text folding used for accent-insensitive search and surname sorting."""

from __future__ import annotations

import re
import unicodedata

_PARENTHESIZED_RE = re.compile(r"\(.*\)")
_TRAILING_CLAUSE_RE = re.compile(r",.*$")


def fold_text(value: str | None) -> str:
    """Return a case-folded, accent-free version of *value* for substring search."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def surname_guess(full_name: str | None) -> str:
    """Best-effort folded surname for alphabetic sorting.

    The feed only carries a display title, e.g. ``"Frankie Jonas"``,
    ``"Catherine (Queen)"`` or ``"Nicholas, Grand Duke of Russia"``. Any
    parenthesized text and anything after the first comma is dropped, then the
    last remaining word is used. Names whose title is neither parenthesized
    nor comma separated, and regnal numerals ("Leopold II" gives "ii"), are
    ranked by the wrong word. Sorting downstream relies on exactly this
    behaviour, so keep it.
    """
    if not full_name:
        return ""
    remainder = _PARENTHESIZED_RE.sub("", full_name)
    remainder = _TRAILING_CLAUSE_RE.sub("", remainder).strip()
    tokens = remainder.split()
    if not tokens:
        return ""
    return fold_text(tokens[-1])
