"""Text normalisation used to build composite dedup keys."""

from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Reduce a title/company/location value to a comparable key fragment.

    Everything after the first comma is dropped, so "Los Angeles, CA" and
    "Los Angeles" collapse to the same fragment. Searches are already bounded
    to a radius, which keeps same-named cities in different states apart.
    """

    if not text:
        return ""
    value = str(text).split(",", 1)[0].lower()
    value = _DISALLOWED.sub("", value)
    return _WHITESPACE.sub(" ", value).strip()


__all__ = ["normalize"]
