from __future__ import annotations

import re
from collections.abc import Sequence

# Upper bound for open-ended ranges such as "5-"; closed ranges are clamped
# to it too. Documents longer than this cannot select their tail pages.
OPEN_RANGE_PAGE_CEILING = 1000

LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def _parse_int(text: str | None) -> int | None:
    # leading digits only: "3abc" and "2.5" read as 3 and 2
    if text is None:
        return None
    match = LEADING_INT_RE.match(text)
    if match is None:
        return None
    return int(match.group(1))


def expand_page_range(tokens: Sequence[str]) -> list[int]:
    """Return the ascending, de-duplicated page numbers selected by *tokens*.

    Each token is ``N``, ``N-M`` or ``N-``. Tokens that do not parse are
    skipped; a range whose start exceeds its end selects nothing. Range ends
    never go past ``OPEN_RANGE_PAGE_CEILING``.
    """

    selected: set[int] = set()
    for token in tokens:
        if "-" in token:
            parts = token.split("-")
            start = _parse_int(parts[0])
            end = _parse_int(parts[1])
            if start is None:
                continue
            if end is None or end > OPEN_RANGE_PAGE_CEILING:
                end = OPEN_RANGE_PAGE_CEILING
            selected.update(range(start, end + 1))
        else:
            page = _parse_int(token)
            if page is not None:
                selected.add(page)
    return sorted(selected)


def parse_page_range(pages: str | Sequence[str] | None) -> str | None:
    """Normalise a page selection into the engine's comma-joined form.

    ``None`` means no restriction. A selection made only of malformed tokens
    yields an empty string, which callers also treat as "all pages".
    """

    if not pages:
        return None
    tokens = [pages] if isinstance(pages, str) else list(pages)
    return ",".join(str(page) for page in expand_page_range(tokens))


__all__ = ["OPEN_RANGE_PAGE_CEILING", "expand_page_range", "parse_page_range"]
