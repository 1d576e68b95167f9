"""Script stripping for untrusted markdown.

This is a narrow denylist: only ``<script>...</script>`` regions are removed.
Other executable HTML such as ``onerror=`` attributes, ``<iframe>`` elements
or styles referencing external resources passes through unchanged.
"""

from __future__ import annotations

import re

SCRIPT_BLOCK_RE = re.compile(r"<script\b[^<]*(?:(?!</script\s*>)<[^<]*)*</script\s*>", re.IGNORECASE)


def sanitize_markdown(markdown: str) -> str:
    return SCRIPT_BLOCK_RE.sub("", markdown)


__all__ = ["SCRIPT_BLOCK_RE", "sanitize_markdown"]
