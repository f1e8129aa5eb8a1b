"""Body comparison helpers for drift detection."""

from __future__ import annotations

import difflib


def normalize_body(body: str) -> str:
    """Collapse ``\\r\\n`` to ``\\n`` so line-ending style never counts as drift.

    >>> normalize_body("SELECT 1;\\r\\nSELECT 2;\\r\\n") == normalize_body("SELECT 1;\\nSELECT 2;\\n")
    True
    """
    return body.replace("\r\n", "\n")


def character_diff(old: str, new: str) -> str:
    """Render a character-level diff of *old* against *new*.

    Unchanged text is kept, removed text is wrapped as ``(~~…~~)`` and
    added text as ``(++…++)``.

    >>> character_diff("CREATE TABLE t(x int);", "CREATE TABLE t(y int);")
    'CREATE TABLE t((~~x~~)(++y++) int);'
    """
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    parts = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            parts.append(old[i1:i2])
            continue
        if tag in ("delete", "replace"):
            parts.append(f"(~~{old[i1:i2]}~~)")
        if tag in ("insert", "replace"):
            parts.append(f"(++{new[j1:j2]}++)")
    return "".join(parts)
