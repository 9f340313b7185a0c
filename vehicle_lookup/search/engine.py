"""
Multi-field record search.

Linear, case-insensitive scan over the working set. No diacritic folding:
"mae" does not match "Mãe". A record matches when any field of the active
groups matches; groups are scanned plates-first and the scan stops at the
first hit.
"""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from vehicle_lookup.config import ALL_FIELDS_GROUPS, STICKER_ONLY_GROUPS
from vehicle_lookup.data.normalize import normalize
from vehicle_lookup.data.schemas import Record, SearchMode


def _groups(mode: SearchMode | str) -> tuple[tuple[str, tuple[str, ...]], ...]:
    if mode == SearchMode.STICKERS:
        return STICKER_ONLY_GROUPS
    return ALL_FIELDS_GROUPS


def _field_text(record: Mapping[str, Any], field: str, mode: SearchMode | str) -> str:
    value = record.get(field)
    text = value if isinstance(value, str) else normalize(value)
    # Sticker values are compared trimmed
    if mode == SearchMode.STICKERS:
        return text.strip()
    return text


def _matches(value: str, needle: str, exact: bool) -> bool:
    if not value:
        return False
    value = value.lower()
    return value == needle if exact else needle in value


def record_matches(record: Any, needle: str, mode: SearchMode | str, exact: bool) -> bool:
    """`needle` must already be trimmed and lower-cased."""
    if not isinstance(record, Mapping):
        return False
    for _, fields in _groups(mode):
        for field in fields:
            if _matches(_field_text(record, field, mode), needle, exact):
                return True
    return False


def filter_records(
    records: Sequence[Record],
    query: str,
    mode: SearchMode | str = SearchMode.ALL,
    exact: bool = False,
) -> Sequence[Record]:
    """Records matching `query`, in input order.

    A blank query returns `records` itself, untouched.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return records
    return [r for r in records if record_matches(r, needle, mode, exact)]


# ---------------------------------------------------------------------------
# Match reporting (for highlighting in result cards)
# ---------------------------------------------------------------------------

def matched_fields(
    record: Any,
    query: str,
    mode: SearchMode | str = SearchMode.ALL,
    exact: bool = False,
) -> list[str]:
    """Every searchable field of `record` that matches, in group order."""
    needle = (query or "").strip().lower()
    if not needle or not isinstance(record, Mapping):
        return []
    return [
        field
        for _, fields in _groups(mode)
        for field in fields
        if _matches(_field_text(record, field, mode), needle, exact)
    ]


def _fold(text: str) -> str:
    """Lower-case one character at a time so offsets line up with `text`."""
    return "".join(low if len(low) == 1 else ch for ch, low in ((ch, ch.lower()) for ch in text))


def highlight(text: Any, query: str, exact: bool = False) -> list[tuple[str, bool]]:
    """Split `text` into (segment, is_match) pieces, case-insensitively.

    Exact mode highlights the whole value or nothing.
    """
    text = normalize(text)
    needle = (query or "").strip()
    if not text:
        return []
    if not needle:
        return [(text, False)]

    lowered, low_needle = _fold(text), _fold(needle)
    if exact:
        return [(text, lowered == low_needle)]

    pieces: list[tuple[str, bool]] = []
    pos = 0
    while True:
        hit = lowered.find(low_needle, pos)
        if hit == -1:
            break
        if hit > pos:
            pieces.append((text[pos:hit], False))
        pieces.append((text[hit:hit + len(needle)], True))
        pos = hit + len(needle)
    if pos < len(text):
        pieces.append((text[pos:], False))
    return pieces
