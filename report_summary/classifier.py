"""
Status Classifier
=================
Maps the report's cell color tags to item statuses and recognizes the
color key (legend) rows so they are never counted as data.

Tag syntax: ``{set:cellbgcolor:#FF0000}`` sets a cell color,
``{set:cellbgcolor!}`` resets it.
"""

import re
from typing import Dict, Optional, Sequence, Tuple

from .models import Status

COLOR_TAG_RE = re.compile(r'\{set:cellbgcolor:(#[A-Fa-f0-9]{3,8})\}')
RESET_TAG_RE = re.compile(r'\{set:cellbgcolor!\}')
ANY_TAG_RE = re.compile(r'\{set:cellbgcolor(?::#[A-Fa-f0-9]{3,8}|!)\}')
XREF_RE = re.compile(r'<<([^>]+)>>')

# Canonical color table
COLOR_STATUS: Dict[str, Status] = {
    '#FF0000': Status.REQUIRED,
    '#FEFE20': Status.RECOMMENDED,
    '#80E5FF': Status.ADVISORY,
    '#00FF00': Status.NO_CHANGE,
    '#A6B9BF': Status.NOT_APPLICABLE,
}

# Draft-only "To Be Evaluated" color, recognized but never counted
UNEVALUATED_COLOR = '#FFFFFF'

# Key text that accompanies each color in the legend table
LEGEND_PHRASES: Dict[Optional[Status], Tuple[str, ...]] = {
    Status.REQUIRED: ('Indicates Changes Required',),
    Status.RECOMMENDED: ('Indicates Changes Recommended',),
    Status.ADVISORY: ('No change required or recommended',),
    Status.NO_CHANGE: ('No change required',),
    Status.NOT_APPLICABLE: ('No advise given',),
    None: ('Not yet evaluated',),
}

ALL_LEGEND_PHRASES = tuple(p for phrases in LEGEND_PHRASES.values() for p in phrases)

# How far a legend row may extend below its color tag
LEGEND_LOOKAHEAD = 4

# How far back a row is searched for its item name
ROW_LOOKBEHIND = 8

TABLE_DELIMITER = '|==='


def normalize_color(code: str) -> str:
    return (code or '').strip().upper()


def status_for_color(code: str) -> Optional[Status]:
    """Look up the status for a color code; None when unknown."""
    return COLOR_STATUS.get(normalize_color(code))


def find_color(line: str) -> Optional[str]:
    """Return the normalized color code of the first color tag in a line."""
    match = COLOR_TAG_RE.search(line)
    return normalize_color(match.group(1)) if match else None


def has_reset_tag(line: str) -> bool:
    return RESET_TAG_RE.search(line) is not None


def strip_tags(line: str) -> str:
    """Remove color and reset tags from a line."""
    return ANY_TAG_RE.sub('', line).strip()


def find_xref(line: str) -> Optional[str]:
    """Return the text inside the first <<name>> token."""
    match = XREF_RE.search(line)
    if not match:
        return None
    name = match.group(1).strip()
    return name or None


def is_comment(line: str) -> bool:
    return line.strip().startswith('//')


def is_item_marker(line: str) -> bool:
    return 'ITEM START' in line or 'ITEM END' in line


def color_tag_start(line: str) -> int:
    """Offset of the first color tag in a line, -1 when there is none."""
    match = COLOR_TAG_RE.search(line)
    return match.start() if match else -1


def _is_row_boundary(line: str) -> bool:
    stripped = line.strip()
    return (is_item_marker(stripped) or find_color(stripped) is not None
            or stripped.startswith(TABLE_DELIMITER) or stripped.startswith('='))


def row_has_xref(lines: Sequence[str], index: int) -> bool:
    """
    Check whether the row ending at the color tag on ``lines[index]``
    names an item with a ``<<name>>`` cross reference.

    The row is the text before the tag on its own line plus the
    preceding lines up to the previous color tag, item marker, table
    delimiter or heading.
    """
    line = lines[index]
    if find_xref(line[:max(color_tag_start(line), 0)]):
        return True
    for j in range(index - 1, max(-1, index - 1 - ROW_LOOKBEHIND), -1):
        if _is_row_boundary(lines[j]):
            break
        if find_xref(lines[j]):
            return True
    return False


def is_legend_row(lines: Sequence[str], index: int, strict: bool = True) -> bool:
    """
    Check whether the color tag at ``lines[index]`` belongs to the legend.

    A tag line containing the legend phrase of its own color is always
    legend. Otherwise a row that names an item is data; an unnamed row
    is legend when the phrase appears in the rest of its table row
    (until a blank line, an item marker or another color tag). With
    ``strict=False`` any legend phrase counts.
    """
    line = lines[index]
    color = find_color(line)
    if color is None:
        return False

    status = status_for_color(color)
    if strict:
        phrases = LEGEND_PHRASES.get(status if color != UNEVALUATED_COLOR else None, ())
    else:
        phrases = ALL_LEGEND_PHRASES

    if any(phrase in line for phrase in phrases):
        return True
    if row_has_xref(lines, index):
        return False

    window = []
    for offset in range(1, LEGEND_LOOKAHEAD + 1):
        j = index + offset
        if j >= len(lines):
            break
        following = lines[j]
        if not following.strip() or is_item_marker(following) or find_color(following):
            break
        window.append(following)

    text = ' '.join(window)
    return any(phrase in text for phrase in phrases)


def classify_line(lines: Sequence[str], index: int, strict: bool = True) -> Optional[Tuple[Status, str]]:
    """
    Classify the color tag on ``lines[index]``.

    Returns (status, color_code) for a countable data tag, or None when
    the line has no tag, the color is not in the table, or the tag is
    part of the legend.
    """
    color = find_color(lines[index])
    if color is None:
        return None
    status = status_for_color(color)
    if status is None:
        return None
    if is_legend_row(lines, index, strict=strict):
        return None
    return status, color
