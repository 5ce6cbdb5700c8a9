"""
Description Generator
=====================
Category descriptions from score bands, or the text the report author
wrote next to the category heading.
"""

from typing import List, Optional, Tuple

from .models import RawDocument
from .scoring import ReportCategory

# (minimum score, template), checked top down
SCORE_BANDS: List[Tuple[int, str]] = [
    (90, "{name} is excellent with best practices in place."),
    (80, "{name} is well-configured with only minor improvements needed."),
    (70, "{name} meets most requirements but has some areas that could be improved."),
    (60, "{name} has several areas that need attention to meet best practices."),
]
LOW_BAND = "{name} requires significant improvements to ensure stability and security."

DESCRIPTION_LOOKAHEAD = 6


def generate_description(category_name: str, score: float) -> str:
    """Templated sentence for the band the score falls in."""
    for minimum, template in SCORE_BANDS:
        if score >= minimum:
            return template.format(name=category_name)
    return LOW_BAND.format(name=category_name)


def _is_heading_line(line: str, heading: str) -> bool:
    stripped = line.strip()
    if heading.lower() not in stripped.lower():
        return False
    if stripped.startswith('|') or stripped.startswith('//'):
        return False
    bare = stripped.lstrip('=.#').strip().strip('*').strip()
    return (stripped.startswith(('=', '.', '#', '*'))
            or bare.lower().startswith(heading.lower()))


def _is_description_candidate(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    if stripped.startswith(('*', '#', '=', '|', '//', ':', '[', '{', '----', '....', '<<')):
        return False
    return '%' not in stripped


def extract_authored_description(document: RawDocument, category: ReportCategory) -> Optional[str]:
    """
    First prose line following the category heading.

    Lines that look like headings, table cells, attributes, block
    delimiters or percentages are skipped. The search stops at the next
    section heading.
    """
    lines = document.lines
    for i, line in enumerate(lines):
        if not _is_heading_line(line, category.heading):
            continue
        for j in range(i + 1, min(i + 1 + DESCRIPTION_LOOKAHEAD, len(lines))):
            candidate = lines[j]
            if candidate.strip().startswith('='):
                break
            if _is_description_candidate(candidate):
                return candidate.strip()
    return None
