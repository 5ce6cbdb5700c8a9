"""
Section Locator
===============
Finds the Summary region of a report. Item extraction only looks at this
region; when no Summary heading exists the whole document is used.
"""

import re
from typing import Optional, Tuple

from config_logging import get_logger
from .models import RawDocument, Section

logger = get_logger('report_summary.sections')

HEADING_RE = re.compile(r'^(=+)\s+(\S.*?)\s*$')
SUMMARY_TITLE = 'summary'


def parse_heading(line: str) -> Optional[Tuple[int, str]]:
    """Return (level, title) for a heading line, else None."""
    match = HEADING_RE.match(line.strip())
    if not match:
        return None
    return len(match.group(1)), match.group(2)


def is_summary_heading(line: str) -> bool:
    heading = parse_heading(line)
    return heading is not None and heading[1].lower() == SUMMARY_TITLE


def locate_summary(document: RawDocument) -> Section:
    """
    Locate the Summary section.

    The section starts at the first line that is exactly a Summary
    heading and ends before the next heading of the same or a higher
    level that is not itself a Summary heading.
    """
    lines = document.lines
    start = -1
    level = 0
    for i, line in enumerate(lines):
        if is_summary_heading(line):
            start = i
            level = parse_heading(line)[0]
            break

    if start == -1:
        logger.warning("No Summary heading found, scanning whole document",
                       source=document.source)
        return Section(document=document, start=0, end=len(lines), degraded=True)

    end = len(lines)
    for i in range(start + 1, len(lines)):
        heading = parse_heading(lines[i])
        if heading is None or heading[0] > level:
            continue
        if heading[1].lower() == SUMMARY_TITLE:
            continue
        end = i
        break

    logger.debug(f"Summary section spans lines {start}-{end}", start=start, end=end)
    return Section(document=document, start=start, end=end)
