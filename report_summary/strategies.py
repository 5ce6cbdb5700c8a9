"""
Item Extraction Pipeline
========================
Ordered extraction strategies over the Summary section.

Every strategy implements ``extract(section) -> List[Item]``. The
pipeline tries them in priority order and keeps the first non-empty
result, then deduplicates it by (item name, status).

Strategies:
- MarkerBlockStrategy: items between ``ITEM START`` / ``ITEM END`` comments
- TableRowStrategy: rows of the Category / Item Evaluated / Observed
  Result / Recommendation table
- ColorFallbackStrategy: any data color tag, names from nearby
  cross references
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from config_logging import get_logger
from .models import Item, Section, Status
from . import classifier

logger = get_logger('report_summary.strategies')

ITEM_START = 'ITEM START'
ITEM_END = 'ITEM END'
TABLE_DELIMITER = '|==='

# Cell spec prefixes such as "|", "a|", ".3+|", "2+a|"
CELL_PREFIX_RE = re.compile(r'^(?:\d*(?:\.\d+)?\+?[<^>]?(?:\.[<^>])?[adehlmsv]?)?\|')
# A cell separator inside a line, preceded by whitespace or the line start
CELL_SEPARATOR_RE = re.compile(r'(?:^|(?<=\s))(?:\d*(?:\.\d+)?\+?[<^>]?(?:\.[<^>])?[adehlmsv]?)?\|')

HEADER_LABELS = ('Category', 'Item Evaluated', 'Observed Result', 'Recommendation')
REQUIRED_HEADER_LABELS = ('Category', 'Item Evaluated', 'Recommendation')


def strip_cell(line: str) -> str:
    """Remove the leading cell separator and cell spec from a line."""
    text = line.strip()
    match = CELL_PREFIX_RE.match(text)
    if match:
        text = text[match.end():]
    return text.strip()


def plain_text(line: str) -> str:
    """
    Cell text of a line that is neither a comment, a cross reference
    nor a color tag; empty string otherwise.
    """
    stripped = line.strip()
    if not stripped or classifier.is_comment(stripped):
        return ''
    if stripped.startswith(TABLE_DELIMITER) or classifier.find_xref(stripped):
        return ''
    if classifier.find_color(stripped) or classifier.has_reset_tag(stripped):
        return ''
    text = strip_cell(stripped)
    if text.startswith('*') and text.endswith('*') and text.strip('*') in HEADER_LABELS:
        return ''
    return text


def split_cells(line: str) -> List[str]:
    """
    Split a table line into its cells, each keeping its separator.

    Text before the first separator (a continuation of the previous
    cell) is returned as its own chunk without a separator.
    """
    text = line.strip()
    starts = [m.start() for m in CELL_SEPARATOR_RE.finditer(text)]
    if not starts or starts[0] != 0:
        starts.insert(0, 0)
    bounds = starts + [len(text)]
    cells = [text[a:b].strip() for a, b in zip(bounds, bounds[1:])]
    return [cell for cell in cells if cell]


# =============================================================================
# STRATEGY CONTRACT
# =============================================================================

class ExtractionStrategy:
    """
    Base class for item extraction strategies.

    Subclasses implement ``extract()`` and set STRATEGY_NAME.
    """

    STRATEGY_NAME = "Base"

    def __init__(self):
        self._errors: List[str] = []

    def extract(self, section: Section) -> List[Item]:
        raise NotImplementedError("Subclasses must implement extract()")

    def safe_extract(self, section: Section) -> List[Item]:
        """Run extract(); an unexpected failure yields no items."""
        try:
            return self.extract(section)
        except Exception as e:
            self._errors.append(f"{self.STRATEGY_NAME} error: {e}")
            logger.exception(f"{self.STRATEGY_NAME} strategy failed: {e}",
                             strategy=self.STRATEGY_NAME)
            return []

    def get_errors(self) -> List[str]:
        return self._errors.copy()

    def clear_errors(self):
        self._errors = []


class _ItemBuilder:
    """Accumulates the cells of one item while scanning."""

    def __init__(self, category: str = ''):
        self.category = category
        self.item_name = ''
        self.observation = ''
        self.status: Optional[Status] = None
        self.color_code = ''
        self.recommendation = ''
        self.line_number = -1

    def set_status(self, status: Status, color: str, line: str, line_number: int):
        self.status = status
        self.color_code = color
        self.recommendation = strip_cell(classifier.strip_tags(line))
        self.line_number = line_number

    def build(self) -> Optional[Item]:
        if not self.item_name or self.status is None:
            return None
        return Item(
            item_name=self.item_name,
            status=self.status,
            category=self.category,
            observation=self.observation,
            color_code=self.color_code,
            recommendation=self.recommendation,
            line_number=self.line_number,
        )


def _category_after_reset(lines: Sequence[str], cell: str, index: int, stop: int) -> str:
    """Category text in a reset cell or in the lines just after it."""
    remainder = strip_cell(classifier.strip_tags(cell))
    if remainder and not classifier.find_xref(remainder):
        return remainder
    for j in range(index + 1, min(index + 5, stop)):
        candidate = lines[j].strip()
        if not candidate or classifier.is_comment(candidate):
            continue
        return plain_text(split_cells(candidate)[0])
    return ''


# =============================================================================
# STRATEGIES
# =============================================================================

class MarkerBlockStrategy(ExtractionStrategy):
    """Items delimited by ``// ---ITEM START`` and ``// ---ITEM END`` comments."""

    STRATEGY_NAME = "marker_block"

    def extract(self, section: Section) -> List[Item]:
        lines = section.document.lines
        strict = not section.degraded
        items: List[Item] = []
        current: Optional[_ItemBuilder] = None

        for i in range(section.start, section.end):
            line = lines[i].strip()

            if ITEM_START in line and classifier.is_comment(line):
                current = _ItemBuilder()
                continue

            if ITEM_END in line and classifier.is_comment(line):
                if current is not None:
                    item = current.build()
                    if item is not None:
                        items.append(item)
                current = None
                continue

            if current is None or not line or classifier.is_comment(line):
                continue

            for cell in split_cells(line):
                if classifier.has_reset_tag(cell) and not classifier.find_color(cell):
                    if not current.category:
                        current.category = _category_after_reset(lines, cell, i, section.end)
                    continue

                name = classifier.find_xref(cell)
                if name:
                    if not current.item_name:
                        current.item_name = name
                    continue

                if classifier.find_color(cell):
                    if current.status is None:
                        classified = classifier.classify_line(lines, i, strict=strict)
                        if classified:
                            current.set_status(classified[0], classified[1], cell, i)
                    continue

                if current.item_name and not current.observation:
                    current.observation = plain_text(cell)

        return items


class TableRowStrategy(ExtractionStrategy):
    """Rows of the summary table following its header row."""

    STRATEGY_NAME = "table_row"

    def find_header(self, lines: Sequence[str], start: int, end: int) -> Optional[Tuple[int, int]]:
        """
        Locate the header row.

        Header cells may share one line or sit on consecutive lines.
        Returns (first header line, first line after the header).
        """
        for i in range(start, end):
            if 'Category' not in lines[i]:
                continue
            row = [lines[i]]
            j = i + 1
            while j < end and j <= i + len(HEADER_LABELS) and lines[j].strip() \
                    and lines[j].strip().startswith('|') \
                    and not lines[j].strip().startswith(TABLE_DELIMITER):
                if not any(label in lines[j] for label in HEADER_LABELS):
                    break
                row.append(lines[j])
                j += 1
            text = ' '.join(row)
            if all(label in text for label in REQUIRED_HEADER_LABELS):
                return i, j
        return None

    def extract(self, section: Section) -> List[Item]:
        lines = section.document.lines
        strict = not section.degraded
        header = self.find_header(lines, section.start, section.end)
        if header is None:
            return []

        _, data_start = header
        data_end = section.end
        for i in range(data_start, section.end):
            if lines[i].strip().startswith(TABLE_DELIMITER):
                data_end = i
                break

        items: List[Item] = []
        last_category = ''
        current = _ItemBuilder()
        # Chunks without a leading "|" continue the previous cell
        in_recommendation = False

        for i in range(data_start, data_end):
            line = lines[i].strip()
            if not line or classifier.is_comment(line):
                continue

            for cell in split_cells(line):
                if classifier.has_reset_tag(cell) and not classifier.find_color(cell):
                    in_recommendation = False
                    remainder = strip_cell(classifier.strip_tags(cell))
                    if remainder and not current.item_name:
                        current.category = remainder
                    continue

                name = classifier.find_xref(cell)
                if name:
                    in_recommendation = False
                    current.item_name = name
                    continue

                if classifier.find_color(cell):
                    classified = classifier.classify_line(lines, i, strict=strict)
                    if classified and current.item_name:
                        current.set_status(classified[0], classified[1], cell, i)
                        if not current.category:
                            current.category = last_category
                        items.append(current.build())
                        last_category = current.category
                    # A row ends at its color tag, complete or not
                    current = _ItemBuilder()
                    in_recommendation = True
                    continue

                if in_recommendation and not CELL_PREFIX_RE.match(cell):
                    continue
                in_recommendation = False

                text = plain_text(cell)
                if not text:
                    continue
                if not current.item_name:
                    # Bare cell before the item name is the category
                    current.category = text
                elif not current.observation:
                    current.observation = text

        return items


class ColorFallbackStrategy(ExtractionStrategy):
    """
    Every data color tag in the section becomes an item.

    A cross reference earlier on the tag's own line names the item;
    otherwise the nearest preceding one (not crossing an earlier color
    tag) does. Without either a placeholder name is generated.
    """

    STRATEGY_NAME = "color_fallback"

    LOOKBEHIND = 8

    def _name_from_own_line(self, builder: _ItemBuilder, line: str) -> bool:
        """Fill the builder from the cells before the color tag."""
        cells = split_cells(line[:max(classifier.color_tag_start(line), 0)])
        for k in range(len(cells) - 1, -1, -1):
            name = classifier.find_xref(cells[k])
            if not name:
                continue
            builder.item_name = name
            builder.observation = next(
                (text for text in map(plain_text, cells[k + 1:]) if text), '')
            builder.category = next(
                (text for text in map(plain_text, reversed(cells[:k])) if text), '')
            return True
        return False

    def _name_from_previous_lines(self, builder: _ItemBuilder, lines: Sequence[str],
                                  index: int, window_start: int) -> bool:
        name_index = -1
        for j in range(index - 1, window_start - 1, -1):
            name = classifier.find_xref(lines[j])
            if name:
                builder.item_name = name
                name_index = j
                break
        if name_index < 0:
            return False

        for j in range(name_index + 1, index):
            text = plain_text(lines[j])
            if text:
                builder.observation = text
                break
        for j in range(name_index - 1, window_start - 1, -1):
            text = plain_text(lines[j])
            if text and CELL_PREFIX_RE.match(lines[j].strip()):
                builder.category = text
                break
        return True

    def extract(self, section: Section) -> List[Item]:
        lines = section.document.lines
        strict = not section.degraded
        items: List[Item] = []
        placeholders: Dict[Status, int] = {}

        for i in range(section.start, section.end):
            if not classifier.find_color(lines[i]):
                continue
            classified = classifier.classify_line(lines, i, strict=strict)
            if classified is None:
                continue
            status, color = classified

            window_start = max(section.start, i - self.LOOKBEHIND)
            for j in range(i - 1, window_start - 1, -1):
                if classifier.find_color(lines[j]) or classifier.is_item_marker(lines[j]):
                    window_start = j + 1
                    break

            builder = _ItemBuilder()
            if not self._name_from_own_line(builder, lines[i]) \
                    and not self._name_from_previous_lines(builder, lines, i, window_start):
                placeholders[status] = placeholders.get(status, 0) + 1
                builder.item_name = f"{status.label} Item {placeholders[status]}"

            tag_cell = lines[i][max(classifier.color_tag_start(lines[i]), 0):]
            builder.set_status(status, color, tag_cell, i)
            items.append(builder.build())

        return items


# =============================================================================
# PIPELINE
# =============================================================================

def deduplicate_items(items: List[Item]) -> List[Item]:
    """
    Collapse items sharing (item name, status); the later item wins and
    keeps the position of the first.
    """
    unique: Dict[Tuple[str, Status], Item] = {}
    for item in items:
        unique[item.key] = item
    return list(unique.values())


@dataclass
class ExtractionOutcome:
    """Items produced by the pipeline and the strategy that produced them."""
    items: List[Item] = field(default_factory=list)
    strategy: str = ""
    errors: List[str] = field(default_factory=list)


def first_non_empty(strategies: Sequence[ExtractionStrategy], section: Section) -> ExtractionOutcome:
    """Run strategies in order, returning the first non-empty result."""
    errors: List[str] = []
    for strategy in strategies:
        items = strategy.safe_extract(section)
        errors.extend(strategy.get_errors())
        strategy.clear_errors()
        if items:
            return ExtractionOutcome(items=items, strategy=strategy.STRATEGY_NAME, errors=errors)
        logger.debug(f"{strategy.STRATEGY_NAME} found no items", strategy=strategy.STRATEGY_NAME)
    return ExtractionOutcome(errors=errors)


def default_strategies() -> List[ExtractionStrategy]:
    return [MarkerBlockStrategy(), TableRowStrategy(), ColorFallbackStrategy()]


class ExtractionPipeline:
    """Ordered strategies combined with first-non-empty-wins."""

    def __init__(self, strategies: Optional[Sequence[ExtractionStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def run(self, section: Section) -> ExtractionOutcome:
        outcome = first_non_empty(self.strategies, section)
        raw_count = len(outcome.items)
        outcome.items = deduplicate_items(outcome.items)
        if outcome.strategy:
            logger.info(f"Extracted {len(outcome.items)} items with {outcome.strategy}",
                        strategy=outcome.strategy, raw_count=raw_count,
                        item_count=len(outcome.items))
        else:
            logger.info("No items extracted")
        return outcome
