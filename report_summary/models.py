"""
Report Summary Models
=====================
Data classes for the health report engine: input lines, the located
Summary section, extracted items, and the assembled summary.

All values are created fresh for each parse and never shared between
requests.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any
from enum import Enum


class Status(Enum):
    """Evaluation result of a single health check item."""
    REQUIRED = "Required"
    RECOMMENDED = "Recommended"
    ADVISORY = "Advisory"
    NO_CHANGE = "NoChange"
    NOT_APPLICABLE = "NotApplicable"

    @property
    def label(self) -> str:
        """Human readable label, used for placeholder item names."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    Status.REQUIRED: "Required",
    Status.RECOMMENDED: "Recommended",
    Status.ADVISORY: "Advisory",
    Status.NO_CHANGE: "No Change",
    Status.NOT_APPLICABLE: "Not Applicable",
}


class ScoreSource(Enum):
    """Where a score value came from."""
    ITEMS = "items"           # Computed from extracted items
    DOCUMENT = "document"     # Explicit percentage written in the document
    DEFAULT = "default"       # Nothing determinable, fallback value used


@dataclass(frozen=True)
class RawDocument:
    """
    Ordered, immutable sequence of report lines.

    Attributes:
        lines: Document lines without line terminators
        source: Where the lines came from (file name or '<text>')
    """
    lines: Tuple[str, ...] = ()
    source: str = "<text>"

    @classmethod
    def from_text(cls, text: str, source: str = "<text>") -> 'RawDocument':
        """Split text into lines."""
        return cls(lines=tuple((text or "").splitlines()), source=source)

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class Section:
    """
    Contiguous line range [start, end) of a document.

    A degraded section covers the whole document because no Summary
    heading was found.
    """
    document: RawDocument
    start: int = 0
    end: int = 0
    degraded: bool = False

    @property
    def lines(self) -> Tuple[str, ...]:
        return self.document.lines[self.start:self.end]

    def __len__(self) -> int:
        return max(0, self.end - self.start)


@dataclass
class Item:
    """
    One evaluated check result.

    Attributes:
        category: Category cell text as written in the report
        item_name: Name taken from the <<name>> cross reference
        observation: Observed result text
        status: Resolved status
        color_code: Raw color tag, kept for diagnostics
        recommendation: Text accompanying the color tag
        line_number: 0-based line of the color tag
    """
    item_name: str
    status: Status
    category: str = ""
    observation: str = ""
    color_code: str = ""
    recommendation: str = ""
    line_number: int = -1

    @property
    def key(self) -> Tuple[str, Status]:
        """Deduplication key."""
        return (self.item_name, self.status)

    def format_entry(self) -> str:
        """Render as a summary list entry."""
        if self.observation:
            return f"{self.item_name}: {self.observation}"
        return self.item_name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'category': self.category,
            'itemName': self.item_name,
            'observation': self.observation,
            'status': self.status.value,
            'colorCode': self.color_code,
            'recommendation': self.recommendation,
            'lineNumber': self.line_number,
        }


@dataclass
class StatusCounts:
    """Tally of statuses, used to compute weighted scores."""
    counts: Dict[Status, int] = field(default_factory=lambda: {s: 0 for s in Status})

    def add(self, status: Status, amount: int = 1):
        self.counts[status] = self.counts.get(status, 0) + amount

    def get(self, status: Status) -> int:
        return self.counts.get(status, 0)

    @classmethod
    def from_items(cls, items: List[Item]) -> 'StatusCounts':
        tally = cls()
        for item in items:
            tally.add(item.status)
        return tally


@dataclass
class CategoryScore:
    """
    Score and description for one of the fixed reporting categories.

    ``score`` is None when it could not be determined; the assembler
    substitutes the neutral default and records ``source`` accordingly.
    """
    key: str
    name: str
    score: Optional[int] = None
    source: ScoreSource = ScoreSource.DEFAULT
    description: str = ""
    description_source: str = "generated"  # generated or authored
    counted_items: int = 0


@dataclass
class ReportSummary:
    """
    The engine's only output.

    Category scores are keyed by category key (infra, governance,
    compliance, monitoring, build_security).
    """
    cluster_name: str = ""
    customer_name: str = ""
    overall_score: float = 0.0
    overall_score_source: ScoreSource = ScoreSource.DEFAULT
    categories: Dict[str, CategoryScore] = field(default_factory=dict)
    items_required: List[str] = field(default_factory=list)
    items_recommended: List[str] = field(default_factory=list)
    items_advisory: List[str] = field(default_factory=list)
    no_change_count: int = 0
    not_applicable_count: int = 0
    degraded: bool = False
    strategy: str = ""
    extraction_errors: List[str] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)

    def _score(self, key: str) -> int:
        category = self.categories.get(key)
        return category.score if category and category.score is not None else 0

    def _description(self, key: str) -> str:
        category = self.categories.get(key)
        return category.description if category else ""

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        """Convert to the wire format."""
        result = {
            'clusterName': self.cluster_name,
            'customerName': self.customer_name,
            'overallScore': self.overall_score,
            'scoreInfra': self._score('infra'),
            'scoreGovernance': self._score('governance'),
            'scoreCompliance': self._score('compliance'),
            'scoreMonitoring': self._score('monitoring'),
            'scoreBuildSecurity': self._score('build_security'),
            'infraDescription': self._description('infra'),
            'governanceDescription': self._description('governance'),
            'complianceDescription': self._description('compliance'),
            'monitoringDescription': self._description('monitoring'),
            'buildSecurityDescription': self._description('build_security'),
            'itemsRequired': list(self.items_required),
            'itemsRecommended': list(self.items_recommended),
            'itemsAdvisory': list(self.items_advisory),
            'noChangeCount': self.no_change_count,
            'notApplicableCount': self.not_applicable_count,
        }
        if include_details:
            result['details'] = {
                'degraded': self.degraded,
                'strategy': self.strategy,
                'overallScoreSource': self.overall_score_source.value,
                'categoryScoreSources': {
                    key: cat.source.value for key, cat in self.categories.items()
                },
                'descriptionSources': {
                    key: cat.description_source for key, cat in self.categories.items()
                },
                'categoryCountedItems': {
                    key: cat.counted_items for key, cat in self.categories.items()
                },
                'extractionErrors': list(self.extraction_errors),
                'items': [item.to_dict() for item in self.items],
            }
        return result
