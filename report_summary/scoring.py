"""
Category & Score Calculator
===========================
Weighted health scores over extracted items.

    score = sum(weight(status)) / count(items whose status has a weight)

NotApplicable items carry no weight and never enter the denominator.
A category without counted items falls back to an explicit percentage
written in the document; when that is missing too the score stays
undetermined (None) and the assembler substitutes the policy's neutral
default.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from config_logging import get_logger, ValidationError, DEFAULT_NEUTRAL_SCORE
from .models import CategoryScore, Item, RawDocument, ScoreSource, Status, StatusCounts

logger = get_logger('report_summary.scoring')


DEFAULT_WEIGHTS: Dict[Status, Optional[int]] = {
    Status.REQUIRED: 0,
    Status.RECOMMENDED: 50,
    Status.ADVISORY: 80,
    Status.NO_CHANGE: 100,
    Status.NOT_APPLICABLE: None,  # excluded
}


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Status weights and the neutral category default.

    A weight of None excludes the status from scoring.
    """
    weights: Dict[Status, Optional[int]] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    neutral_category_score: int = DEFAULT_NEUTRAL_SCORE

    def __post_init__(self):
        for status in Status:
            if status not in self.weights:
                raise ValidationError(f"Missing weight for status {status.value}", field='weights')
            weight = self.weights[status]
            if weight is not None and not 0 <= weight <= 100:
                raise ValidationError(f"Weight for {status.value} must be between 0 and 100",
                                      field='weights')
        if not 0 <= self.neutral_category_score <= 100:
            raise ValidationError("Neutral category score must be between 0 and 100",
                                  field='neutral_category_score')

    def weight(self, status: Status) -> Optional[int]:
        return self.weights.get(status)

    def is_counted(self, status: Status) -> bool:
        return self.weights.get(status) is not None


DEFAULT_POLICY = ScoringPolicy()


@dataclass(frozen=True)
class ReportCategory:
    """One of the five fixed reporting categories."""
    key: str
    name: str          # Used in generated descriptions
    heading: str       # Heading text as written in reports
    aliases: Tuple[str, ...] = ()


REPORT_CATEGORIES: Tuple[ReportCategory, ...] = (
    ReportCategory(
        key='infra',
        name='Infrastructure',
        heading='Infrastructure Setup',
        aliases=('infrastructure', 'infrastructure setup', 'infra', 'cluster config',
                 'cluster configuration', 'networking', 'network', 'storage', 'nodes',
                 'op-ready', 'operational readiness'),
    ),
    ReportCategory(
        key='governance',
        name='Policy Governance',
        heading='Policy Governance',
        aliases=('policy governance', 'governance', 'policy', 'rbac', 'access control'),
    ),
    ReportCategory(
        key='compliance',
        name='Compliance',
        heading='Compliance Benchmarking',
        aliases=('compliance', 'compliance benchmarking', 'benchmarking', 'security'),
    ),
    ReportCategory(
        key='monitoring',
        name='Monitoring',
        heading='Central Monitoring',
        aliases=('monitoring', 'central monitoring', 'logging', 'alerting', 'observability'),
    ),
    ReportCategory(
        key='build_security',
        name='Build/Deploy Security',
        heading='Build/Deploy Security',
        aliases=('build/deploy security', 'build security', 'deploy security',
                 'build/deploy', 'applications', 'application', 'ci/cd'),
    ),
)

# Normalized category cell text -> category key
CATEGORY_BUCKETS: Dict[str, str] = {
    alias: category.key for category in REPORT_CATEGORIES for alias in category.aliases
}

OVERALL_SCORE_PATTERNS = (
    re.compile(r'Overall\s+Cluster\s+Health:\s+(\d+(?:\.\d+)?)%'),
    re.compile(r'Overall Health Score.*?(\d+(?:\.\d+)?)%'),
)
PERCENT_RE = re.compile(r'(\d{1,3})%')


def normalize_category(name: str) -> str:
    return ' '.join((name or '').lower().replace('*', '').split())


def bucket_for(category: str) -> Optional[str]:
    """Map an item's category cell to a reporting category key."""
    return CATEGORY_BUCKETS.get(normalize_category(category))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def weighted_score(counts: StatusCounts, policy: ScoringPolicy = DEFAULT_POLICY) -> Optional[float]:
    """Weighted average of counted statuses; None when nothing is counted."""
    counted = 0
    weighted_sum = 0
    for status in Status:
        weight = policy.weight(status)
        if weight is None:
            continue
        n = counts.get(status)
        counted += n
        weighted_sum += weight * n
    if counted == 0:
        return None
    return clamp(weighted_sum / counted)


def explicit_overall_score(document: RawDocument) -> Optional[float]:
    """Overall score stated in the document, if any."""
    for pattern in OVERALL_SCORE_PATTERNS:
        for line in document.lines:
            match = pattern.search(line)
            if match:
                return clamp(float(match.group(1)))
    return None


def explicit_category_score(document: RawDocument, category: ReportCategory) -> Optional[int]:
    """
    Percentage written next to a category heading.

    Tries ``*Heading*: NN%`` first, then any line naming the heading
    with a percentage.
    """
    exact = re.compile(r'\*%s\*:\s+(\d+)%%' % re.escape(category.heading))
    for line in document.lines:
        match = exact.search(line)
        if match:
            return int(clamp(int(match.group(1))))

    heading = category.heading.lower()
    for line in document.lines:
        if heading in line.lower():
            match = PERCENT_RE.search(line)
            if match:
                return int(clamp(int(match.group(1))))
    return None


class ScoreCalculator:
    """Computes overall and per-category scores for one document."""

    def __init__(self, policy: ScoringPolicy = DEFAULT_POLICY):
        self.policy = policy

    def overall(self, items: Sequence[Item], document: RawDocument) -> Tuple[float, ScoreSource]:
        score = weighted_score(StatusCounts.from_items(list(items)), self.policy)
        if score is not None:
            return score, ScoreSource.ITEMS

        stated = explicit_overall_score(document)
        if stated is not None:
            logger.debug("Overall score taken from document", score=stated)
            return stated, ScoreSource.DOCUMENT

        return 0.0, ScoreSource.DEFAULT

    def categories(self, items: Sequence[Item], document: RawDocument) -> Dict[str, CategoryScore]:
        grouped: Dict[str, List[Item]] = {c.key: [] for c in REPORT_CATEGORIES}
        for item in items:
            key = bucket_for(item.category)
            if key is not None:
                grouped[key].append(item)

        results: Dict[str, CategoryScore] = {}
        for category in REPORT_CATEGORIES:
            counts = StatusCounts.from_items(grouped[category.key])
            counted = sum(counts.get(s) for s in Status if self.policy.is_counted(s))
            result = CategoryScore(key=category.key, name=category.name, counted_items=counted)

            score = weighted_score(counts, self.policy)
            if score is not None:
                result.score = int(round(score))
                result.source = ScoreSource.ITEMS
            else:
                stated = explicit_category_score(document, category)
                if stated is not None:
                    result.score = stated
                    result.source = ScoreSource.DOCUMENT
                    logger.debug(f"{category.name} score taken from document",
                                 category=category.key, score=stated)
            results[category.key] = result
        return results
