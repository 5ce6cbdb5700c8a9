"""
Summary Assembler
=================
Runs the engine end to end and merges component outputs into a
ReportSummary.

    document -> Summary section -> items -> scores -> descriptions
             -> metadata -> ReportSummary

``parse_report`` never raises for readable text; missing data resolves
to documented fallbacks, recorded in the summary's score sources.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from config_logging import get_logger
from .models import RawDocument, ReportSummary, ScoreSource, Status, Item
from .loader import load_document, load_text
from .sections import locate_summary
from .strategies import ExtractionPipeline, ExtractionStrategy, default_strategies
from .scoring import DEFAULT_POLICY, REPORT_CATEGORIES, ScoreCalculator, ScoringPolicy, clamp
from .descriptions import extract_authored_description, generate_description
from .metadata import extract_cluster_name, extract_customer_name

logger = get_logger('report_summary')


class ReportParser:
    """
    Converts a health check report into a ReportSummary.

    Holds configuration only; every parse works on its own values, so a
    parser can be shared between threads.
    """

    def __init__(self, policy: ScoringPolicy = DEFAULT_POLICY,
                 strategy_factory=default_strategies):
        self.policy = policy
        self.strategy_factory = strategy_factory

    def parse(self, document: RawDocument) -> ReportSummary:
        with logger.log_operation('parse_report', source=document.source,
                                  line_count=len(document)):
            return self._parse(document)

    def _parse(self, document: RawDocument) -> ReportSummary:
        section = locate_summary(document)

        strategies: Sequence[ExtractionStrategy] = self.strategy_factory()
        outcome = ExtractionPipeline(strategies).run(section)
        items = outcome.items

        summary = ReportSummary(degraded=section.degraded, strategy=outcome.strategy,
                                extraction_errors=outcome.errors, items=items)
        self._assign_items(summary, items)

        calculator = ScoreCalculator(self.policy)
        overall, source = calculator.overall(items, document)
        summary.overall_score = float(clamp(overall))
        summary.overall_score_source = source
        summary.categories = calculator.categories(items, document)

        self._fill_defaults(summary, document)

        summary.cluster_name = extract_cluster_name(document.lines)
        summary.customer_name = extract_customer_name(document.lines)

        logger.debug("Summary assembled",
                     required=len(summary.items_required),
                     recommended=len(summary.items_recommended),
                     advisory=len(summary.items_advisory),
                     no_change=summary.no_change_count,
                     not_applicable=summary.not_applicable_count,
                     overall_score=summary.overall_score)
        return summary

    @staticmethod
    def _assign_items(summary: ReportSummary, items: Sequence[Item]):
        for item in items:
            if item.status == Status.REQUIRED:
                summary.items_required.append(item.format_entry())
            elif item.status == Status.RECOMMENDED:
                summary.items_recommended.append(item.format_entry())
            elif item.status == Status.ADVISORY:
                summary.items_advisory.append(item.format_entry())
            elif item.status == Status.NO_CHANGE:
                summary.no_change_count += 1
            elif item.status == Status.NOT_APPLICABLE:
                summary.not_applicable_count += 1

    def _fill_defaults(self, summary: ReportSummary, document: RawDocument):
        """Neutral scores for undetermined categories, then descriptions."""
        for category in REPORT_CATEGORIES:
            result = summary.categories[category.key]
            if result.score is None:
                result.score = self.policy.neutral_category_score
                result.source = ScoreSource.DEFAULT
                logger.debug(f"{category.name} score not determinable, using neutral default",
                             category=category.key, score=result.score)
            result.score = int(clamp(result.score))

            authored = extract_authored_description(document, category)
            if authored:
                result.description = authored
                result.description_source = 'authored'
            else:
                logger.debug(f"No authored description for {category.name}",
                             category=category.key)
                result.description = generate_description(category.name, result.score)
                result.description_source = 'generated'


def parse_report(source: Union[RawDocument, str, Path],
                 policy: Optional[ScoringPolicy] = None) -> ReportSummary:
    """
    Parse a report.

    Args:
        source: A RawDocument, or a path to a report file
        policy: Scoring weights and neutral default

    Raises:
        InputAccessError: ``source`` is a path that cannot be read
    """
    if isinstance(source, RawDocument):
        document = source
    else:
        document = load_document(source)
    return ReportParser(policy or DEFAULT_POLICY).parse(document)


def parse_text(text: str, policy: Optional[ScoringPolicy] = None,
               source: str = "<text>") -> ReportSummary:
    """Parse report text that is already in memory."""
    return ReportParser(policy or DEFAULT_POLICY).parse(load_text(text, source=source))
