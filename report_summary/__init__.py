"""Report Summary Module

Extraction and scoring engine for cluster health check reports.

Components:
- loader: reads a report into lines
- sections: locates the Summary section
- classifier: color tag to status mapping, legend detection
- strategies: ordered item extraction strategies
- scoring: weighted category and overall scores
- descriptions: category descriptions
- metadata: cluster and customer names
- assembler: builds the ReportSummary
- routes: Flask blueprint with the parse endpoint
"""

from .models import (
    Status,
    ScoreSource,
    RawDocument,
    Section,
    Item,
    StatusCounts,
    CategoryScore,
    ReportSummary,
)
from .assembler import ReportParser, parse_report, parse_text
from .scoring import ScoringPolicy

__version__ = "1.0.0"
__all__ = [
    'Status',
    'ScoreSource',
    'RawDocument',
    'Section',
    'Item',
    'StatusCounts',
    'CategoryScore',
    'ReportSummary',
    'ReportParser',
    'ScoringPolicy',
    'parse_report',
    'parse_text',
]
