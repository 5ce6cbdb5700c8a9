"""
Tests for the Section Locator
=============================
"""

from report_summary.models import RawDocument
from report_summary.sections import locate_summary, is_summary_heading, parse_heading


def _doc(*lines):
    return RawDocument(lines=tuple(lines))


class TestHeadings:
    """Heading recognition."""

    def test_parse_heading_level(self):
        assert parse_heading('== Networking') == (2, 'Networking')

    def test_table_delimiter_is_not_heading(self):
        assert parse_heading('|===') is None
        assert parse_heading('====') is None

    def test_summary_heading_must_be_exact(self):
        assert is_summary_heading('= Summary')
        assert is_summary_heading('  = Summary  ')
        assert not is_summary_heading('= Summary of findings')
        assert not is_summary_heading('Summary')


class TestLocateSummary:
    """Summary section boundaries."""

    def test_section_ends_at_next_top_level_heading(self):
        doc = _doc('= Report', 'intro', '= Summary', 'a', 'b', '= Details', 'c')
        section = locate_summary(doc)
        assert (section.start, section.end) == (2, 5)
        assert not section.degraded
        assert section.lines == ('= Summary', 'a', 'b')

    def test_subsections_stay_inside(self):
        doc = _doc('= Summary', '== Key', 'a', '= Next')
        section = locate_summary(doc)
        assert section.end == 3

    def test_runs_to_end_of_document(self):
        doc = _doc('= Summary', 'a', 'b')
        section = locate_summary(doc)
        assert (section.start, section.end) == (0, 3)

    def test_repeated_summary_heading_does_not_end_section(self):
        doc = _doc('= Summary', 'a', '= Summary', 'b', '= End')
        assert locate_summary(doc).end == 4

    def test_missing_summary_is_degraded_whole_document(self):
        doc = _doc('= Report', 'a', 'b')
        section = locate_summary(doc)
        assert section.degraded
        assert (section.start, section.end) == (0, 3)

    def test_empty_document(self):
        section = locate_summary(_doc())
        assert section.degraded
        assert len(section) == 0
