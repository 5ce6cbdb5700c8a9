"""
Metadata Extractors
===================
Best-effort cluster and customer names. Each extractor returns its
fallback literal when nothing matches.
"""

import re
from typing import Optional, Sequence

from config_logging import get_logger

logger = get_logger('report_summary.metadata')

DEFAULT_CLUSTER_NAME = "OpenShift Cluster"
DEFAULT_CUSTOMER_NAME = "Your Company"

CLUSTER_ATTRIBUTE_RE = re.compile(r'^:cluster[-_]?name:\s*(\S.*?)\s*$', re.IGNORECASE)
CUSTOMER_ATTRIBUTE_RE = re.compile(r'^:customer(?:[-_]?name)?:\s*(\S.*?)\s*$', re.IGNORECASE)

QUOTED_RE = re.compile(r'(?<![A-Za-z])["\'`]([^"\'`]+)["\'`]')
CLUSTER_WORD_RE = re.compile(r'\bcluster\s+([a-zA-Z0-9_-]+)')

CUSTOMER_FOR_RE = re.compile(r"conducted\b.*?\bfor\s+(.+?)['’]s\b")
CUSTOMER_LOOSE_RE = re.compile(r"conducted.*?([A-Za-z0-9_\s]+)['’]s")

# Words that follow "cluster" in prose and are not names
CLUSTER_STOPWORDS = {
    'a', 'an', 'and', 'are', 'as', 'at', 'by', 'can', 'config', 'configuration',
    'for', 'from', 'has', 'have', 'health', 'in', 'is', 'it', 'named', 'nodes',
    'of', 'on', 'operators', 'or', 'should', 'that', 'the', 'to', 'version',
    'was', 'were', 'which', 'will', 'with',
}


def _attribute(lines: Sequence[str], pattern: re.Pattern) -> Optional[str]:
    for line in lines:
        match = pattern.match(line.strip())
        if match:
            return match.group(1)
    return None


def find_cluster_name(lines: Sequence[str]) -> Optional[str]:
    """Cluster name from an attribute, a quoted token or the word after "cluster"."""
    value = _attribute(lines, CLUSTER_ATTRIBUTE_RE)
    if value:
        return value

    for line in lines:
        if 'cluster' not in line or line.strip().startswith('//'):
            continue
        quoted = QUOTED_RE.search(line)
        if quoted and quoted.group(1).strip():
            return quoted.group(1).strip()
        for match in CLUSTER_WORD_RE.finditer(line):
            candidate = match.group(1)
            if len(candidate) > 1 and candidate.lower() not in CLUSTER_STOPWORDS:
                return candidate
    return None


def find_customer_name(lines: Sequence[str]) -> Optional[str]:
    """Customer name from an attribute or "conducted ... for <Name>'s" prose."""
    value = _attribute(lines, CUSTOMER_ATTRIBUTE_RE)
    if value:
        return value

    for line in lines:
        if 'conducted' not in line:
            continue
        match = CUSTOMER_FOR_RE.search(line)
        if match and match.group(1).strip():
            return match.group(1).strip()
        if 'health check' in line:
            match = CUSTOMER_LOOSE_RE.search(line)
            if match and match.group(1).strip():
                return match.group(1).strip()
    return None


def extract_cluster_name(lines: Sequence[str]) -> str:
    name = find_cluster_name(lines)
    if name is None:
        logger.debug("No cluster name found, using default")
        return DEFAULT_CLUSTER_NAME
    return name


def extract_customer_name(lines: Sequence[str]) -> str:
    name = find_customer_name(lines)
    if name is None:
        logger.debug("No customer name found, using default")
        return DEFAULT_CUSTOMER_NAME
    return name
