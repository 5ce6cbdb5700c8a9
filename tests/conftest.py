"""
Shared fixtures: sample health check reports.
"""

import pytest

RED = '#FF0000'
YELLOW = '#FEFE20'
BLUE = '#80E5FF'
GREEN = '#00FF00'
GRAY = '#A6B9BF'

LEGEND_TABLE = """\
[cols="1,3"]
|===
|{set:cellbgcolor:#FF0000}
Changes Required
|{set:cellbgcolor!}
Indicates Changes Required for system stability, subscription compliance, or other reason.

|{set:cellbgcolor:#FEFE20}
Changes Recommended
|{set:cellbgcolor!}
Indicates Changes Recommended to align with recommended practices, but not urgently required

|{set:cellbgcolor:#A6B9BF}
N/A
|{set:cellbgcolor!}
No advise given on line item. For line items which are data-gathering only.

|{set:cellbgcolor:#80E5FF}
Advisory
|{set:cellbgcolor!}
No change required or recommended, but additional information provided.

|{set:cellbgcolor:#00FF00}
No Change
|{set:cellbgcolor!}
No change required. In alignment with recommended practices.

|{set:cellbgcolor:#FFFFFF}
To Be Evaluated
|{set:cellbgcolor!}
Not yet evaluated. Will appear only in draft copies.
|===
"""

TABLE_HEADER = """\
[cols="1,2,2,3", options=header]
|===
|*Category*
|*Item Evaluated*
|*Observed Result*
|*Recommendation*
"""


def marker_block(name, color, observation='', category=''):
    """One ITEM START / ITEM END block."""
    lines = [
        '// ------------------------ITEM START',
        '// ----ITEM SOURCE:  ./content/item.item',
    ]
    if category:
        lines += ['{set:cellbgcolor!}', f'|{category}', '']
    lines += [f'|<<{name}>>', '']
    if observation:
        lines += [f'|{observation}', '']
    lines += [f'|{{set:cellbgcolor:{color}}}', 'Status text', '// ------------------------ITEM END', '']
    return '\n'.join(lines)


def build_report(blocks, preamble='', summary=True, trailer=''):
    """Assemble a report with the given item blocks inside its Summary table."""
    parts = ['= OpenShift Health Check Report', '', preamble, '']
    if summary:
        parts += ['= Summary', '']
    parts += [LEGEND_TABLE, '', TABLE_HEADER, '']
    parts += list(blocks)
    parts += ['|===', '', trailer]
    return '\n'.join(parts)


@pytest.fixture
def make_block():
    return marker_block


@pytest.fixture
def make_report():
    return build_report


@pytest.fixture
def marker_report() -> str:
    """Two marker blocks: one Required, one NoChange."""
    return build_report([
        marker_block('KubeadminUser', RED, 'kubeadmin account still present'),
        marker_block('ClusterVersion', GREEN, 'Cluster runs a supported release'),
    ])


@pytest.fixture
def table_report() -> str:
    """Summary table rows without ITEM markers."""
    return build_report([
        '{set:cellbgcolor!}',
        '|Cluster Config',
        '|<<Cluster Version>>',
        '|Cluster runs a supported release',
        '|{set:cellbgcolor:#00FF00}',
        'No Change',
        '',
        '{set:cellbgcolor!}',
        '|Central Monitoring',
        '|<<Alertmanager Receivers>>',
        '|No receivers configured',
        '|{set:cellbgcolor:#FEFE20}',
        'Changes Recommended',
        '',
        '|<<Prometheus Retention>>',
        '|Default retention in use',
        '|{set:cellbgcolor:#80E5FF}',
        'Advisory',
        '',
        '{set:cellbgcolor!}',
        '|Storage',
        '|<<Default StorageClass>>',
        '|Not required for this cluster',
        '|{set:cellbgcolor:#A6B9BF}',
        'Not Applicable',
    ])


@pytest.fixture
def empty_table_report() -> str:
    """Header row present, zero data rows."""
    return build_report([])


@pytest.fixture
def loose_report() -> str:
    """Color tags in the Summary with no markers and no header row."""
    return '\n'.join([
        '= Health Check',
        '',
        '= Summary',
        '',
        'Findings are listed below.',
        '',
        '|<<Etcd Backup>>',
        '|No backup configured',
        '|{set:cellbgcolor:#FF0000} Changes Required',
        '',
        '|{set:cellbgcolor:#FEFE20} Changes Recommended',
        '',
        '= Details',
        '',
        '|<<Ignored Item>>',
        '|{set:cellbgcolor:#FF0000}',
    ])
