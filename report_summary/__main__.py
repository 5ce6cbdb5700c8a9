"""Command line entry point: python -m report_summary REPORT.adoc"""

import argparse
import json
import sys

from config_logging import DashboardError
from .assembler import parse_report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Summarize a cluster health check report')
    parser.add_argument('report', help='Path to the .adoc report')
    parser.add_argument('--indent', type=int, default=2, help='JSON indentation')
    parser.add_argument('--details', action='store_true',
                        help='Include score sources and extracted items')

    args = parser.parse_args(argv)

    try:
        summary = parse_report(args.report)
    except DashboardError as e:
        print(json.dumps(e.to_dict(), indent=args.indent))
        return 1

    print(json.dumps(summary.to_dict(include_details=args.details), indent=args.indent))
    return 0


if __name__ == '__main__':
    sys.exit(main())
