#!/usr/bin/env python3
"""
CLI tool to run gap analysis without the API server
Usage: python -m complygrid.cli.gap_analysis {run,pairwise} ...
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from complygrid.database import SessionLocal
from complygrid.services.errors import FrameworkNotFoundError
from complygrid.services.gap_analysis import get_gap_analysis_service
from complygrid.services.gap_analysis.export import generate_gap_csv

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="complygrid-gap-analysis",
        description="Run cross-framework gap analysis against the configured database",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Multi-framework gap analysis for an organization")
    run.add_argument("--org", required=True, help="Organization ID")
    run.add_argument("--frameworks", required=True, help="Comma-separated framework IDs")
    run.add_argument("--format", choices=["json", "csv"], default="json", help="Output format")

    pairwise = subparsers.add_parser("pairwise", help="Bidirectional coverage between two frameworks")
    pairwise.add_argument("--source", required=True, help="Source framework ID")
    pairwise.add_argument("--target", required=True, help="Target framework ID")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    db = SessionLocal()
    try:
        service = get_gap_analysis_service(db)

        if args.command == "run":
            framework_ids = [fid.strip() for fid in args.frameworks.split(",") if fid.strip()]
            if not framework_ids:
                logger.error("At least one framework ID is required")
                return 2

            result = service.analyze(args.org, framework_ids)
            if args.format == "csv":
                sys.stdout.write(generate_gap_csv(result))
            else:
                print(result.model_dump_json(indent=2, exclude_none=True))
            return 0

        if args.source == args.target:
            logger.error("source and target must be different frameworks")
            return 2

        result = service.compare(args.source, args.target)
        print(json.dumps(result.model_dump(mode="json", exclude_none=True), indent=2))
        return 0

    except FrameworkNotFoundError as e:
        logger.error(e.message)
        return 1
    except Exception as e:
        logger.error(f"Gap analysis failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
