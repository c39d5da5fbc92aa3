#!/usr/bin/env python3
"""
CLI tool to load framework catalogs (frameworks, controls and mappings)
Usage: python -m complygrid.cli.load_frameworks [command] [file]
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from complygrid.database import SessionLocal, create_tables
from complygrid.services.catalog_loader import CatalogValidationError, FrameworkCatalogLoader

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_catalog(file_path: Optional[str] = None) -> bool:
    """Load one catalog file, or every bundled catalog"""
    create_tables()
    db = SessionLocal()

    try:
        loader = FrameworkCatalogLoader(db)

        if file_path:
            path = Path(file_path)
            if not path.exists():
                logger.error(f"Catalog file not found: {path}")
                return False

            counts = loader.load_file(path)
            logger.info(
                f"Successfully loaded {counts['frameworks']} frameworks, "
                f"{counts['controls']} controls and {counts['mappings']} mappings"
            )
        else:
            results = loader.load_all()
            total_controls = sum(counts["controls"] for counts in results.values())
            logger.info(f"Successfully loaded {total_controls} total controls from {len(results)} catalogs")

            for catalog, counts in results.items():
                logger.info(f"  {catalog}: {counts['frameworks']} frameworks, {counts['mappings']} mappings")

        return True

    except CatalogValidationError as e:
        logger.error(f"Invalid catalog: {e}")
        return False
    except Exception as e:
        logger.error(f"Failed to load catalog: {e}")
        return False
    finally:
        db.close()


def show_summary() -> bool:
    """Show summary of loaded frameworks"""
    db = SessionLocal()

    try:
        summary = FrameworkCatalogLoader(db).get_summary()

        if not summary:
            logger.info("No frameworks loaded")
            return True

        logger.info("Framework Summary:")
        logger.info("=" * 60)

        total_controls = 0
        for framework in summary:
            logger.info(f"Framework: {framework['short_name']} ({framework['id']})")
            logger.info(f"  Name: {framework['name']}")
            logger.info(f"  Version: {framework['version']}")
            logger.info(f"  Controls: {framework['control_count']}")
            logger.info(f"  Mappings: {framework['mappings_out']} out, {framework['mappings_in']} in")
            logger.info("")

            total_controls += framework["control_count"]

        logger.info(f"Total Controls: {total_controls}")
        return True

    except Exception as e:
        logger.error(f"Failed to get framework summary: {e}")
        return False
    finally:
        db.close()


def print_usage():
    """Print usage information"""
    print("""
Usage: python -m complygrid.cli.load_frameworks [command] [options]

Commands:
  load [file]     Load a catalog JSON file
                  Without a file, loads every bundled catalog

  summary         Show summary of loaded frameworks

  help            Show this help message

Examples:
  python -m complygrid.cli.load_frameworks load
  python -m complygrid.cli.load_frameworks load ./catalogs/pci-dss.json
  python -m complygrid.cli.load_frameworks summary
""")


def main():
    """Main CLI entry point"""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1].lower()

    if command == "load":
        success = load_catalog(sys.argv[2] if len(sys.argv) > 2 else None)
    elif command == "summary":
        success = show_summary()
    elif command in ("help", "-h", "--help"):
        print_usage()
        return
    else:
        print(f"Unknown command: {command}")
        print_usage()
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
