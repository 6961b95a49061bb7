"""
Import a SharePoint list export from a folder on disk.

The folder holds the exported JSON array plus optional documents/ and
photos/ subfolders named after each item's FileLeafRef.

Usage:
    python -m scripts.import_data ./sharepoint-export
    python -m scripts.import_data ./sharepoint-export --mode replace
    python -m scripts.import_data ./sharepoint-export --preview
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from adapters.storage import get_storage_adapter
from core.exceptions import DomainError
from infrastructure.database import close_db, get_db_context
from infrastructure.logging_config import setup_logging
from services.legacy_import import IMPORT_MODES, SharePointImportService, load_export_folder

logger = logging.getLogger(__name__)


async def run(folder: Path, mode: str, preview: bool) -> int:
    export = load_export_folder(folder)
    logger.info("Found %d record(s) in %s", len(export.records), folder)

    try:
        async with get_db_context() as db:
            service = SharePointImportService(db, get_storage_adapter())
            if preview:
                result = await service.preview(export, mode)
                result.pop("article_previews", None)
                print(json.dumps(result, indent=2))
                await db.rollback()
                return 0

            stats = await service.import_export(export, mode)
    finally:
        await close_db()

    print(json.dumps(stats.to_dict(), indent=2))
    for error in stats.errors:
        logger.warning(error)
    return 1 if stats.errors else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import a SharePoint article export.")
    parser.add_argument("folder", type=Path, help="Export folder containing the JSON file")
    parser.add_argument(
        "--mode",
        choices=IMPORT_MODES,
        default="merge",
        help="merge skips existing articles, replace updates them",
    )
    parser.add_argument("--preview", action="store_true", help="Report counts without writing")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.debug else "INFO")
    try:
        return asyncio.run(run(args.folder, args.mode, args.preview))
    except DomainError as e:
        logger.error("Import failed: %s", e.message)
        return 2


if __name__ == "__main__":
    sys.exit(main())
