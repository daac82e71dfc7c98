from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from mcat_planner.catalog_loader import CatalogLoadError, load_catalog_file
from mcat_planner.db.session import create_schema, session_scope


logger = logging.getLogger("load_catalog")

DEFAULT_CATALOG = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


def load(path: Path, *, ensure_schema: bool = False) -> Dict[str, int]:
    if ensure_schema:
        create_schema()
    with session_scope() as session:
        counts = load_catalog_file(session, path)
    for sheet, count in counts.items():
        logger.info("%-12s %d rows", sheet, count)
    return counts


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Replace the resource catalog with a JSON export.")
    parser.add_argument("path", nargs="?", default=str(DEFAULT_CATALOG), help="Catalog JSON export.")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before loading (local SQLite databases).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    try:
        load(Path(args.path), ensure_schema=args.create_schema)
    except CatalogLoadError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
