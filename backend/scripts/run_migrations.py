"""Upgrade the planner database with Alembic once the server accepts connections.

Deploys run this before the planner API starts so the catalog and ledger
tables match the ORM models. After the upgrade the live schema is compared
against the model metadata and a missing table fails the run.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from mcat_planner.config import get_settings
from mcat_planner.db.base import Base
import mcat_planner.db.models  # noqa: F401  registers the tables on Base.metadata

LOGGER = logging.getLogger("mcat_planner.migrations")
DEFAULT_TIMEOUT = int(os.getenv("MCAT_PLANNER_MIGRATION_TIMEOUT", "60"))
DEFAULT_POLL_INTERVAL = float(os.getenv("MCAT_PLANNER_MIGRATION_POLL_INTERVAL", "3"))
URL_PLACEHOLDER = "%(MCAT_PLANNER_DATABASE_URL)s"
SCRIPT_DIR = Path(__file__).resolve().parent
BACKEND_ROOT = SCRIPT_DIR.parent


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upgrade the planner schema once the database is reachable.")
    parser.add_argument(
        "--revision",
        default=os.getenv("MCAT_PLANNER_MIGRATION_REVISION", "head"),
        help="Revision identifier to upgrade to (default: head).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds to wait for the database to become available (default: {DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between readiness probes (default: {DEFAULT_POLL_INTERVAL}).",
    )
    parser.add_argument(
        "--config",
        default=str(BACKEND_ROOT / "alembic.ini"),
        help="Path to alembic.ini configuration file.",
    )
    parser.add_argument(
        "--skip-verify",
        action="store_true",
        help="Do not compare the upgraded schema with the ORM tables.",
    )
    return parser.parse_args(argv)


def get_alembic_config(config_path: str) -> Config:
    config = Config(config_path)
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    return config


def resolve_database_url(config: Config) -> str:
    """Prefer an explicit ``sqlalchemy.url``; otherwise fall back to the planner settings."""
    url = config.get_main_option("sqlalchemy.url")
    if url and url != URL_PLACEHOLDER:
        return url
    env_url = os.getenv("MCAT_PLANNER_DATABASE_URL") or get_settings().database_url
    if not env_url:
        raise RuntimeError("MCAT_PLANNER_DATABASE_URL must be set before running migrations.")
    config.set_main_option("sqlalchemy.url", env_url.replace("%", "%%"))
    return env_url


def wait_for_database(database_url: str, *, timeout: int, poll_interval: float) -> None:
    """Poll until ``SELECT 1`` succeeds; a non-connectivity error aborts immediately."""
    deadline = time.time() + timeout
    engine: Optional[Engine] = None
    last_error: Optional[Exception] = None

    try:
        engine = create_engine(database_url, future=True, pool_pre_ping=True)
        while time.time() < deadline:
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                LOGGER.info("Database is reachable.")
                return
            except OperationalError as exc:
                last_error = exc
                LOGGER.warning("Database not ready yet: %s", exc)
            except SQLAlchemyError as exc:
                last_error = exc
                LOGGER.error("Database error during readiness probe: %s", exc)
                break
            time.sleep(poll_interval)
    finally:
        if engine is not None:
            engine.dispose()

    raise RuntimeError("Database did not become ready in time.") from last_error


def missing_tables(database_url: str) -> List[str]:
    engine = create_engine(database_url, future=True)
    try:
        present = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    return sorted(name for name in Base.metadata.tables if name not in present)


def run_migrations(
    revision: str,
    *,
    timeout: int,
    poll_interval: float,
    config: Optional[Config] = None,
    verify: bool = True,
) -> None:
    config = config or get_alembic_config(str(BACKEND_ROOT / "alembic.ini"))
    database_url = resolve_database_url(config)
    LOGGER.info("Upgrading planner schema to %s (timeout=%ss poll=%ss)", revision, timeout, poll_interval)
    wait_for_database(database_url, timeout=timeout, poll_interval=poll_interval)
    command.upgrade(config, revision)
    if verify:
        absent = missing_tables(database_url)
        if absent:
            raise RuntimeError(f"Schema is missing tables after upgrade: {', '.join(absent)}")
    LOGGER.info("Migrations complete.")


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("MCAT_PLANNER_MIGRATION_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = parse_args(argv)
    try:
        run_migrations(
            args.revision,
            timeout=args.timeout,
            poll_interval=args.poll_interval,
            config=get_alembic_config(args.config),
            verify=not args.skip_verify,
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Migration run failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
