#!/usr/bin/env python
"""
Reconcile user roles with department manager assignments.

    python sync_roles.py            # repair mismatches
    python sync_roles.py --dry-run  # report only

Meant for cron or a one-off after manual data fixes. Exits 1 when the
store is inconsistent in dry-run mode or when a repair failed.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(env_path, override=True)

from tasktracker.core.db import async_session_maker, close_db  # noqa: E402
from tasktracker.core.exceptions import StorageError  # noqa: E402
from tasktracker.core.logging import configure_logging, get_logger  # noqa: E402
from tasktracker.services.role_sync_service import RoleSyncService  # noqa: E402

logger = get_logger("sync_roles")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="only validate and print the consistency report",
    )
    return parser.parse_args(argv)


async def run(dry_run: bool) -> int:
    service = RoleSyncService(async_session_maker)
    try:
        if dry_run:
            report = await service.validate_role_consistency()
            print(report.model_dump_json(indent=2))
            return 0 if report.is_consistent else 1

        result = await service.sync_user_roles_with_departments()
        print(result.model_dump_json(indent=2))
        return 1 if result.failed else 0
    except StorageError as exc:
        logger.error("sync_roles_aborted", error=exc.message)
        return 2
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(stream=sys.stderr)
    return asyncio.run(run(args.dry_run))


if __name__ == "__main__":
    sys.exit(main())
