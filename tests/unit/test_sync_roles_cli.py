import json
import sys

import pytest
from structlog.testing import capture_logs

import sync_roles
from tasktracker.models import UserRole


@pytest.fixture
def cli(monkeypatch, session_maker):
    async def no_close() -> None:
        return None

    monkeypatch.setattr(sync_roles, "async_session_maker", session_maker)
    monkeypatch.setattr(sync_roles, "close_db", no_close)
    return sync_roles


@pytest.mark.asyncio
async def test_dry_run_reports_without_repairing(cli, make_user, async_db_session, capsys):
    await make_user("Stale", role=UserRole.MANAGER)
    await async_db_session.commit()

    with capture_logs() as logs:
        exit_code = await cli.run(dry_run=True)
    report = json.loads(capsys.readouterr().out)

    assert exit_code == 1
    assert len(report["users_without_departments"]) == 1
    assert any(entry["event"] == "role_consistency_validated" for entry in logs)

    # still inconsistent: dry run wrote nothing
    with capture_logs():
        assert await cli.run(dry_run=True) == 1


@pytest.mark.asyncio
async def test_sync_repairs_and_exits_cleanly(cli, make_user, async_db_session, capsys):
    await make_user("Stale", role=UserRole.MANAGER)
    await async_db_session.commit()

    with capture_logs() as logs:
        exit_code = await cli.run(dry_run=False)
    result = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert result == {"demoted": 1, "promoted": 0, "failed": 0}
    assert any(entry["event"] == "role_sync_completed" for entry in logs)


def test_main_sends_logs_to_stderr(monkeypatch):
    streams = []

    async def fake_run(dry_run: bool) -> int:
        return 0 if dry_run else 1

    monkeypatch.setattr(sync_roles, "configure_logging", lambda stream=None: streams.append(stream))
    monkeypatch.setattr(sync_roles, "run", fake_run)

    assert sync_roles.main(["--dry-run"]) == 0
    assert streams == [sys.stderr]


def test_parse_args():
    assert sync_roles.parse_args(["--dry-run"]).dry_run is True
    assert sync_roles.parse_args([]).dry_run is False
