from datetime import date
from unittest.mock import Mock

import pytest

import main
from calsync.errors import ReconciliationError
from calsync.models import ReconciliationAction, ReleaseEvent


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("RELEASES_DIR", str(tmp_path / "releases"))
    monkeypatch.setenv("CALLS_DIR", str(tmp_path / "calls"))
    monkeypatch.setenv("RELEASES_CALENDAR_ID", "releases-cal")
    monkeypatch.setenv("CALLS_CALENDAR_ID", "calls-cal")
    (tmp_path / "releases").mkdir()
    (tmp_path / "calls").mkdir()
    return tmp_path


def test_check_format_passes_on_valid_files(env):
    (env / "releases" / "a.yaml").write_text("title: A\ndate: 2025-06-01\n", encoding="utf-8")

    assert main.main(["check-format"]) == 0


def test_check_format_fails_on_invalid_files(env):
    (env / "calls" / "bad.yaml").write_text("title: Call\n", encoding="utf-8")

    assert main.main(["check-format"]) == 1


def test_start_and_end_go_together():
    with pytest.raises(SystemExit):
        main.parse_args(["reconcile", "--start", "2025-06-01"])


def test_start_after_end_is_rejected():
    with pytest.raises(SystemExit):
        main.parse_args(["reconcile", "--start", "2025-07-01", "--end", "2025-06-01"])


@pytest.fixture
def engine(monkeypatch):
    monkeypatch.setattr(main, "build_service", Mock())
    instance = Mock(executed=0)
    monkeypatch.setattr(main, "CalendarReconciliation", Mock(return_value=instance))
    return instance


def test_reconcile_explicit_window_executes(env, engine):
    engine.reconcile_window.return_value = [
        ReconciliationAction.create(ReleaseEvent("A", date(2025, 6, 1)), "releases-cal")
    ]

    assert main.main(["reconcile", "--start", "2025-06-01", "--end", "2025-06-30"]) == 0
    engine.reconcile_window.assert_called_once_with(date(2025, 6, 1), date(2025, 6, 30))


def test_reconcile_explicit_window_dry_run(env, engine):
    engine.reconcile_both.return_value = []

    assert main.main(["reconcile", "--dry-run", "--start", "2025-06-01", "--end", "2025-06-30"]) == 0
    engine.reconcile_both.assert_called_once_with(date(2025, 6, 1), date(2025, 6, 30), dry_run=True)
    engine.reconcile_window.assert_not_called()


def test_reconcile_default_window(env, engine):
    engine.reconcile.return_value = []

    assert main.main(["reconcile", "--dry-run"]) == 0
    engine.reconcile.assert_called_once_with(dry_run=True)


def test_reconcile_failure_exits_non_zero(env, engine):
    engine.reconcile.side_effect = ReconciliationError("Failed to reconcile calls", failures={"calls": Exception()})

    assert main.main(["reconcile"]) == 1


def test_summary_reports_planned_and_executed(env, engine, caplog):
    engine.reconcile.return_value = [
        ReconciliationAction.create(ReleaseEvent("A", date(2025, 6, 1)), "releases-cal"),
        ReconciliationAction.create(ReleaseEvent("B", date(2025, 6, 2)), "releases-cal"),
    ]
    engine.executed = 1

    with caplog.at_level("INFO"):
        assert main.main(["reconcile"]) == 0

    assert "Planned 2 action(s), executed 1: 2 create" in caplog.text
