from __future__ import annotations

import types

import pytest
from sqlalchemy import create_engine, inspect

from scripts import run_migrations as runner


def _config(tmp_path, monkeypatch):  # type: ignore[no-untyped-def]
    monkeypatch.setenv("MCAT_PLANNER_DATABASE_URL", f"sqlite:///{tmp_path / 'planner.sqlite'}")
    return runner.get_alembic_config(str(runner.BACKEND_ROOT / "alembic.ini"))


def test_resolve_database_url_prefers_env(tmp_path, monkeypatch) -> None:
    config = _config(tmp_path, monkeypatch)
    url = runner.resolve_database_url(config)
    assert url.endswith("planner.sqlite")
    assert config.get_main_option("sqlalchemy.url") == url


def test_resolve_database_url_keeps_explicit_url(tmp_path, monkeypatch) -> None:
    config = _config(tmp_path, monkeypatch)
    config.set_main_option("sqlalchemy.url", "sqlite:///explicit.sqlite")
    assert runner.resolve_database_url(config) == "sqlite:///explicit.sqlite"


def test_resolve_database_url_requires_configuration(tmp_path, monkeypatch) -> None:
    config = _config(tmp_path, monkeypatch)
    monkeypatch.delenv("MCAT_PLANNER_DATABASE_URL")
    monkeypatch.setattr(runner, "get_settings", lambda: types.SimpleNamespace(database_url=None))
    with pytest.raises(RuntimeError):
        runner.resolve_database_url(config)


def test_wait_for_database_succeeds_with_sqlite(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'ready.sqlite'}"
    runner.wait_for_database(url, timeout=2, poll_interval=0.1)


def test_wait_for_database_times_out(monkeypatch) -> None:
    class DummyEngine:
        def connect(self) -> types.SimpleNamespace:
            raise runner.OperationalError("SELECT 1", {}, Exception("boom"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: DummyEngine())
    with pytest.raises(RuntimeError):
        runner.wait_for_database("postgresql://example", timeout=0, poll_interval=0)


def test_run_migrations_invokes_upgrade(tmp_path, monkeypatch) -> None:
    config = _config(tmp_path, monkeypatch)
    recorded: dict[str, object] = {}

    def fake_wait(url: str, *, timeout: int, poll_interval: float) -> None:
        recorded["wait"] = (url, timeout, poll_interval)

    def fake_upgrade(cfg, revision: str) -> None:
        recorded["revision"] = revision
        recorded["script_location"] = cfg.get_main_option("script_location")

    monkeypatch.setattr(runner, "wait_for_database", fake_wait)
    monkeypatch.setattr(runner.command, "upgrade", fake_upgrade)

    runner.run_migrations("head", timeout=5, poll_interval=0.1, config=config, verify=False)

    assert recorded["revision"] == "head"
    assert recorded["wait"][0].startswith("sqlite:///")
    assert str(recorded["script_location"]).endswith("alembic")


def test_upgrade_creates_every_model_table(tmp_path, monkeypatch) -> None:
    config = _config(tmp_path, monkeypatch)
    runner.run_migrations("head", timeout=5, poll_interval=0.1, config=config)

    engine = create_engine(f"sqlite:///{tmp_path / 'planner.sqlite'}")
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"topics", "kaplan_resources", "used_resources"} <= tables
    assert runner.missing_tables(f"sqlite:///{tmp_path / 'planner.sqlite'}") == []


def test_verification_reports_missing_tables(tmp_path, monkeypatch) -> None:
    config = _config(tmp_path, monkeypatch)
    monkeypatch.setattr(runner.command, "upgrade", lambda cfg, revision: None)
    with pytest.raises(RuntimeError, match="missing tables"):
        runner.run_migrations("head", timeout=5, poll_interval=0.1, config=config)
