import sqlite3

import pytest
from click.testing import CliRunner

from a2a_hitl.cli import cli, load_executors
from a2a_hitl.exceptions import ConfigurationError

from .test_core import echo_executor, progress_executor

EXECUTORS = [echo_executor, progress_executor]
NOT_EXECUTORS = [echo_executor, "not an executor"]


def test_load_executors_single_and_sequence():
    assert load_executors(None) == []
    assert load_executors("tests.test_core:echo_executor") == [echo_executor]
    assert load_executors("tests.test_cli:EXECUTORS") == [echo_executor, progress_executor]


@pytest.mark.parametrize("spec", ["no_colon", "tests.test_core:missing", "not_a_module_xyz:thing", "tests.test_cli:NOT_EXECUTORS"])
def test_load_executors_rejects_bad_specs(spec):
    with pytest.raises(ConfigurationError):
        load_executors(spec)


def test_init_db_creates_tables(tmp_path):
    db_path = tmp_path / "cli.db"
    result = CliRunner().invoke(cli, ["init-db", "--database-url", f"sqlite:///{db_path}"])
    assert result.exit_code == 0, result.output
    assert "A2A tables created." in result.output
    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"a2a_tasks", "a2a_messages", "a2a_task_messages", "a2a_artifacts"} <= tables


def test_init_db_requires_url(monkeypatch):
    from a2a_hitl.config import get_settings

    monkeypatch.delenv("DATABASE_URL", raising=False)
    get_settings.cache_clear()
    result = CliRunner().invoke(cli, ["init-db"])
    get_settings.cache_clear()
    assert result.exit_code != 0
    assert "No database URL given" in result.output


def test_serve_rejects_bad_executor_spec(mocker):
    run = mocker.patch("uvicorn.run")
    result = CliRunner().invoke(cli, ["serve", "--executors", "no_colon"])
    assert result.exit_code != 0
    assert "Executor spec must look like" in result.output
    run.assert_not_called()


def test_serve_runs_uvicorn(mocker):
    run = mocker.patch("uvicorn.run")
    result = CliRunner().invoke(cli, ["serve", "--port", "9001", "--executors", "tests.test_core:echo_executor"])
    assert result.exit_code == 0, result.output
    assert run.call_args.kwargs["port"] == 9001
